from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from chatledger.db.repository import ExpenseRepository, open_database
from chatledger.models.schemas import DateRange, LedgerRecord
from tests.fakes import OWNER


def test_create_assigns_id_and_round_trips(repo) -> None:
    record = repo.create(
        LedgerRecord(
            owner_id=OWNER,
            amount=Decimal("12.345"),
            description="Taxi",
            category=" Transport ",
            date=date(2025, 11, 3),
        )
    )

    stored = repo.get(record.id)
    assert record.id is not None
    assert stored.amount == Decimal("12.35")
    assert stored.category == "transport"
    assert stored.date == date(2025, 11, 3)
    assert stored.created_at == record.created_at


@pytest.mark.parametrize("amount", ["0", "-1.00", "0.004"])
def test_non_positive_amounts_are_rejected(amount) -> None:
    with pytest.raises(ValidationError):
        LedgerRecord(owner_id=OWNER, amount=Decimal(amount), date=date(2025, 11, 3))


def test_get_respects_owner(repo, add_record) -> None:
    record = add_record("1.00")

    assert repo.get(record.id, owner_id=OWNER) is not None
    assert repo.get(record.id, owner_id=OWNER + 1) is None


def test_find_by_owner_orders_by_date_then_id(repo, add_record) -> None:
    a = add_record("1.00", day=date(2025, 11, 1))
    b = add_record("2.00", day=date(2025, 11, 5))
    c = add_record("3.00", day=date(2025, 11, 5))
    add_record("4.00", owner_id=OWNER + 1)

    assert [r.id for r in repo.find_by_owner(OWNER)] == [c.id, b.id, a.id]
    assert [r.id for r in repo.find_by_owner(OWNER, limit=1)] == [c.id]


def test_find_by_owner_and_range_is_inclusive(repo, add_record) -> None:
    for day in (14, 15, 16, 17):
        add_record("1.00", day=date(2025, 11, day))

    records = repo.find_by_owner_and_range(
        OWNER, DateRange(start=date(2025, 11, 15), end=date(2025, 11, 16))
    )

    assert sorted(r.date_text for r in records) == ["2025-11-15", "2025-11-16"]


def test_sum_by_owner_is_exact(repo, add_record) -> None:
    for amount in ("0.10", "0.20", "0.30"):
        add_record(amount)

    assert repo.sum_by_owner(OWNER) == Decimal("0.60")
    assert repo.sum_by_owner(OWNER + 1) == Decimal("0")


def test_delete(repo, add_record) -> None:
    record = add_record("1.00")

    assert not repo.delete(record.id, OWNER + 1)
    assert repo.delete(record.id, OWNER)
    assert not repo.delete(record.id, OWNER)


def test_users_are_created_once(users) -> None:
    first = users.find_or_create("telegram:77", name="Ana")
    again = users.find_or_create("telegram:77")
    other = users.find_or_create("15551234567")

    assert first.id == again.id
    assert again.name == "Ana"
    assert other.id != first.id
    assert other.name == "User 15551234567"


def test_json_file_persists_between_opens(tmp_path) -> None:
    path = str(tmp_path / "ledger.json")
    ExpenseRepository(open_database(path)).create(
        LedgerRecord(owner_id=OWNER, amount=Decimal("9.99"), date=date(2025, 11, 1))
    )

    reopened = ExpenseRepository(open_database(path))

    assert reopened.sum_by_owner(OWNER) == Decimal("9.99")
