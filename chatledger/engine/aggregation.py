from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from chatledger.models.schemas import UNCATEGORIZED, LedgerRecord, normalize_category, to_cents


@dataclass(slots=True)
class Bucket:
    total: Decimal = Decimal("0")
    count: int = 0

    def add(self, amount: Decimal) -> None:
        self.total += amount
        self.count += 1


@dataclass(slots=True)
class DayBucket:
    date: str
    total: Decimal
    count: int

    def to_payload(self) -> dict:
        return {"date": self.date, "total": float(to_cents(self.total)), "count": self.count}


def summarize(records: Iterable[LedgerRecord]) -> Bucket:
    bucket = Bucket()
    for record in records:
        bucket.add(record.amount)
    return bucket


def group_by_category(records: Iterable[LedgerRecord]) -> dict[str, Bucket]:
    """Total and count per category; "Food" and " food " share a bucket."""
    groups: dict[str, Bucket] = {}
    for record in records:
        key = normalize_category(record.category) or UNCATEGORIZED
        groups.setdefault(key, Bucket()).add(record.amount)
    return groups


def group_by_day(records: Iterable[LedgerRecord]) -> list[DayBucket]:
    """Per-day totals sorted by date. Days without records are not included."""
    groups: dict[str, Bucket] = {}
    for record in records:
        groups.setdefault(record.date_text, Bucket()).add(record.amount)
    return [
        DayBucket(date=day, total=bucket.total, count=bucket.count)
        for day, bucket in sorted(groups.items())
    ]


def category_breakdown(groups: dict[str, Bucket]) -> list[dict]:
    """Payload rows with each category's share of the grand total, largest first."""
    grand_total = sum((bucket.total for bucket in groups.values()), Decimal("0"))
    rows = []
    for category, bucket in sorted(groups.items(), key=lambda item: (-item[1].total, item[0])):
        share = (bucket.total / grand_total * 100) if grand_total else Decimal("0")
        rows.append(
            {
                "category": category,
                "total": float(to_cents(bucket.total)),
                "count": bucket.count,
                "percentage": float(share.quantize(Decimal("0.1"))),
            }
        )
    return rows
