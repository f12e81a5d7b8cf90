from datetime import date
from decimal import Decimal

import pytest

from chatledger.charts.service import ChartService
from chatledger.db.repository import ExpenseRepository, UserRepository, open_database
from chatledger.engine.executor import OperationExecutor
from chatledger.models.schemas import LedgerRecord
from tests.fakes import OWNER, TODAY


@pytest.fixture
def db():
    return open_database(None)


@pytest.fixture
def repo(db) -> ExpenseRepository:
    return ExpenseRepository(db)


@pytest.fixture
def users(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def charts() -> ChartService:
    return ChartService()


@pytest.fixture
def executor(repo, charts) -> OperationExecutor:
    return OperationExecutor(repo, charts, first_weekday=6, clock=lambda: TODAY)


@pytest.fixture
def add_record(repo):
    def _add(amount, day: date = TODAY, category=None, description=None, owner_id=OWNER):
        return repo.create(
            LedgerRecord(
                owner_id=owner_id,
                amount=Decimal(str(amount)),
                category=category,
                description=description,
                date=day,
            )
        )

    return _add
