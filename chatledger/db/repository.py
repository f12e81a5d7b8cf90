import threading
from decimal import Decimal

from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

from chatledger.models.schemas import DateRange, LedgerRecord, User

# TinyDB is not thread-safe and operations run in worker threads
_lock = threading.RLock()


def open_database(db_path: str | None = "chat_ledger.json") -> TinyDB:
    """Open the JSON ledger file, or an in-memory database when ``db_path`` is None."""
    if db_path is None:
        return TinyDB(storage=MemoryStorage)
    return TinyDB(db_path)


def _newest_first(records: list[LedgerRecord], by_date: bool) -> list[LedgerRecord]:
    if by_date:
        return sorted(records, key=lambda r: (r.date_text, r.id), reverse=True)
    return sorted(records, key=lambda r: r.id, reverse=True)


class ExpenseRepository:
    def __init__(self, db: TinyDB):
        self.db = db
        self.table = db.table("expenses")

    def _to_record(self, doc) -> LedgerRecord:
        return LedgerRecord(id=doc.doc_id, **doc)

    def create(self, record: LedgerRecord) -> LedgerRecord:
        data = record.model_dump(mode="json")
        data.pop("id", None)
        with _lock:
            doc_id = self.table.insert(data)
        return record.model_copy(update={"id": doc_id})

    def get(self, id: int, owner_id: int | None = None) -> LedgerRecord | None:
        with _lock:
            doc = self.table.get(doc_id=id)
        if doc is None:
            return None
        if owner_id is not None and doc["owner_id"] != owner_id:
            return None
        return self._to_record(doc)

    def delete(self, id: int, owner_id: int) -> bool:
        with _lock:
            doc = self.table.get(doc_id=id)
            if doc is None or doc["owner_id"] != owner_id:
                return False
            self.table.remove(doc_ids=[id])
        return True

    def find_by_owner(self, owner_id: int, limit: int | None = None) -> list[LedgerRecord]:
        """All of an owner's records, newest date first."""
        Expense = Query()
        with _lock:
            docs = self.table.search(Expense.owner_id == owner_id)
        records = _newest_first([self._to_record(doc) for doc in docs], by_date=True)
        return records[:limit] if limit else records

    def latest(self, owner_id: int, limit: int = 5) -> list[LedgerRecord]:
        """The owner's most recently created records."""
        Expense = Query()
        with _lock:
            docs = self.table.search(Expense.owner_id == owner_id)
        records = _newest_first([self._to_record(doc) for doc in docs], by_date=False)
        return records[:limit]

    def find_by_owner_and_range(self, owner_id: int, date_range: DateRange) -> list[LedgerRecord]:
        Expense = Query()
        with _lock:
            docs = self.table.search(
                (Expense.owner_id == owner_id) & (Expense.date.test(date_range.contains_text))
            )
        return _newest_first([self._to_record(doc) for doc in docs], by_date=True)

    def sum_by_owner(self, owner_id: int) -> Decimal:
        Expense = Query()
        with _lock:
            docs = self.table.search(Expense.owner_id == owner_id)
        return sum((Decimal(doc["amount"]) for doc in docs), Decimal("0"))


class UserRepository:
    def __init__(self, db: TinyDB):
        self.table = db.table("users")

    def find_or_create(self, external_id: str, name: str | None = None) -> User:
        """Look up an owner by platform identifier, registering it on first contact."""
        Person = Query()
        with _lock:
            doc = self.table.get(Person.external_id == external_id)
            if doc is not None:
                return User(id=doc.doc_id, **doc)
            user = User(external_id=external_id, name=name or f"User {external_id}")
            data = user.model_dump(mode="json")
            data.pop("id", None)
            user.id = self.table.insert(data)
        return user
