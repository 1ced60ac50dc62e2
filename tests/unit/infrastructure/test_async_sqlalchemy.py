import pytest
from sqlalchemy import String
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from randkey.application.key_generator import RandomKeyGenerator
from randkey.domain.key_config import KeyConfig
from randkey.exceptions import ExhaustedRetriesError
from randkey.infrastructure.database.column_types import key_column_type
from randkey.infrastructure.database.key_allocation import ainsert_with_random_key
from randkey.infrastructure.database.record_store import AsyncRecordStore, AsyncSQLAlchemyRecordStore


class Base(DeclarativeBase):
    pass


class Ticket(Base):
    __tablename__ = "tickets"

    ticket_id: Mapped[int] = mapped_column("id", key_column_type("INT"), primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(50), default="")


class FakeResult:
    def __init__(self, count):
        self.count = count

    def scalar_one(self):
        return self.count


class FakeAsyncSession:
    """
    Answers count queries from `existing` and fails the first `conflicts` savepoints.

    With `key_conflict` a failed savepoint means another writer took the key;
    otherwise some other constraint failed and the key stays free.
    """

    def __init__(self, existing=(), conflicts=0, key_conflict=True):
        self.existing = set(existing)
        self.conflicts = conflicts
        self.key_conflict = key_conflict
        self.statements = []
        self.pending = None
        self.flushed = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        candidate = stmt.compile().params["id_1"]
        return FakeResult(1 if candidate in self.existing else 0)

    def add(self, instance):
        self.pending = instance

    def begin_nested(self):
        return _FakeSavepoint(self)


class _FakeSavepoint:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            return False
        if self.session.conflicts:
            self.session.conflicts -= 1
            if self.session.key_conflict:
                self.session.existing.add(self.session.pending.ticket_id)
            self.session.pending = None
            raise IntegrityError("INSERT INTO tickets", {}, Exception("UNIQUE constraint failed: tickets.id"))
        self.session.flushed.append(self.session.pending)
        return False


@pytest.mark.asyncio
async def test_async_store_counts_by_primary_key():
    session = FakeAsyncSession(existing={1234567890})
    store = AsyncSQLAlchemyRecordStore(session, Ticket)

    assert isinstance(store, AsyncRecordStore)
    assert await store.exists(1234567890) is True
    assert await store.exists(1234567891) is False
    sql = str(session.statements[0])
    assert "count(tickets.id)" in sql
    assert "WHERE tickets.id = :id_1" in sql


@pytest.mark.asyncio
async def test_ainsert_retries_on_constraint_violation(rng):
    session = FakeAsyncSession(conflicts=2)
    gen = RandomKeyGenerator(KeyConfig("INT", 10, 64), rng=rng)

    ticket = await ainsert_with_random_key(session, Ticket, gen, max_insert_attempts=3)

    assert session.flushed == [ticket]
    assert 1000000000 <= ticket.ticket_id <= 4294967295
    # one check per generate_unique_id call plus a recheck after each conflict
    assert len(session.statements) == 5


@pytest.mark.asyncio
async def test_ainsert_gives_up_after_max_attempts(rng):
    session = FakeAsyncSession(conflicts=5)
    gen = RandomKeyGenerator(KeyConfig(), rng=rng)

    with pytest.raises(ExhaustedRetriesError) as exc:
        await ainsert_with_random_key(session, Ticket, gen, max_insert_attempts=2)

    assert exc.value.details["attempts"] == 2
    assert isinstance(exc.value.__cause__, IntegrityError)
    assert session.flushed == []


@pytest.mark.asyncio
async def test_ainsert_uses_custom_builder(rng):
    session = FakeAsyncSession()
    gen = RandomKeyGenerator(KeyConfig(), rng=rng)

    ticket = await ainsert_with_random_key(
        session, Ticket, gen, build=lambda key: Ticket(ticket_id=key, title="printer jam")
    )

    assert ticket.title == "printer jam"


@pytest.mark.asyncio
async def test_ainsert_reraises_non_key_violations(rng):
    session = FakeAsyncSession(conflicts=1, key_conflict=False)
    gen = RandomKeyGenerator(KeyConfig(), rng=rng)

    with pytest.raises(IntegrityError):
        await ainsert_with_random_key(session, Ticket, gen, max_insert_attempts=3)

    # one generate_unique_id call, one recheck, no retry
    assert len(session.statements) == 2
    assert session.flushed == []
