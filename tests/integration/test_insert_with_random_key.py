import pytest
from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError

from randkey.application.key_generator import RandomKeyGenerator
from randkey.domain.key_config import KeyConfig
from randkey.exceptions import ExhaustedRetriesError
from randkey.infrastructure.database.key_allocation import insert_with_random_key

from .models import Account, Invoice

pytestmark = pytest.mark.integration


def _count(session):
    return session.execute(select(func.count()).select_from(Invoice)).scalar_one()


def test_inserts_under_a_fresh_key(session, rng):
    gen = RandomKeyGenerator(KeyConfig("TINYINT", 3, 64), rng=rng)

    invoice = insert_with_random_key(session, Invoice, gen)
    session.commit()

    assert 100 <= invoice.id <= 255
    assert session.get(Invoice, invoice.id) is invoice
    assert _count(session) == 1


def test_concurrent_writer_between_check_and_insert(session, rng):
    """The check passes, another writer takes the key, the constraint catches it."""
    gen = RandomKeyGenerator(KeyConfig("TINYINT", 3, 64), rng=rng)
    built = []

    def build(key):
        if not built:
            session.execute(insert(Invoice.__table__).values(id=key, customer="other writer"))
        built.append(key)
        return Invoice(id=key, customer="us")

    invoice = insert_with_random_key(session, Invoice, gen, build=build)
    session.commit()

    assert len(built) == 2
    assert invoice.id == built[1] != built[0]
    assert session.get(Invoice, built[0]).customer == "other writer"
    assert _count(session) == 2


def test_gives_up_after_max_insert_attempts(session, rng):
    gen = RandomKeyGenerator(KeyConfig("TINYINT", 3, 64), rng=rng)
    built = []

    def build(key):
        session.execute(insert(Invoice.__table__).values(id=key, customer="other writer"))
        built.append(key)
        return Invoice(id=key)

    with pytest.raises(ExhaustedRetriesError) as exc:
        insert_with_random_key(session, Invoice, gen, build=build, max_insert_attempts=3)

    assert len(built) == 3
    assert exc.value.details == {"attempts": 3, "table": "invoices"}
    assert isinstance(exc.value.__cause__, IntegrityError)
    # the session is still usable and holds only the other writer's rows
    assert _count(session) == 3


def test_default_attempts_from_settings(monkeypatch, session, rng):
    monkeypatch.setenv("RANDKEY_MAX_INSERT_ATTEMPTS", "1")
    gen = RandomKeyGenerator(KeyConfig("TINYINT", 3, 64), rng=rng)

    def build(key):
        session.execute(insert(Invoice.__table__).values(id=key))
        return Invoice(id=key)

    with pytest.raises(ExhaustedRetriesError):
        insert_with_random_key(session, Invoice, gen, build=build)


def test_invalid_attempts(session, rng):
    gen = RandomKeyGenerator(KeyConfig("TINYINT", 3, 64), rng=rng)
    with pytest.raises(ValueError):
        insert_with_random_key(session, Invoice, gen, max_insert_attempts=0)


def test_other_constraint_failures_are_not_retried(session, rng):
    gen = RandomKeyGenerator(KeyConfig("SMALLINT", 5, 64), rng=rng)
    built = []

    def build(key):
        built.append(key)
        return Account(id=key, email=None)

    with pytest.raises(IntegrityError, match="NOT NULL"):
        insert_with_random_key(session, Account, gen, build=build, max_insert_attempts=3)

    assert len(built) == 1
    assert session.execute(select(func.count()).select_from(Account)).scalar_one() == 0


def test_generated_key_with_valid_row(session, rng):
    gen = RandomKeyGenerator(KeyConfig("SMALLINT", 5, 64), rng=rng)
    account = insert_with_random_key(session, Account, gen, build=lambda key: Account(id=key, email="a@example.test"))
    session.commit()
    assert 10000 <= account.id <= 65535
