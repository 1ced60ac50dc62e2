# src/randkey/infrastructure/database/key_allocation.py
"""
Insert a row under a freshly generated random primary key.

generate_unique_id() only checks before the insert, so two writers can pick
the same free key. The primary key constraint decides: each insert runs in a
SAVEPOINT, and an IntegrityError rolls back only that savepoint and starts a
new generate_unique_id() call. Any other constraint failure (NOT NULL,
foreign key, a second unique index) is re-raised as is.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import Column, inspect as sa_inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from randkey.application.key_generator import RandomKeyGenerator
from randkey.domain.key_config import KeyConfig
from randkey.exceptions import ExhaustedRetriesError
from randkey.infrastructure.database.record_store import (
    AsyncSQLAlchemyRecordStore,
    SQLAlchemyRecordStore,
)
from randkey.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT")


def _default_builder(model: type, column: Column) -> Callable[[int], Any]:
    # attribute name may differ from the column name
    id_name = sa_inspect(model).get_property_by_column(column).key
    return lambda key: model(**{id_name: key})


def _insert_attempts(max_insert_attempts: Optional[int]) -> int:
    if max_insert_attempts is None:
        from randkey.config import get_settings

        max_insert_attempts = get_settings().MAX_INSERT_ATTEMPTS
    if max_insert_attempts < 1:
        raise ValueError("max_insert_attempts must be >= 1")
    return max_insert_attempts


def _exhausted(table: str, attempts: int) -> ExhaustedRetriesError:
    logger.warning("random_key_insert_exhausted", table=table, attempts=attempts)
    return ExhaustedRetriesError(
        f"Insert into {table!r} hit a key conflict {attempts} times",
        details={"attempts": attempts, "table": table},
    )


def insert_with_random_key(
    session: Session,
    model: type,
    generator: RandomKeyGenerator,
    *,
    build: Optional[Callable[[int], ModelT]] = None,
    config: Optional[KeyConfig] = None,
    id_column: Optional[str] = None,
    max_insert_attempts: Optional[int] = None,
) -> ModelT:
    """
    Add a row keyed by a new random id and flush it.

    Args:
        session: Caller's session; committed by the caller
        model: Mapped class the row belongs to
        generator: Key generator to draw ids from
        build: `(key) -> instance`; defaults to `model(<pk>=key)`
        config: Overrides the generator's KeyConfig
        id_column: Key column name; defaults to the sole primary key
        max_insert_attempts: Constraint violations tolerated (RANDKEY_MAX_INSERT_ATTEMPTS)

    Returns:
        The flushed instance

    Raises:
        ExhaustedRetriesError: Every insert attempt lost its key to another writer
        IntegrityError: The row violated a constraint other than the key
    """
    store = SQLAlchemyRecordStore(session, model, id_column)
    build = build or _default_builder(model, store.id_column)
    attempts = _insert_attempts(max_insert_attempts)
    last_error: Optional[IntegrityError] = None

    for attempt in range(1, attempts + 1):
        key = generator.generate_unique_id(store, config)
        instance = build(key)
        try:
            with session.begin_nested():
                session.add(instance)
        except IntegrityError as e:
            if not store.exists(key):
                # some other constraint failed; the key itself is still free
                raise
            last_error = e
            logger.info("random_key_insert_conflict", table=store.table.name, attempt=attempt)
            continue
        logger.debug("random_key_inserted", table=store.table.name, attempt=attempt)
        return instance

    raise _exhausted(store.table.name, attempts) from last_error


async def ainsert_with_random_key(
    session: AsyncSession,
    model: type,
    generator: RandomKeyGenerator,
    *,
    build: Optional[Callable[[int], ModelT]] = None,
    config: Optional[KeyConfig] = None,
    id_column: Optional[str] = None,
    max_insert_attempts: Optional[int] = None,
) -> ModelT:
    """AsyncSession counterpart of insert_with_random_key()."""
    store = AsyncSQLAlchemyRecordStore(session, model, id_column)
    build = build or _default_builder(model, store.id_column)
    attempts = _insert_attempts(max_insert_attempts)
    last_error: Optional[IntegrityError] = None

    for attempt in range(1, attempts + 1):
        key = await generator.agenerate_unique_id(store, config)
        instance = build(key)
        try:
            async with session.begin_nested():
                session.add(instance)
        except IntegrityError as e:
            if not await store.exists(key):
                raise
            last_error = e
            logger.info("random_key_insert_conflict", table=store.table.name, attempt=attempt)
            continue
        logger.debug("random_key_inserted", table=store.table.name, attempt=attempt)
        return instance

    raise _exhausted(store.table.name, attempts) from last_error
