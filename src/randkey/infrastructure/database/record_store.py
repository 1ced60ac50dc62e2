"""
Record Store
Answers "does a row with this key already exist?" for the key generator
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, Union, runtime_checkable

from sqlalchemy import Column, Table, func, inspect as sa_inspect, select
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from randkey.exceptions import ConfigError
from randkey.infrastructure.observability.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class RecordStore(Protocol):
    def exists(self, candidate_id: int) -> bool: ...


@runtime_checkable
class AsyncRecordStore(Protocol):
    async def exists(self, candidate_id: int) -> bool: ...


def resolve_table(table_or_model: Union[Table, type]) -> Table:
    """Return the Table behind a Table or a mapped model class."""
    if isinstance(table_or_model, Table):
        return table_or_model
    try:
        return sa_inspect(table_or_model).local_table
    except NoInspectionAvailable:
        raise ConfigError(f"{table_or_model!r} is neither a Table nor a mapped class") from None


def resolve_id_column(table: Table, id_column: Optional[str] = None) -> Column:
    """
    Return the key column: `id_column` if named, otherwise the sole primary key.

    Raises:
        ConfigError: Unknown column, or no single-column primary key
    """
    if id_column is not None:
        try:
            return table.c[id_column]
        except KeyError:
            raise ConfigError(f"Table {table.name!r} has no column {id_column!r}") from None
    pk = list(table.primary_key.columns)
    if len(pk) != 1:
        raise ConfigError(
            f"Table {table.name!r} needs exactly one primary key column, found {len(pk)}",
            details={"table": table.name, "primary_key": [c.name for c in pk]},
        )
    return pk[0]


class _CountQuery:
    def __init__(self, table_or_model: Union[Table, type], id_column: Optional[str] = None) -> None:
        self.table = resolve_table(table_or_model)
        self.id_column = resolve_id_column(self.table, id_column)

    def statement(self, candidate_id: int) -> Any:
        return (
            select(func.count(self.id_column))
            .select_from(self.table)
            .where(self.id_column == candidate_id)
        )


class SQLAlchemyRecordStore(_CountQuery):
    """
    Record store over a synchronous SQLAlchemy Session.

    The session is owned by the caller; this class never commits or closes it.
    """

    def __init__(
        self,
        session: Session,
        table_or_model: Union[Table, type],
        id_column: Optional[str] = None,
    ) -> None:
        super().__init__(table_or_model, id_column)
        self.session = session

    def exists(self, candidate_id: int) -> bool:
        try:
            count = self.session.execute(self.statement(candidate_id)).scalar_one()
        except SQLAlchemyError as e:
            logger.error("record_store_exists_failed", table=self.table.name, error=str(e))
            raise
        return count > 0


class AsyncSQLAlchemyRecordStore(_CountQuery):
    """Record store over an AsyncSession."""

    def __init__(
        self,
        session: AsyncSession,
        table_or_model: Union[Table, type],
        id_column: Optional[str] = None,
    ) -> None:
        super().__init__(table_or_model, id_column)
        self.session = session

    async def exists(self, candidate_id: int) -> bool:
        try:
            result = await self.session.execute(self.statement(candidate_id))
        except SQLAlchemyError as e:
            logger.error("record_store_exists_failed", table=self.table.name, error=str(e))
            raise
        return result.scalar_one() > 0
