"""
SQLAlchemy column types matching each storage class.

    class Invoice(Base):
        __tablename__ = "invoices"
        id: Mapped[int] = mapped_column(key_column_type("MEDIUMINT"), primary_key=True, autoincrement=False)
"""
from __future__ import annotations

from typing import Union

from sqlalchemy import BigInteger, Integer, SmallInteger
from sqlalchemy.dialects import mysql
from sqlalchemy.types import TypeEngine

from randkey.domain.storage_class import StorageClass

_GENERIC = {
    StorageClass.TINYINT: SmallInteger,
    StorageClass.SMALLINT: Integer,   # unsigned 16-bit overflows a signed SMALLINT
    StorageClass.MEDIUMINT: Integer,
    StorageClass.INT: BigInteger,     # unsigned 32-bit overflows a signed INTEGER
    StorageClass.BIGINT: BigInteger,
}

_MYSQL = {
    StorageClass.TINYINT: mysql.TINYINT,
    StorageClass.SMALLINT: mysql.SMALLINT,
    StorageClass.MEDIUMINT: mysql.MEDIUMINT,
    StorageClass.INT: mysql.INTEGER,
    StorageClass.BIGINT: mysql.BIGINT,
}


def key_column_type(storage_class: Union[StorageClass, str]) -> TypeEngine:
    """
    Column type able to hold every key of `storage_class`.

    MySQL gets the exact unsigned type; other backends get the narrowest
    signed type wide enough for the storage class maximum.
    """
    storage_class = StorageClass.parse(storage_class)
    return _GENERIC[storage_class]().with_variant(_MYSQL[storage_class](unsigned=True), "mysql", "mariadb")
