import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from .models import Base


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")

    # pysqlite needs this to honour SAVEPOINT (SQLAlchemy docs, "Serializable isolation / Savepoints")
    @event.listens_for(engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session
