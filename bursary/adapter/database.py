"""Async engine construction

SQLite ignores SELECT ... FOR UPDATE and pysqlite defers BEGIN until the first
write, so two ledger transactions could both read the same balance. On SQLite
every transaction therefore starts with BEGIN IMMEDIATE, which takes the
database write lock up front and serializes ledger updates the way row locks
do on PostgreSQL.
"""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine


def create_ledger_engine(db_uri: str, **kwargs) -> AsyncEngine:
    engine = create_async_engine(db_uri, echo=False, future=True, **kwargs)

    if make_url(db_uri).get_backend_name() == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def disable_driver_transactions(dbapi_connection, _):
            # BEGIN is emitted by the "begin" listener below instead
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine
