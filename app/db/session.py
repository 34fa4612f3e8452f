from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import settings

# Connection execution option: the transaction starts holding the write lock
WRITE_LOCK = "storefront_write_lock"

_LOCK_TIMEOUT_MESSAGES = ("database is locked", "lock timeout")


def build_engine(database_url: str = settings.DATABASE_URL,
                 busy_timeout: float = settings.SQLITE_BUSY_TIMEOUT_SECONDS) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    # check_same_thread is needed for SQLite, the pool hands connections across threads
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False, "timeout": busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # take transaction control away from pysqlite so BEGIN below is ours
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        # Readers stay deferred; writers queue on the lock up front instead of
        # failing when a read transaction tries to upgrade
        if conn.get_execution_options().get(WRITE_LOCK):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def begin_write(session: Session) -> None:
    """Open a write transaction on ``session``.

    Any read transaction the session still has open is ended first, so
    objects loaded before this call are expired. On SQLite this waits for
    the database write lock (up to the busy timeout).
    """
    if session.in_transaction():
        session.rollback()
    session.connection(execution_options={WRITE_LOCK: True})


def is_lock_timeout(exc: BaseException) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc.orig).lower()
    return any(m in message for m in _LOCK_TIMEOUT_MESSAGES)


def get_session(request: Request) -> Iterator[Session]:
    with Session(request.app.state.engine) as session:
        yield session


def create_db_and_tables(engine: Engine):
    # Import models so they are registered with SQLModel metadata
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
