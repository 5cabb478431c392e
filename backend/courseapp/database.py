"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` (a local SQLite file by default) and provides
the small helpers used by the application and tests. Sessions are never
shared between requests: `get_session` opens one per dependency scope.
"""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from .config import settings


def build_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    """Create an engine for `url`.

    SQLite connections get `check_same_thread=False` (FastAPI runs sync
    handlers in a threadpool) and foreign key enforcement, which SQLite
    leaves off by default. Without it a dangling `instructor_id` would
    commit happily.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        eng = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
        return eng
    return create_engine(url, echo=echo, **kwargs)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)


def create_db_and_tables(bind: Engine = None):
    """Create database tables using SQLModel metadata.

    Intended for local development and tests; schema migrations are
    out of scope for this service.
    """
    from . import models  # noqa: F401  registers the tables on SQLModel.metadata
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
