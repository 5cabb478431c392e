import os

# point the app at a throwaway database before anything imports courseapp
os.environ.setdefault("ENV", "test")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy import event
from sqlmodel import Session

from courseapp.database import build_engine, create_db_and_tables
from courseapp.unit_of_work import UnitOfWork


@pytest.fixture()
def engine(tmp_path):
    """A fresh SQLite file per test; every session gets its own connection."""
    eng = build_engine(f"sqlite:///{tmp_path / 'courseapp-test.db'}")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def uow(engine):
    with UnitOfWork(Session(engine)) as unit:
        yield unit


@pytest.fixture()
def new_uow(engine):
    """Factory for additional units of work, e.g. to read after a commit."""
    opened = []

    def _make():
        unit = UnitOfWork(Session(engine))
        opened.append(unit)
        return unit

    yield _make
    for unit in opened:
        unit.close()


class QueryCounter:
    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    @property
    def selects(self):
        return [s for s in self.statements if s.lstrip().upper().startswith("SELECT")]

    def reset(self):
        self.statements.clear()


@pytest.fixture()
def query_counter(engine):
    """Records every statement the engine sends to the database."""
    counter = QueryCounter()
    event.listen(engine, "before_cursor_execute", counter)
    yield counter
    event.remove(engine, "before_cursor_execute", counter)
