"""Unit of work spanning every entity repository.

One `UnitOfWork` wraps one `Session`. All repositories it exposes stage
their mutations on that session, and `commit` flushes them in a single
transaction: either every staged insert/update/delete applies or none
does. A unit of work belongs to exactly one request; `get_unit_of_work`
is the FastAPI dependency that scopes it.
"""

import logging

from fastapi import Depends
from sqlalchemy import event, inspect
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlmodel import Session

from . import repositories
from .database import get_session
from .exceptions import CommitError

logger = logging.getLogger("courseapp.uow")

_STAGED_KEY = "courseapp.staged_rows"


class UnitOfWork:
    """Repositories bound to one session plus an atomic `commit`."""

    def __init__(self, session: Session):
        self.session = session
        self.session.info[_STAGED_KEY] = 0
        event.listen(self.session, "before_flush", _count_staged_rows)
        self.instructors = repositories.InstructorRepository(session)
        self.students = repositories.StudentRepository(session)
        self.courses = repositories.CourseRepository(session)
        self.lessons = repositories.LessonRepository(session)
        self.exams = repositories.ExamRepository(session)
        self.exam_results = repositories.ExamResultRepository(session)
        self.registrations = repositories.RegistrationRepository(session)

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
        self.close()

    def pending_changes(self) -> int:
        """Number of operations staged but not yet flushed."""
        return _staged_in(self.session)

    def commit(self) -> int:
        """Flush and commit everything staged since the last commit.

        Returns the number of rows the transaction inserted, updated or
        deleted (including rows autoflushed earlier in the same
        transaction). Raises `CommitError` after rolling back when the
        database rejects the transaction. Lost connections propagate.
        """
        try:
            self.session.flush()
            affected = self.session.info.get(_STAGED_KEY, 0)
            self.session.commit()
        except (DisconnectionError, OperationalError) as exc:
            if isinstance(exc, DisconnectionError) or exc.connection_invalidated:
                logger.error("commit lost its database connection: %s", exc)
                self.rollback()
                raise
            self.rollback()
            logger.exception("commit failed")
            raise CommitError(str(exc)) from exc
        except SQLAlchemyError as exc:
            self.rollback()
            logger.exception("commit failed")
            raise CommitError(str(exc)) from exc
        self.session.info[_STAGED_KEY] = 0
        logger.debug("committed %d row(s)", affected)
        return affected

    def rollback(self) -> None:
        """Discard everything staged since the last commit."""
        self.session.rollback()
        self.session.info[_STAGED_KEY] = 0
        self.session.info.pop(repositories.STAGED_UPDATES, None)

    def close(self) -> None:
        if event.contains(self.session, "before_flush", _count_staged_rows):
            event.remove(self.session, "before_flush", _count_staged_rows)
        self.session.close()


def _staged_in(session: Session) -> int:
    deleted = {inspect(obj) for obj in session.deleted}
    modified = {inspect(obj) for obj in session.dirty if session.is_modified(obj)}
    # rows handed to `update` count even when no value changed
    modified.update(state for state in session.info.get(repositories.STAGED_UPDATES, ()) if state.persistent)
    return len(session.new) + len(modified - deleted) + len(deleted)


def _count_staged_rows(session, flush_context, instances):
    # accumulates across autoflushes until the transaction ends
    session.info[_STAGED_KEY] = session.info.get(_STAGED_KEY, 0) + _staged_in(session)
    session.info.pop(repositories.STAGED_UPDATES, None)


def get_unit_of_work(session: Session = Depends(get_session)):
    """Yield a request-scoped `UnitOfWork` for FastAPI dependency injection.

    The underlying session comes from `get_session`, which closes it when
    the request finishes; anything left uncommitted is rolled back.
    """
    uow = UnitOfWork(session)
    try:
        yield uow
    finally:
        uow.close()
