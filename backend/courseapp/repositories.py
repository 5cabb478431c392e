"""Repository classes encapsulating database operations.

`GenericRepository` provides the CRUD primitives for one entity type;
the small subclasses below only declare which relations a "detail" read
must load. Repositories never commit: mutations are staged on the shared
session and become durable when the owning `UnitOfWork` commits.
"""

from typing import Generic, Iterator, Optional, Sequence, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.orm import joinedload, make_transient_to_detached
from sqlalchemy.orm.attributes import flag_modified, set_committed_value
from sqlmodel import Session, SQLModel, select

from . import models
from .exceptions import DetachedEntityError

EntityT = TypeVar("EntityT", bound=SQLModel)

# session.info key: states passed to `update` since the last flush
STAGED_UPDATES = "courseapp.staged_updates"


class GenericRepository(Generic[EntityT]):
    """CRUD operations for one SQLModel table.

    `detail_relations` names the relationship attributes that
    `get_all_detail` / `get_by_id_detail` populate. They are loaded with
    `joinedload`, i.e. in the same SELECT as the base rows, so the number
    of statements does not grow with the number of rows.
    """
    detail_relations: Sequence[str] = ()

    def __init__(self, session: Session, model: Type[EntityT], detail_relations: Optional[Sequence[str]] = None):
        self.session = session
        self.model = model
        if detail_relations is not None:
            self.detail_relations = tuple(detail_relations)

    def get_all(self, track: bool = True) -> Iterator[EntityT]:
        """Stream every row; untracked rows are detached before they are yielded."""
        return self._iterate(select(self.model), track)

    def get_by_id(self, entity_id: Optional[str], track: bool = True) -> Optional[EntityT]:
        """Return the row with `entity_id` or `None` when there is none."""
        if not entity_id or not str(entity_id).strip():
            return None
        stmt = select(self.model).where(self.model.id == entity_id)
        return self._first(stmt, track)

    def get_all_detail(self, track: bool = True) -> Iterator[EntityT]:
        """Like `get_all` but with the detail relations join-fetched."""
        return self._iterate(self._detail_select(), track)

    def get_by_id_detail(self, entity_id: Optional[str], track: bool = True) -> Optional[EntityT]:
        """Like `get_by_id` but with the detail relations join-fetched."""
        if not entity_id or not str(entity_id).strip():
            return None
        stmt = self._detail_select().where(self.model.id == entity_id)
        return self._first(stmt, track)

    def exists(self, *criteria) -> bool:
        """Return True if at least one row matches `criteria`."""
        stmt = select(self.model.id).where(*criteria).limit(1)
        return self.session.exec(stmt).first() is not None

    def create(self, entity: EntityT) -> EntityT:
        """Stage an insert."""
        self.session.add(entity)
        return entity

    def update(self, entity: EntityT) -> EntityT:
        """Stage an update of a tracked instance.

        Only instances loaded with `track=True` through this session may
        be updated; detached snapshots are rejected. The row is written
        at the next flush even when no field value changed.
        """
        state = inspect(entity)
        if not state.persistent or state.session is not self.session:
            raise DetachedEntityError(f"{self.model.__name__} {getattr(entity, 'id', None)!r} is not tracked by this unit of work")
        column = self._first_column()
        getattr(entity, column)  # reload if expired by an earlier commit
        flag_modified(entity, column)
        self.session.info.setdefault(STAGED_UPDATES, set()).add(state)
        self.session.add(entity)
        return entity

    def remove(self, entity: EntityT) -> bool:
        """Stage a delete keyed by `entity.id`.

        `entity` may be a stub carrying only the id. Returns False (and
        stages nothing) when no row has that id.
        """
        target = self.session.get(self.model, entity.id) if getattr(entity, "id", None) else None
        if target is None:
            return False
        self.session.delete(target)
        return True

    def _detail_select(self):
        options = [joinedload(getattr(self.model, rel)) for rel in self.detail_relations]
        return select(self.model).options(*options)

    def _iterate(self, stmt, track: bool) -> Iterator[EntityT]:
        # joinedload on a many-to-one never duplicates base rows, so no unique() pass is needed
        held = {inspect(obj) for obj in self.session}
        for entity in self.session.exec(stmt):
            yield self._detach(entity, track, held)

    def _first(self, stmt, track: bool) -> Optional[EntityT]:
        held = {inspect(obj) for obj in self.session}
        entity = self.session.exec(stmt).first()
        if entity is None:
            return None
        return self._detach(entity, track, held)

    def _detach(self, entity: EntityT, track: bool, held) -> EntityT:
        if track:
            return entity
        # the session already tracked this row before the read: leave it attached
        if inspect(entity) in held:
            return self._snapshot(entity)
        self.session.expunge(entity)
        return entity

    def _snapshot(self, entity: EntityT) -> EntityT:
        """A detached copy of `entity` carrying its columns and loaded detail relations."""
        state = inspect(entity)
        copy = self.model(**{attr.key: getattr(entity, attr.key) for attr in state.mapper.column_attrs})
        make_transient_to_detached(copy)
        for rel in self.detail_relations:
            if rel in state.dict:
                set_committed_value(copy, rel, state.dict[rel])
        return copy

    def _first_column(self) -> str:
        mapper = inspect(self.model)
        return next(attr.key for attr in mapper.column_attrs if not attr.columns[0].primary_key)


class InstructorRepository(GenericRepository[models.Instructor]):
    def __init__(self, session: Session):
        super().__init__(session, models.Instructor)


class StudentRepository(GenericRepository[models.Student]):
    def __init__(self, session: Session):
        super().__init__(session, models.Student)


class CourseRepository(GenericRepository[models.Course]):
    """Courses; detail reads carry the instructor."""
    detail_relations = ("instructor",)

    def __init__(self, session: Session):
        super().__init__(session, models.Course)


class LessonRepository(GenericRepository[models.Lesson]):
    """Lessons; detail reads carry the course."""
    detail_relations = ("course",)

    def __init__(self, session: Session):
        super().__init__(session, models.Lesson)


class ExamRepository(GenericRepository[models.Exam]):
    """Exams; detail reads carry the lesson (when set)."""
    detail_relations = ("lesson",)

    def __init__(self, session: Session):
        super().__init__(session, models.Exam)


class ExamResultRepository(GenericRepository[models.ExamResult]):
    """Exam results; detail reads carry the student and the exam."""
    detail_relations = ("student", "exam")

    def __init__(self, session: Session):
        super().__init__(session, models.ExamResult)


class RegistrationRepository(GenericRepository[models.Registration]):
    """Registrations; detail reads carry the course and the student."""
    detail_relations = ("course", "student")

    def __init__(self, session: Session):
        super().__init__(session, models.Registration)
