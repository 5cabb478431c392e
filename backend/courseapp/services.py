"""Business logic managers used by HTTP controllers.

Each manager coordinates the repositories of one `UnitOfWork` for a single
entity kind. Every public method returns a `Result`; expected outcomes
(invalid input, unknown ids, nothing persisted) are failures, never
exceptions.

A write goes through the same steps everywhere:

1. reject a missing payload and field values that break an invariant
   (no storage access yet);
2. make sure every referenced row exists;
3. run invariants that need the database (course name uniqueness);
4. map, stage and commit through the shared unit of work;
5. report success only if the commit touched at least one row.
"""

import logging
from typing import Callable, ClassVar, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel
from sqlmodel import SQLModel

from . import mappers, messages, models, schemas
from .exceptions import CommitError
from .results import Failure, Result, Success
from .unit_of_work import UnitOfWork

logger = logging.getLogger("courseapp.services")

# (dto field, unit-of-work repository attribute, entity label, optional)
Reference = Tuple[str, str, str, bool]


class EntityManager:
    """CRUD flow shared by all managers; subclasses fill in the specifics."""
    model: ClassVar[Type[SQLModel]]
    repository: ClassVar[str]
    out_shape: ClassVar[Type[BaseModel]]
    msg: ClassVar[messages.Messages]
    references: ClassVar[Sequence[Reference]] = ()

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @property
    def repo(self):
        return getattr(self.uow, self.repository)

    def get_all(self) -> Result[List[BaseModel]]:
        """Return every row as transfer shapes; an empty table is a success."""
        shapes = mappers.to_shapes(self.out_shape, self.repo.get_all(track=False))
        if shapes is None:
            return Failure(self.msg.mapping_failed)
        return Success(shapes, self.msg.list_ok)

    def get_by_id(self, entity_id: Optional[str]) -> Result[BaseModel]:
        """Return one row; a blank or unknown id is always the same not-found failure."""
        entity = self.repo.get_by_id(entity_id, track=False)
        if entity is None:
            return Failure(self.msg.not_found)
        shape = mappers.to_shape(self.out_shape, entity)
        if shape is None:
            return Failure(self.msg.mapping_failed)
        return Success(shape, self.msg.get_ok)

    def create(self, dto: Optional[BaseModel]) -> Result[BaseModel]:
        """Validate, stage and commit a new row. The created shape is the payload."""
        if dto is None:
            return Failure(messages.INVALID_PAYLOAD)
        failure = self.validate(dto) or self._check_references(dto) or self.check_unique(dto)
        if failure:
            return failure
        entity = mappers.to_entity(self.model, dto)
        created = mappers.to_shape(self.out_shape, entity)
        if entity is None or created is None:
            return Failure(self.msg.mapping_failed)
        self.repo.create(entity)
        return self._commit(self.msg.create_ok, self.msg.create_failed, created)

    def update(self, dto: Optional[BaseModel]) -> Result:
        """Apply `dto` onto the tracked row with the same id and commit."""
        if dto is None:
            return Failure(messages.INVALID_PAYLOAD)
        if not _has_id(getattr(dto, "id", None)):
            return Failure(messages.INVALID_ID)
        failure = self.validate(dto)
        if failure:
            return failure
        entity = self.repo.get_by_id(dto.id, track=True)
        if entity is None:
            return Failure(self.msg.not_found)
        failure = self._check_references(dto) or self.check_unique(dto, current_id=entity.id)
        if failure:
            return failure
        self.repo.update(mappers.copy_onto(entity, dto))
        return self._commit(self.msg.update_ok, self.msg.update_failed)

    def remove(self, dto: Optional[schemas.DeleteIn]) -> Result:
        """Delete the row with `dto.id`; an unknown id stages nothing and fails."""
        if dto is None or not _has_id(dto.id):
            return Failure(messages.INVALID_ID)
        if not self.repo.remove(self.model(id=dto.id)):
            return Failure(self.msg.not_found)
        return self._commit(self.msg.delete_ok, self.msg.delete_failed)

    # hooks

    def validate(self, dto: BaseModel) -> Optional[Result]:
        """Storage-free field checks; return a failure to stop the operation."""
        return None

    def check_unique(self, dto: BaseModel, current_id: Optional[str] = None) -> Optional[Result]:
        """Uniqueness checks that need the database."""
        return None

    # helpers

    def _check_references(self, dto: BaseModel) -> Optional[Result]:
        for field, repository, label, optional in self.references:
            value = getattr(dto, field, None)
            if value is None and optional:
                continue
            repo = getattr(self.uow, repository)
            if not _has_id(value) or not repo.exists(repo.model.id == value):
                logger.info("%s references missing %s %r", self.model.__name__, label, value)
                return Failure(messages.REFERENCE_NOT_FOUND.format(entity=label))
        return None

    def _commit(self, ok_message: str, failed_message: str, data=None) -> Result:
        try:
            affected = self.uow.commit()
        except CommitError:
            return Failure(self.msg.persistence_failed)
        if affected > 0:
            return Success(data, ok_message)
        return Failure(failed_message)


class DetailMixin:
    """Detail reads: relations come from the detail query, mapping only reads them."""
    detail_mapper: ClassVar[Callable[[SQLModel], Optional[BaseModel]]]

    def get_all_detail(self) -> Result[List[BaseModel]]:
        shapes = []
        for entity in self.repo.get_all_detail(track=False):
            shape = self.detail_mapper(entity)
            if shape is None:
                return Failure(self.msg.mapping_failed)
            shapes.append(shape)
        return Success(shapes, self.msg.detail_ok)

    def get_by_id_detail(self, entity_id: Optional[str]) -> Result[BaseModel]:
        entity = self.repo.get_by_id_detail(entity_id, track=False)
        if entity is None:
            return Failure(self.msg.not_found)
        shape = self.detail_mapper(entity)
        if shape is None:
            return Failure(self.msg.mapping_failed)
        return Success(shape, self.msg.detail_ok)


class InstructorManager(EntityManager):
    model = models.Instructor
    repository = "instructors"
    out_shape = schemas.InstructorOut
    msg = messages.INSTRUCTOR

    def validate(self, dto):
        if _blank(dto.name):
            return Failure(messages.NAME_REQUIRED.format(entity="Instructor"))
        return None


class StudentManager(EntityManager):
    model = models.Student
    repository = "students"
    out_shape = schemas.StudentOut
    msg = messages.STUDENT

    def validate(self, dto):
        if _blank(dto.name):
            return Failure(messages.NAME_REQUIRED.format(entity="Student"))
        return None


class CourseManager(DetailMixin, EntityManager):
    """Courses: name length, date ordering and active-name uniqueness."""
    model = models.Course
    repository = "courses"
    out_shape = schemas.CourseOut
    msg = messages.COURSE
    references = (("instructor_id", "instructors", "Instructor", False),)
    detail_mapper = staticmethod(mappers.course_detail)

    def validate(self, dto):
        if not 2 <= len(dto.course_name) <= 50:
            return Failure(messages.COURSE_NAME_LENGTH)
        if dto.end_date <= dto.start_date:
            return Failure(messages.COURSE_DATES)
        return None

    def check_unique(self, dto, current_id=None):
        if not dto.is_active:
            return None
        Course = models.Course
        criteria = [Course.course_name == dto.course_name, Course.is_active == True]  # noqa: E712
        if current_id is not None:
            criteria.append(Course.id != current_id)
        if self.repo.exists(*criteria):
            return Failure(messages.COURSE_NAME_TAKEN)
        return None


class LessonManager(DetailMixin, EntityManager):
    model = models.Lesson
    repository = "lessons"
    out_shape = schemas.LessonOut
    msg = messages.LESSON
    references = (("course_id", "courses", "Course", False),)
    detail_mapper = staticmethod(mappers.lesson_detail)

    def validate(self, dto):
        if _blank(dto.title):
            return Failure(messages.LESSON_TITLE_REQUIRED)
        return None


class ExamManager(DetailMixin, EntityManager):
    model = models.Exam
    repository = "exams"
    out_shape = schemas.ExamOut
    msg = messages.EXAM
    references = (("lesson_id", "lessons", "Lesson", True),)
    detail_mapper = staticmethod(mappers.exam_detail)

    def validate(self, dto):
        if _blank(dto.name):
            return Failure(messages.NAME_REQUIRED.format(entity="Exam"))
        return None


class ExamResultManager(DetailMixin, EntityManager):
    model = models.ExamResult
    repository = "exam_results"
    out_shape = schemas.ExamResultOut
    msg = messages.EXAM_RESULT
    references = (
        ("student_id", "students", "Student", False),
        ("exam_id", "exams", "Exam", False),
    )
    detail_mapper = staticmethod(mappers.exam_result_detail)


class RegistrationManager(DetailMixin, EntityManager):
    model = models.Registration
    repository = "registrations"
    out_shape = schemas.RegistrationOut
    msg = messages.REGISTRATION
    references = (
        ("course_id", "courses", "Course", False),
        ("student_id", "students", "Student", False),
    )
    detail_mapper = staticmethod(mappers.registration_detail)

    def validate(self, dto):
        if dto.price is not None and dto.price < 0:
            return Failure(messages.PRICE_NEGATIVE)
        return None


def _has_id(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _blank(value) -> bool:
    return not value or not str(value).strip()
