"""Entity <-> transfer-shape translation.

Every function here is total and side-effect free: when a translation is
impossible it logs a warning and returns `None`, and managers report
that as a mapping failure instead of raising.
"""

import logging
from typing import Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlmodel import SQLModel

from . import models, schemas

logger = logging.getLogger("courseapp.mappers")

ShapeT = TypeVar("ShapeT", bound=BaseModel)
EntityT = TypeVar("EntityT", bound=SQLModel)


def to_entity(model: Type[EntityT], shape: Optional[BaseModel]) -> Optional[EntityT]:
    """Build a new (transient) `model` instance from an incoming shape.

    Unset optional fields are left to the model's defaults, so ids and
    creation timestamps are generated here.
    """
    if shape is None:
        return None
    try:
        return model.model_validate(shape.model_dump(exclude_none=True))
    except ValidationError as exc:
        logger.warning("cannot map %s to %s: %s", type(shape).__name__, model.__name__, exc)
        return None


def copy_onto(entity: EntityT, shape: BaseModel, exclude: Iterable[str] = ("id",)) -> EntityT:
    """Copy the shape's fields onto a tracked entity in place."""
    for field, value in shape.model_dump(exclude=set(exclude)).items():
        if value is None and field in _DEFAULTED:
            continue
        setattr(entity, field, value)
    return entity


# columns that keep their stored value when an update omits them
_DEFAULTED = {"created_date", "registration_date"}


def to_shape(shape_cls: Type[ShapeT], entity: Optional[SQLModel], **extra) -> Optional[ShapeT]:
    """Read `shape_cls`'s fields off `entity`; `extra` fills derived fields."""
    if entity is None:
        return None
    values = {name: getattr(entity, name) for name in shape_cls.model_fields if name not in extra and hasattr(entity, name)}
    values.update(extra)
    try:
        return shape_cls.model_validate(values)
    except ValidationError as exc:
        logger.warning("cannot map %s to %s: %s", type(entity).__name__, shape_cls.__name__, exc)
        return None


def to_shapes(shape_cls: Type[ShapeT], entities: Iterable[SQLModel]) -> Optional[List[ShapeT]]:
    """Map a sequence; `None` if any single entity fails to map."""
    out = []
    for entity in entities:
        shape = to_shape(shape_cls, entity)
        if shape is None:
            return None
        out.append(shape)
    return out


# Detail shapes. Relations are already loaded by the detail query; these
# only read them.

def course_detail(course: models.Course) -> Optional[schemas.CourseDetailOut]:
    instructor = course.instructor
    return to_shape(schemas.CourseDetailOut, course, instructor_name=instructor.name if instructor else None)


def lesson_detail(lesson: models.Lesson) -> Optional[schemas.LessonDetailOut]:
    course = lesson.course
    return to_shape(schemas.LessonDetailOut, lesson, course_name=course.course_name if course else None)


def exam_detail(exam: models.Exam) -> Optional[schemas.ExamDetailOut]:
    lesson = exam.lesson
    return to_shape(schemas.ExamDetailOut, exam, lesson_title=lesson.title if lesson else None)


def exam_result_detail(result: models.ExamResult) -> Optional[schemas.ExamResultDetailOut]:
    student, exam = result.student, result.exam
    return to_shape(
        schemas.ExamResultDetailOut,
        result,
        student_name=_full_name(student),
        exam_name=exam.name if exam else None,
    )


def registration_detail(registration: models.Registration) -> Optional[schemas.RegistrationDetailOut]:
    course, student = registration.course, registration.student
    return to_shape(
        schemas.RegistrationDetailOut,
        registration,
        course_name=course.course_name if course else None,
        student_name=_full_name(student),
    )


def _full_name(person) -> Optional[str]:
    if person is None:
        return None
    return " ".join(part for part in (person.name, person.surname) if part)
