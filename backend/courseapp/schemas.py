"""Pydantic request/response schemas used by the API.

These are the transfer shapes exchanged with the request layer. They are
kept separate from the SQLModel tables so persisted entities never leak
into responses; `mappers` converts between the two.

Every datetime that passes through a shape comes out timezone-aware in
UTC. A client date without an offset is taken to be UTC already.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Shape(BaseModel):
    """Base for every transfer shape."""

    @field_validator("*", mode="after")
    @classmethod
    def utc_dates(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value


class DeleteIn(Shape):
    """Body of every DELETE endpoint: only the id is needed."""
    id: str


class InstructorIn(Shape):
    """Payload for creating an instructor."""
    name: str
    surname: Optional[str] = None
    email: Optional[str] = None
    professional: Optional[str] = None


class InstructorUpdate(InstructorIn):
    id: str


class InstructorOut(InstructorUpdate):
    pass


class StudentIn(Shape):
    """Payload for creating a student."""
    name: str
    surname: Optional[str] = None
    birth_date: Optional[datetime] = None
    tc_no: Optional[str] = None


class StudentUpdate(StudentIn):
    id: str


class StudentOut(StudentUpdate):
    pass


class CourseIn(Shape):
    """Payload for creating a course. `end_date` must be after `start_date`."""
    course_name: str
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    instructor_id: str
    created_date: Optional[datetime] = None

    @field_validator("course_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return value.strip()


class CourseUpdate(CourseIn):
    id: str


class CourseOut(Shape):
    id: str
    course_name: str
    created_date: datetime
    start_date: datetime
    end_date: datetime
    is_active: bool
    instructor_id: str


class CourseDetailOut(CourseOut):
    """A course together with its instructor's name."""
    instructor_name: Optional[str] = None


class LessonIn(Shape):
    """Payload for creating a lesson."""
    title: str
    course_id: str
    date: Optional[datetime] = None
    duration: Optional[int] = None
    content: Optional[str] = None
    time: Optional[str] = None


class LessonUpdate(LessonIn):
    id: str


class LessonOut(LessonUpdate):
    pass


class LessonDetailOut(LessonOut):
    """A lesson together with its course's name."""
    course_name: Optional[str] = None


class ExamIn(Shape):
    """Payload for creating an exam."""
    name: str
    date: Optional[datetime] = None
    points: Optional[int] = None
    lesson_id: Optional[str] = None


class ExamUpdate(ExamIn):
    id: str


class ExamOut(ExamUpdate):
    pass


class ExamDetailOut(ExamOut):
    lesson_title: Optional[str] = None


class ExamResultIn(Shape):
    """Payload for recording an exam result."""
    grade: int
    student_id: str
    exam_id: str


class ExamResultUpdate(ExamResultIn):
    id: str


class ExamResultOut(ExamResultUpdate):
    pass


class ExamResultDetailOut(ExamResultOut):
    """An exam result with the student's and exam's names."""
    student_name: Optional[str] = None
    exam_name: Optional[str] = None


class RegistrationIn(Shape):
    """Payload for registering a student to a course."""
    course_id: str
    student_id: str
    price: Optional[Decimal] = None
    registration_date: Optional[datetime] = None


class RegistrationUpdate(RegistrationIn):
    id: str


class RegistrationOut(Shape):
    id: str
    course_id: str
    student_id: str
    price: Optional[Decimal] = None
    registration_date: datetime


class RegistrationDetailOut(RegistrationOut):
    """A registration with the course's and student's names."""
    course_name: Optional[str] = None
    student_name: Optional[str] = None
