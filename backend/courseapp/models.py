"""SQLModel data models.

This module defines the persisted entities of the course records
backend. Every table uses a string primary key (uuid4 hex) so request
handlers can pass raw id strings straight into the managers.

Relationships are many-to-one from the "detail" side and are declared
with `lazy="raise_on_sql"`: touching a relation that was not loaded by
the query itself raises instead of quietly issuing one query per row.
Detail reads load them with `joinedload` (see `repositories`).
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, Relationship

NO_LAZY_SQL = {"lazy": "raise_on_sql"}


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Instructor(SQLModel, table=True):
    """A course instructor."""
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    surname: Optional[str] = None
    email: Optional[str] = None
    professional: Optional[str] = None


class Student(SQLModel, table=True):
    """A student that registers to courses and sits exams."""
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    surname: Optional[str] = None
    birth_date: Optional[datetime] = None
    tc_no: Optional[str] = None


class Course(SQLModel, table=True):
    """A course run by one instructor between `start_date` and `end_date`.

    `course_name` must be unique among active courses; the check lives in
    the course manager, not in the schema, because inactive courses may
    reuse a name.
    """
    id: str = Field(default_factory=_new_id, primary_key=True)
    course_name: str = Field(index=True)
    created_date: datetime = Field(default_factory=_utcnow)
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    instructor_id: str = Field(foreign_key="instructor.id", index=True)
    instructor: Optional[Instructor] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)


class Lesson(SQLModel, table=True):
    """A single lesson belonging to a course."""
    id: str = Field(default_factory=_new_id, primary_key=True)
    title: str
    date: Optional[datetime] = None
    duration: Optional[int] = None
    content: Optional[str] = None
    time: Optional[str] = None
    course_id: str = Field(foreign_key="course.id", index=True)
    course: Optional[Course] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)


class Exam(SQLModel, table=True):
    """An exam, optionally tied to the lesson it covers."""
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    date: Optional[datetime] = None
    points: Optional[int] = None
    lesson_id: Optional[str] = Field(default=None, foreign_key="lesson.id", index=True)
    lesson: Optional[Lesson] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)


class ExamResult(SQLModel, table=True):
    """The grade a student scored on an exam."""
    id: str = Field(default_factory=_new_id, primary_key=True)
    grade: int
    student_id: str = Field(foreign_key="student.id", index=True)
    exam_id: str = Field(foreign_key="exam.id", index=True)
    student: Optional[Student] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)
    exam: Optional[Exam] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)


class Registration(SQLModel, table=True):
    """A student's registration to a course.

    `price` is optional; when present it must be non-negative.
    """
    id: str = Field(default_factory=_new_id, primary_key=True)
    registration_date: datetime = Field(default_factory=_utcnow)
    price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    course_id: str = Field(foreign_key="course.id", index=True)
    student_id: str = Field(foreign_key="student.id", index=True)
    course: Optional[Course] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)
    student: Optional[Student] = Relationship(sa_relationship_kwargs=NO_LAZY_SQL)
