"""User-facing result messages, one pair per entity and operation."""

from dataclasses import dataclass

INVALID_PAYLOAD = "Request payload is missing or malformed."
INVALID_ID = "A valid id is required."


@dataclass(frozen=True)
class Messages:
    """Message table for one entity kind, e.g. `Messages("Course").create_ok`."""
    entity: str

    @property
    def list_ok(self) -> str:
        return f"{self.entity} list fetched successfully."

    @property
    def get_ok(self) -> str:
        return f"{self.entity} fetched successfully."

    @property
    def not_found(self) -> str:
        return f"{self.entity} not found."

    @property
    def detail_ok(self) -> str:
        return f"{self.entity} details fetched successfully."

    @property
    def create_ok(self) -> str:
        return f"{self.entity} created successfully."

    @property
    def create_failed(self) -> str:
        return f"{self.entity} could not be created."

    @property
    def update_ok(self) -> str:
        return f"{self.entity} updated successfully."

    @property
    def update_failed(self) -> str:
        return f"{self.entity} could not be updated."

    @property
    def delete_ok(self) -> str:
        return f"{self.entity} deleted successfully."

    @property
    def delete_failed(self) -> str:
        return f"{self.entity} could not be deleted."

    @property
    def mapping_failed(self) -> str:
        return f"{self.entity} data could not be translated."

    @property
    def persistence_failed(self) -> str:
        return f"{self.entity} changes could not be saved."


COURSE = Messages("Course")
INSTRUCTOR = Messages("Instructor")
STUDENT = Messages("Student")
LESSON = Messages("Lesson")
EXAM = Messages("Exam")
EXAM_RESULT = Messages("Exam result")
REGISTRATION = Messages("Registration")

COURSE_NAME_LENGTH = "Course name must be between 2 and 50 characters."
COURSE_NAME_TAKEN = "An active course with this name already exists."
COURSE_DATES = "End date must be after the start date."
NAME_REQUIRED = "{entity} name cannot be empty."
LESSON_TITLE_REQUIRED = "Lesson title cannot be empty."
PRICE_NEGATIVE = "Registration price cannot be negative."
REFERENCE_NOT_FOUND = "Referenced {entity} not found."
