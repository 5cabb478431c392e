"""Uniform operation outcome returned by every manager.

Callers branch on `success` only; expected business outcomes
(not found, invalid input, nothing persisted) are never raised.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    message: str = ""
    data: Optional[T] = None

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "") -> "Result[T]":
        return cls(True, message, data)

    @classmethod
    def fail(cls, message: str, data: Optional[T] = None) -> "Result[T]":
        return cls(False, message, data)

    def to_dict(self) -> dict[str, Any]:
        """Render the result for a JSON response body."""
        data = self.data
        if isinstance(data, list):
            data = [_dump(d) for d in data]
        elif data is not None:
            data = _dump(data)
        return {"success": self.success, "message": self.message, "data": data}


def _dump(value):
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


Success = Result.ok
Failure = Result.fail
