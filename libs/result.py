"""Result type shared by use cases

Use cases return Result[T] instead of raising for expected outcomes.
Business and validation failures travel as Error values; infrastructure
failures are caught at the use case boundary and tagged as such.
"""

from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Kind of failure carried by an Error"""
    VALIDATION = "validation"          # Bad input shape, never retried
    BUSINESS = "business"              # Rule violation, user displayable
    INFRASTRUCTURE = "infrastructure"  # DB/network failure


class Error(BaseModel):
    code: str
    message: str
    reason: Optional[str] = None
    category: ErrorCategory = ErrorCategory.BUSINESS
    details: Optional[Dict[str, Any]] = Field(default=None)

    @property
    def is_infrastructure(self) -> bool:
        return self.category == ErrorCategory.INFRASTRUCTURE


class Result(Generic[T]):
    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result holds an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Optional[Error]:
        return self._error

    def __repr__(self) -> str:
        if self.is_ok():
            return f"Ok({self._value!r})"
        return f"Err({self._error.code})"


class Return:
    @staticmethod
    def ok(value: T = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result[Any]:
        return Result(error=error)
