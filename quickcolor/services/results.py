"""
QuickColor Service Results
Value-or-error result type and the error taxonomy shared by all services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Machine-readable failure kinds returned to callers."""
    INVALID_COLOR = "INVALID_COLOR"
    INVALID_NAME = "INVALID_NAME"
    INVALID_COLORS = "INVALID_COLORS"
    NOT_FOUND = "NOT_FOUND"
    LIMIT_REACHED = "LIMIT_REACHED"
    COLOR_LIMIT = "COLOR_LIMIT"
    DUPLICATE_COLOR = "DUPLICATE_COLOR"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    INVALID_SETTING = "INVALID_SETTING"


class PersistenceError(Exception):
    """Raised when the backing store rejects a read or write, or holds corrupt data."""
    pass


class ColorParseError(ValueError):
    """Raised when a color string cannot be parsed."""
    pass


@dataclass
class ServiceResult(Generic[T]):
    """
    Result of a service operation.

    Expected failures (bad input, missing record, limit reached, storage
    failure) are reported here instead of being raised.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[ErrorCode] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: ErrorCode, error: str, **details: Any) -> "ServiceResult[T]":
        return cls(success=False, error=error, code=code, details=details)

    def __bool__(self) -> bool:
        return self.success
