"""Result values returned by services for expected business-rule outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Kinds of expected service failures."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Rejected operation with a human-readable message."""

    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Success[T] | Failure
