"""Result variants returned by store operations."""
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from models.errors import TransactionError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: TransactionError

    def is_ok(self) -> bool:
        return False

    def unwrap(self):
        """Raise the carried error; used at the HTTP boundary."""
        raise self.error


@dataclass(frozen=True)
class NotFound:
    """Delete target is absent. A normal outcome, not a failure."""

    id: str


Result = Union[Ok[T], Err]
