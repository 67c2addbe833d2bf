"""
Operation outcomes - Tagged results returned by the identity registry.

Callers branch on the outcome type instead of catching exceptions:

    outcome = registry.get(email)
    if isinstance(outcome, Ok):
        ...
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from .ports import UniqueField

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful operation carrying its result."""

    value: T


@dataclass(frozen=True)
class NotFound:
    """No record matches the identifying key."""

    key: object

    @property
    def message(self) -> str:
        if isinstance(self.key, int):
            return f"User with id {self.key} not found"
        return "User not found"


@dataclass(frozen=True)
class Conflict:
    """The requested write would violate a uniqueness constraint."""

    field: UniqueField
    value: object = None

    @property
    def message(self) -> str:
        if self.field == UniqueField.PHONE_NUMBER:
            return "Phone Number is already registered"
        return "Email is already registered"


@dataclass(frozen=True)
class Unauthorized:
    """Credentials did not match. Deliberately carries no detail."""

    @property
    def message(self) -> str:
        return "Invalid credentials"
