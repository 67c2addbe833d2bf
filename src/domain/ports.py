"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the records the domain works with and the interfaces
(ports) it requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class AccountStatus(str, Enum):
    """
    Account verification status.

    UNVERIFIED -> VERIFIED happens when either the email or the phone
    number is confirmed. There is no automatic transition back.
    """

    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"


class UniqueField(str, Enum):
    """User attributes that must be unique across all stored users."""

    EMAIL = "email"
    PHONE_NUMBER = "phone_number"


@dataclass
class PrivateFile:
    """Reference to a privately stored file owned by a user."""

    id: int
    key: str
    owner_id: int


@dataclass
class UserCandidate:
    """Registration input. The password is already hashed by the caller."""

    email: str
    phone_number: str
    password: str
    first_name: str | None = None
    last_name: str | None = None


@dataclass
class User:
    """Stored user record."""

    id: int
    email: str
    phone_number: str
    password: str
    first_name: str | None = None
    last_name: str | None = None
    is_email_confirmed: bool = False
    is_phone_number_confirmed: bool = False
    status: AccountStatus = AccountStatus.UNVERIFIED
    files: list[PrivateFile] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserRepository(Protocol):
    """Port interface for user persistence."""

    def find_one(self, **criteria: Any) -> User | None:
        """
        Find a single user by exact match on one column.

        Args:
            **criteria: Exactly one column=value pair, e.g. email="a@x.com"

        Returns:
            Matching user or None
        """
        ...

    def find_with_files(self, user_id: int) -> User | None:
        """Find a user by id with its private files relation loaded."""
        ...

    def find_all(self) -> list[User]:
        """Return every stored user."""
        ...

    def create(self, candidate: UserCandidate) -> User:
        """
        Insert a new user record.

        Raises:
            DuplicateField: If the storage unique constraint rejects the row
        """
        ...

    def save(self, user: User) -> User:
        """
        Persist every column of an existing user record.

        Raises:
            DuplicateField: If the storage unique constraint rejects the row
        """
        ...

    def update(self, criteria: dict[str, Any], patch: dict[str, Any]) -> int:
        """
        Apply patch to the records matching criteria.

        Returns:
            Number of affected rows

        Raises:
            DuplicateField: If the storage unique constraint rejects the row
        """
        ...

    def delete(self, **criteria: Any) -> int:
        """
        Delete the records matching criteria.

        Returns:
            Number of affected rows (0 means no matching record)
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for credential hashing."""

    def hash(self, password: str) -> str:
        """Return an opaque hash of password suitable for storage."""
        ...

    def verify(self, password: str, hashed: str | None) -> bool:
        """
        Check password against a stored hash in constant time.

        A None hash (no stored credential) still costs one comparison
        and always returns False.
        """
        ...
