"""
Test doubles for the domain ports.

InMemoryUserRepository enforces the same uniqueness rules as the users
table constraints, raising DuplicateField like the Postgres adapter.
"""

import copy
from datetime import datetime, timezone
from typing import Any

from src.domain.exceptions import DuplicateField
from src.domain.ports import PrivateFile, User, UserCandidate

UNIQUE_COLUMNS = ("email", "phone_number")


class InMemoryUserRepository:
    """
    Implements UserRepository protocol with a dict keyed by id.

    Returned users are copies, so callers mutating them does not
    change stored state until save() is called.
    """

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.files: dict[int, list[PrivateFile]] = {}
        self._next_id = 1
        self._next_file_id = 1

    def _check_unique(self, values: dict[str, Any], exclude_id: int | None = None) -> None:
        for column in UNIQUE_COLUMNS:
            if column not in values:
                continue
            for user in self.users.values():
                if user.id != exclude_id and getattr(user, column) == values[column]:
                    raise DuplicateField(column, values[column])

    def find_one(self, **criteria: Any) -> User | None:
        ((column, value),) = criteria.items()
        for user in self.users.values():
            if getattr(user, column) == value:
                return copy.deepcopy(user)
        return None

    def find_with_files(self, user_id: int) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        loaded = copy.deepcopy(user)
        loaded.files = list(self.files.get(user_id, []))
        return loaded

    def find_all(self) -> list[User]:
        return [copy.deepcopy(user) for user in self.users.values()]

    def create(self, candidate: UserCandidate) -> User:
        self._check_unique({"email": candidate.email, "phone_number": candidate.phone_number})
        now = datetime.now(timezone.utc)
        user = User(
            id=self._next_id,
            email=candidate.email,
            phone_number=candidate.phone_number,
            password=candidate.password,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self.users[user.id] = user
        return copy.deepcopy(user)

    def save(self, user: User) -> User:
        self._check_unique(
            {"email": user.email, "phone_number": user.phone_number}, exclude_id=user.id
        )
        stored = copy.deepcopy(user)
        stored.files = []
        stored.updated_at = datetime.now(timezone.utc)
        self.users[user.id] = stored
        return copy.deepcopy(stored)

    def update(self, criteria: dict[str, Any], patch: dict[str, Any]) -> int:
        ((column, value),) = criteria.items()
        matches = [user for user in self.users.values() if getattr(user, column) == value]
        for user in matches:
            self._check_unique(patch, exclude_id=user.id)
            for name, new_value in patch.items():
                setattr(user, name, new_value)
            user.updated_at = datetime.now(timezone.utc)
        return len(matches)

    def delete(self, **criteria: Any) -> int:
        ((column, value),) = criteria.items()
        doomed = [user.id for user in self.users.values() if getattr(user, column) == value]
        for user_id in doomed:
            del self.users[user_id]
            self.files.pop(user_id, None)
        return len(doomed)

    def add_file(self, owner_id: int, key: str) -> PrivateFile:
        """Attach a private file to a stored user."""
        private_file = PrivateFile(id=self._next_file_id, key=key, owner_id=owner_id)
        self._next_file_id += 1
        self.files.setdefault(owner_id, []).append(private_file)
        return private_file


def make_candidate(
    email: str = "a@x.com",
    phone_number: str = "+1",
    password: str = "hashed-p",
    **extra: Any,
) -> UserCandidate:
    """Build a registration candidate with sensible defaults."""
    return UserCandidate(email=email, phone_number=phone_number, password=password, **extra)
