"""
Identity registry domain service - User lifecycle and uniqueness guards.

This module owns the rules every user write must obey:

- Email is unique across all stored users
- Phone number is unique across all stored users
- The generic update never touches the stored credential
- Confirming email or phone marks the account VERIFIED, and nothing
  moves it back to UNVERIFIED

Uniqueness is checked here before each write, but the check and the write
are not atomic. Two concurrent registrations for the same email can both
pass the pre-check; the storage unique constraint is the authoritative
guard, and the repository reports it as DuplicateField, which is turned
into the same Conflict outcome as the pre-check would have produced.

Every operation returns an outcome value (Ok, NotFound, Conflict,
Unauthorized) rather than raising. Infrastructure errors propagate.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any

from .exceptions import DuplicateField
from .outcomes import Conflict, NotFound, Ok, Unauthorized
from .ports import (
    AccountStatus,
    PasswordHasher,
    PrivateFile,
    UniqueField,
    User,
    UserCandidate,
    UserRepository,
)

logger = logging.getLogger(__name__)

# The only columns the generic update may write
PROFILE_FIELDS = ("email", "phone_number", "first_name", "last_name")


@dataclass
class IdentityRegistry:
    """
    Domain service for user records.

    Takes its persistence port and password hasher explicitly; nothing is
    resolved from an ambient container.
    """

    repository: UserRepository
    hasher: PasswordHasher

    def register(self, candidate: UserCandidate) -> Ok[User] | Conflict:
        """
        Register a new user.

        Email is checked before phone number; the first violated check
        determines the reported conflict.

        Args:
            candidate: Registration data with an already hashed password

        Returns:
            Ok(User) with the stored record, or Conflict(field)
        """
        email = self._normalize_email(candidate.email)

        if self.repository.find_one(email=email) is not None:
            logger.info("Registration rejected: email already registered")
            return Conflict(UniqueField.EMAIL, email)

        if self.repository.find_one(phone_number=candidate.phone_number) is not None:
            logger.info("Registration rejected: phone number already registered")
            return Conflict(UniqueField.PHONE_NUMBER, candidate.phone_number)

        try:
            user = self.repository.create(replace(candidate, email=email))
        except DuplicateField as exc:
            logger.info("Registration lost uniqueness race on %s", exc.field)
            return Conflict(UniqueField(exc.field), exc.value)

        logger.info("Registered user id=%s", user.id)
        return Ok(user)

    def get(self, email: str) -> Ok[User] | NotFound:
        """Find a user by email."""
        email = self._normalize_email(email)
        user = self.repository.find_one(email=email)
        if user is None:
            return NotFound(email)
        return Ok(user)

    def list_all(self) -> list[User]:
        return self.repository.find_all()

    def update(self, email: str, patch: dict[str, Any]) -> Ok[User] | NotFound | Conflict:
        """
        Update non-credential fields of a user.

        Only profile fields are written; password, status and confirmation
        flags in patch are discarded. A new email or phone number is a
        conflict only when it belongs to a different record.

        Args:
            email: Email identifying the user to update
            patch: Field name -> new value

        Returns:
            Ok(User) re-read after the write, NotFound, or Conflict(field)
        """
        email = self._normalize_email(email)
        user = self.repository.find_one(email=email)
        if user is None:
            return NotFound(email)

        changes = {key: value for key, value in patch.items() if key in PROFILE_FIELDS}

        for unique in UniqueField:
            if unique.value not in changes:
                continue
            if changes[unique.value] is None:
                # Unique columns are required; a null in the patch means "unchanged"
                del changes[unique.value]
                continue
            if unique is UniqueField.EMAIL:
                changes["email"] = self._normalize_email(changes["email"])
            owner = self.repository.find_one(**{unique.value: changes[unique.value]})
            if owner is not None and owner.id != user.id:
                logger.info("Update of user id=%s rejected: %s taken", user.id, unique.value)
                return Conflict(unique, changes[unique.value])

        if not changes:
            return self._refreshed(user.id, email)

        try:
            outcome = self._write(user.id, changes, email)
        except DuplicateField as exc:
            logger.info("Update of user id=%s lost uniqueness race on %s", user.id, exc.field)
            return Conflict(UniqueField(exc.field), exc.value)
        if isinstance(outcome, Ok):
            logger.info("Updated user id=%s fields=%s", user.id, sorted(changes))
        return outcome

    def change_password(self, email: str, new_password: str) -> Ok[User] | NotFound:
        """
        Replace the stored credential.

        new_password is stored as given; hashing is the caller's job.
        """
        email = self._normalize_email(email)
        user = self.repository.find_one(email=email)
        if user is None:
            return NotFound(email)

        outcome = self._write(user.id, {"password": new_password}, email)
        if isinstance(outcome, Ok):
            logger.info("Password changed for user id=%s", user.id)
        return outcome

    def confirm_email(self, email: str) -> Ok[User] | NotFound:
        """Mark email as confirmed and the account as VERIFIED (idempotent)."""
        email = self._normalize_email(email)
        user = self.repository.find_one(email=email)
        if user is None:
            return NotFound(email)

        return self._write(
            user.id, {"is_email_confirmed": True, "status": AccountStatus.VERIFIED}, email
        )

    def confirm_phone(self, email: str) -> Ok[User] | NotFound:
        """Mark phone number as confirmed and the account as VERIFIED (idempotent)."""
        email = self._normalize_email(email)
        user = self.repository.find_one(email=email)
        if user is None:
            return NotFound(email)

        return self._write(
            user.id, {"is_phone_number_confirmed": True, "status": AccountStatus.VERIFIED}, email
        )

    def delete(self, email: str) -> Ok[str] | NotFound:
        """
        Delete a user.

        Returns:
            Ok(email) if a record was removed, NotFound if none matched
        """
        email = self._normalize_email(email)
        if not self.repository.delete(email=email):
            return NotFound(email)
        logger.info("Deleted user %s", email)
        return Ok(email)

    def list_private_files(self, user_id: int) -> Ok[list[PrivateFile]] | NotFound:
        user = self.repository.find_with_files(user_id)
        if user is None:
            return NotFound(user_id)
        return Ok(user.files)

    def authenticate(self, email: str, password: str) -> Ok[User] | Unauthorized:
        """
        Check a plaintext password against the stored credential.

        The hasher runs exactly once whether or not the user exists, so
        response time does not reveal account existence. Unknown email and
        wrong password produce the same Unauthorized outcome.
        """
        user = self.repository.find_one(email=self._normalize_email(email))
        stored = user.password if user is not None else None

        if not self.hasher.verify(password, stored) or user is None:
            return Unauthorized()
        return Ok(user)

    def _write(self, user_id: int, changes: dict[str, Any], key: str) -> Ok[User] | NotFound:
        """
        Write only the given columns of one row, then re-read it.

        The row is targeted by id and no other column is touched, so values
        written concurrently by other requests survive.
        """
        if not self.repository.update({"id": user_id}, changes):
            # Deleted between the lookup and the write
            return NotFound(key)
        return self._refreshed(user_id, key)

    def _refreshed(self, user_id: int, key: str) -> Ok[User] | NotFound:
        refreshed = self.repository.find_one(id=user_id)
        if refreshed is None:
            return NotFound(key)
        return Ok(refreshed)

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for consistent storage and lookup.

        Applies: strip whitespace + lowercase
        """
        return email.strip().lower()
