"""
Domain layer - Pure business logic with zero framework imports.

This package contains the identity registry: user records, their
uniqueness invariants, and the port interfaces it requires from
infrastructure, ensuring true hexagonal architecture decoupling.
"""

from .exceptions import DuplicateField, IdentityError
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
from .registry import IdentityRegistry

__all__ = [
    "AccountStatus",
    "Conflict",
    "DuplicateField",
    "IdentityError",
    "IdentityRegistry",
    "NotFound",
    "Ok",
    "PasswordHasher",
    "PrivateFile",
    "Unauthorized",
    "UniqueField",
    "User",
    "UserCandidate",
    "UserRepository",
]
