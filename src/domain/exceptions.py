"""
Domain exceptions - Semantic error types raised across the persistence port.

Expected failures (missing user, taken email) are returned as outcome
values by the registry. Exceptions are reserved for conditions detected
below the domain, such as a storage unique constraint firing after the
registry's own pre-check passed.
"""


class IdentityError(Exception):
    """Base class for identity domain errors."""

    pass


class DuplicateField(IdentityError):
    """A storage-level uniqueness constraint rejected a write."""

    def __init__(self, field: str, value: object = None) -> None:
        super().__init__(f"Duplicate value for {field}")
        self.field = field
        self.value = value
