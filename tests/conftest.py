"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory user repository
- A low-cost bcrypt hasher
- An IdentityRegistry wired to both
"""

import pytest

from src.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from src.domain.registry import IdentityRegistry
from tests.fakes import InMemoryUserRepository


@pytest.fixture
def repository() -> InMemoryUserRepository:
    """Fresh in-memory repository for each test."""
    return InMemoryUserRepository()


@pytest.fixture(scope="session")
def hasher() -> BcryptPasswordHasher:
    """bcrypt hasher at the library minimum cost to keep tests fast."""
    return BcryptPasswordHasher(cost=4)


@pytest.fixture
def registry(repository: InMemoryUserRepository, hasher: BcryptPasswordHasher) -> IdentityRegistry:
    """Identity registry wired to the in-memory repository."""
    return IdentityRegistry(repository=repository, hasher=hasher)
