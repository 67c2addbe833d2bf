"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresUserRepository
from src.adapters.security.bcrypt_hasher import BcryptPasswordHasher
from src.config.settings import get_settings
from src.domain.registry import IdentityRegistry


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresUserRepository(pool)


@lru_cache
def get_password_hasher() -> BcryptPasswordHasher:
    """Get bcrypt hasher configured from settings (singleton)."""
    return BcryptPasswordHasher(cost=get_settings().bcrypt_cost)


def get_identity_registry(
    repository: PostgresUserRepository = Depends(get_repository),
    hasher: BcryptPasswordHasher = Depends(get_password_hasher),
) -> IdentityRegistry:
    """
    Create identity registry with injected dependencies.

    Wires together the repository and password hasher for the domain service.
    """
    return IdentityRegistry(repository=repository, hasher=hasher)


# HTTP BASIC AUTH security scheme for OpenAPI documentation
http_basic = HTTPBasic()


def get_basic_auth_credentials(
    credentials: HTTPBasicCredentials = Depends(http_basic),
) -> tuple[str, str]:
    """
    Extract and normalize credentials from HTTP BASIC AUTH header.

    FastAPI's HTTPBasic automatically:
    - Returns 401 for missing Authorization header
    - Returns 401 for malformed base64 encoding
    - Parses base64(email:password) format

    Args:
        credentials: HTTPBasicCredentials from FastAPI's HTTPBasic

    Returns:
        Tuple of (normalized_email, password)
        Email is stripped and lowercased for consistency.
    """
    email = credentials.username.strip().lower()
    password = credentials.password
    return email, password
