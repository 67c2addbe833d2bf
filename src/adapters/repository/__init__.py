"""Repository adapters - Database implementations."""

from .postgres import PostgresUserRepository, run_migrations

__all__ = ["PostgresUserRepository", "run_migrations"]
