"""
Database helpers for PostgreSQL-backed tests.

Integration and adversarial tests run against a real PostgreSQL database
(via docker-compose). When the database is not reachable they are skipped.
"""

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


def open_test_pool() -> ConnectionPool:
    """Open a migrated pool against the configured database or skip."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    try:
        pool.wait(timeout=5.0)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    return pool


def clear_tables(pool: ConnectionPool) -> None:
    """Empty the users and private_files tables."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM private_files")
        conn.execute("DELETE FROM users")
        conn.commit()


def insert_private_file(pool: ConnectionPool, owner_id: int, key: str) -> int:
    """Attach a private file row to a user and return its id."""
    with pool.connection() as conn, conn.cursor() as cursor:
        cursor.execute(
            "INSERT INTO private_files (key, owner_id) VALUES (%s, %s) RETURNING id",
            (key, owner_id),
        )
        file_id = cursor.fetchone()[0]
        conn.commit()
    return file_id
