"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
persistence port using psycopg3 with raw SQL.

Uniqueness enforcement:
----------------------
The users table carries UNIQUE constraints on email and phone_number.
The domain checks uniqueness before writing, but only the constraint is
race-free. When it fires, the UniqueViolation is translated into the
domain's DuplicateField using the constraint name, so concurrent
registrations surface as the same Conflict the pre-check would report.

Column names are never interpolated as text: criteria and patch keys are
checked against a whitelist and composed with psycopg.sql.Identifier.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any

from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import DuplicateField
from src.domain.ports import AccountStatus, PrivateFile, User, UserCandidate

logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id",
    "email",
    "phone_number",
    "password",
    "first_name",
    "last_name",
    "is_email_confirmed",
    "is_phone_number_confirmed",
    "status",
    "created_at",
    "updated_at",
)

# Columns a caller may write; id and timestamps are managed by the database
WRITABLE_COLUMNS = frozenset(USER_COLUMNS) - {"id", "created_at", "updated_at"}

_CONSTRAINT_FIELDS = {
    "users_email_key": "email",
    "users_phone_number_key": "phone_number",
}

_SELECT_LIST = sql.SQL(", ").join(sql.Identifier(column) for column in USER_COLUMNS)


@contextmanager
def _translate_unique_violation(values: dict[str, Any]) -> Iterator[None]:
    """
    Re-raise unique constraint violations on users as DuplicateField.

    Args:
        values: Column -> value being written, used to report the offending value
    """
    try:
        yield
    except UniqueViolation as exc:
        field = _CONSTRAINT_FIELDS.get(exc.diag.constraint_name or "")
        if field is None:
            raise
        raise DuplicateField(field, values.get(field)) from exc


def _to_db(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _row_to_user(row: dict[str, Any], files: list[PrivateFile] | None = None) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        phone_number=row["phone_number"],
        password=row["password"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        is_email_confirmed=row["is_email_confirmed"],
        is_phone_number_confirmed=row["is_phone_number_confirmed"],
        status=AccountStatus(row["status"]),
        files=files if files is not None else [],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _single_criterion(criteria: dict[str, Any]) -> tuple[str, Any]:
    """Validate an exact-match filter on exactly one known column."""
    if len(criteria) != 1:
        raise ValueError(f"Expected exactly one filter column, got {sorted(criteria)}")
    ((column, value),) = criteria.items()
    if column not in USER_COLUMNS:
        raise ValueError(f"Unknown users column: {column}")
    return column, _to_db(value)


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_one(self, **criteria: Any) -> User | None:
        column, value = _single_criterion(criteria)
        query = sql.SQL("SELECT {columns} FROM users WHERE {column} = %s").format(
            columns=_SELECT_LIST, column=sql.Identifier(column)
        )

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query, (value,))
            row = cursor.fetchone()

        return _row_to_user(row) if row is not None else None

    def find_with_files(self, user_id: int) -> User | None:
        """
        Find a user by id and load its private files.

        Both reads share one connection so the files belong to the same
        snapshot of the user row.
        """
        user_query = sql.SQL("SELECT {columns} FROM users WHERE id = %s").format(
            columns=_SELECT_LIST
        )
        files_query = "SELECT id, key, owner_id FROM private_files WHERE owner_id = %s ORDER BY id"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(user_query, (user_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            cursor.execute(files_query, (user_id,))
            files = [PrivateFile(**file_row) for file_row in cursor.fetchall()]

        return _row_to_user(row, files)

    def find_all(self) -> list[User]:
        query = sql.SQL("SELECT {columns} FROM users ORDER BY id").format(columns=_SELECT_LIST)

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()

        return [_row_to_user(row) for row in rows]

    def create(self, candidate: UserCandidate) -> User:
        """
        Insert a new user in UNVERIFIED state.

        Args:
            candidate: Registration data (password already hashed)

        Returns:
            The stored user, including database-assigned id and timestamps

        Raises:
            DuplicateField: If email or phone_number is already taken
        """
        query = sql.SQL(
            """
            INSERT INTO users (email, phone_number, password, first_name, last_name, status)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING {columns}
            """
        ).format(columns=_SELECT_LIST)
        params = (
            candidate.email,
            candidate.phone_number,
            candidate.password,
            candidate.first_name,
            candidate.last_name,
            AccountStatus.UNVERIFIED.value,
        )

        written = {"email": candidate.email, "phone_number": candidate.phone_number}
        with _translate_unique_violation(written):
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                conn.commit()

        return _row_to_user(row)

    def save(self, user: User) -> User:
        """
        Write every writable column of user back to its row.

        The whole row is overwritten, so values written by others since
        user was read are lost; use update() to change selected columns.

        Raises:
            DuplicateField: If the new email or phone_number is already taken
        """
        columns = sorted(WRITABLE_COLUMNS)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in columns
        )
        query = sql.SQL(
            "UPDATE users SET {assignments}, updated_at = NOW() WHERE id = %s RETURNING {columns}"
        ).format(assignments=assignments, columns=_SELECT_LIST)
        params = [_to_db(getattr(user, column)) for column in columns]
        params.append(user.id)

        written = {"email": user.email, "phone_number": user.phone_number}
        with _translate_unique_violation(written):
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, params)
                row = cursor.fetchone()
                conn.commit()

        if row is None:
            # Row vanished under us; hand back what the caller had
            return user
        return _row_to_user(row, user.files)

    def update(self, criteria: dict[str, Any], patch: dict[str, Any]) -> int:
        """
        Apply patch to rows matching criteria.

        Returns:
            Number of affected rows

        Raises:
            ValueError: If patch names a column that cannot be written
            DuplicateField: If the patch would duplicate email or phone_number
        """
        column, value = _single_criterion(criteria)
        unknown = set(patch) - WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update users columns: {sorted(unknown)}")
        if not patch:
            return 0

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in patch
        )
        query = sql.SQL(
            "UPDATE users SET {assignments}, updated_at = NOW() WHERE {column} = %s"
        ).format(assignments=assignments, column=sql.Identifier(column))
        params = [_to_db(new_value) for new_value in patch.values()]
        params.append(value)

        with _translate_unique_violation(patch):
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(query, params)
                conn.commit()
                return cursor.rowcount

    def delete(self, **criteria: Any) -> int:
        column, value = _single_criterion(criteria)
        query = sql.SQL("DELETE FROM users WHERE {column} = %s").format(
            column=sql.Identifier(column)
        )

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(query, (value,))
            conn.commit()
            return cursor.rowcount


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
