"""Idempotent PostgreSQL role management used by the role reconciler."""

from __future__ import annotations

from typing import Any
from typing import Optional

from psycopg import sql

from pgrole.exceptions import ReconciliationError
from pgrole.utils.logging import get_logger

logger = get_logger(__name__)

# NAMEDATALEN - 1
MAX_IDENTIFIER_LENGTH = 63

_CREATE_ROLE = sql.SQL("CREATE ROLE {} WITH LOGIN PASSWORD {}")
_ALTER_ROLE = sql.SQL("ALTER ROLE {} WITH LOGIN PASSWORD {}")


def validate_role_name(role_name: str) -> str:
    """Ensure a role name is a usable PostgreSQL identifier."""
    if not role_name or not role_name.strip():
        raise ReconciliationError("Role name is required")
    if "\x00" in role_name:
        raise ReconciliationError("Role name contains a NUL byte", role_name)
    if len(role_name.encode("utf-8")) > MAX_IDENTIFIER_LENGTH:
        raise ReconciliationError(
            f"Role name exceeds {MAX_IDENTIFIER_LENGTH} bytes",
            role_name,
        )
    return role_name


def role_exists(cursor: Any, role_name: str) -> bool:
    cursor.execute("SELECT 1 FROM pg_roles WHERE rolname = %s", (role_name,))
    return cursor.fetchone() is not None


def database_exists(cursor: Any, database_name: str) -> bool:
    cursor.execute("SELECT 1 FROM pg_database WHERE datname = %s", (database_name,))
    return cursor.fetchone() is not None


def ensure_role(
    connection: Any,
    role_name: str,
    password: str,
    database_name: Optional[str] = None,
) -> bool:
    """Create the role or reset its password, then grant connect.

    Safe to call repeatedly with the same arguments.

    Returns:
        True if the role was created, False if it already existed.
    """
    validate_role_name(role_name)
    with connection.cursor() as cursor:
        created = not role_exists(cursor, role_name)
        # ROLE statements do not accept bind parameters
        statement = _CREATE_ROLE if created else _ALTER_ROLE
        cursor.execute(
            statement.format(
                sql.Identifier(role_name),
                sql.Literal(password),
            )
        )
        logger.info(
            "Created database role" if created else "Updated database role",
            extra={"db_role": role_name},
        )

        if database_name:
            if database_exists(cursor, database_name):
                cursor.execute(
                    sql.SQL("GRANT CONNECT ON DATABASE {} TO {}").format(
                        sql.Identifier(database_name),
                        sql.Identifier(role_name),
                    )
                )
                logger.info(
                    "Granted connect privilege",
                    extra={"db_role": role_name, "database": database_name},
                )
            else:
                logger.info(
                    "Database does not exist, skipping connect grant",
                    extra={"db_role": role_name, "database": database_name},
                )
    connection.commit()
    return created


def drop_role(
    connection: Any,
    role_name: str,
    database_name: Optional[str] = None,
) -> bool:
    """Revoke connect and drop the role if it exists.

    Returns:
        True if a role was dropped.
    """
    validate_role_name(role_name)
    with connection.cursor() as cursor:
        if not role_exists(cursor, role_name):
            logger.info("Database role already absent", extra={"db_role": role_name})
            return False
        if database_name and database_exists(cursor, database_name):
            cursor.execute(
                sql.SQL("REVOKE CONNECT ON DATABASE {} FROM {}").format(
                    sql.Identifier(database_name),
                    sql.Identifier(role_name),
                )
            )
        cursor.execute(
            sql.SQL("DROP ROLE IF EXISTS {}").format(sql.Identifier(role_name))
        )
    connection.commit()
    logger.info("Dropped database role", extra={"db_role": role_name})
    return True
