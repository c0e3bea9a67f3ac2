"""Administrative database connection helpers for the role reconciler.

SECURITY NOTES:
- Database credentials are never logged
- Error messages are sanitized before they reach logs
"""

from __future__ import annotations

import os
import re
import time
from typing import Any
from typing import Callable
from urllib.parse import quote

import psycopg
from sqlalchemy.engine import make_url

from pgrole.services.secrets import get_secret_json
from pgrole.utils.logging import get_logger

logger = get_logger(__name__)


def get_database_url() -> str:
    """Resolve the admin database URL from env or Secrets Manager."""

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    secret_arn = os.getenv("DATABASE_SECRET_ARN")
    if not secret_arn:
        raise RuntimeError("DATABASE_URL or DATABASE_SECRET_ARN is required")

    secret = get_secret_json(secret_arn)
    username = secret.get("username") or secret.get("user")
    password = secret.get("password")
    host = os.getenv("DATABASE_HOST") or secret.get("host")
    port = os.getenv("DATABASE_PORT") or secret.get("port") or 5432
    database = (
        os.getenv("DATABASE_NAME")
        or secret.get("dbname")
        or secret.get("database")
        or "postgres"
    )

    if not username or not password or not host:
        raise RuntimeError("Secret is missing database connection fields")

    return (
        "postgresql+psycopg://"
        f"{quote(str(username), safe='')}:{quote(str(password), safe='')}"
        f"@{host}:{port}/{database}?sslmode=require"
    )


def connect(database_url: str) -> psycopg.Connection:
    """Connect using keyword args to avoid DSN parsing issues."""
    try:
        url = make_url(database_url)
    except Exception:
        url = make_url(f"postgresql://{database_url}")

    connect_kwargs: dict[str, Any] = {
        "user": url.username,
        "password": url.password,
        "host": url.host,
        "port": url.port,
        "dbname": url.database,
    }
    sslmode = url.query.get("sslmode")
    if sslmode:
        connect_kwargs["sslmode"] = sslmode

    return psycopg.connect(
        **{key: value for key, value in connect_kwargs.items() if value is not None}
    )


def run_with_retry(
    func: Callable[..., Any],
    *args: Any,
    max_attempts: int = 10,
    delay: float = 5.0,
    max_delay: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
    retry_on: tuple[type[Exception], ...] = (psycopg.OperationalError,),
) -> Any:
    """Retry an operation while the database becomes reachable.

    Only connection-level errors in ``retry_on`` are retried; anything else,
    such as an invalid role name or a permission error, is raised at once.
    """
    func_name = getattr(func, "__name__", str(func))
    last_error: Exception | None = None
    for attempt in range(max_attempts):
        try:
            result = func(*args)
            logger.info(f"Operation {func_name} completed successfully")
            return result
        except retry_on as exc:
            logger.warning(
                f"Attempt {attempt + 1}/{max_attempts} for {func_name} failed",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "error_type": type(exc).__name__,
                    "error_message": sanitize_error_message(str(exc)),
                    "function": func_name,
                },
            )
            last_error = exc
            if attempt < max_attempts - 1:
                logger.info(f"Retrying {func_name} in {delay:.1f} seconds...")
                sleep(delay)
                delay = min(delay * 1.5, max_delay)
    if last_error:
        raise last_error
    return None


def sanitize_error_message(msg: str) -> str:
    """Remove potential secrets from error messages."""
    msg = re.sub(r"://[^:]+:[^@]+@", "://***:***@", msg)
    msg = re.sub(r"PASSWORD\s+'[^']*'", "PASSWORD '***'", msg, flags=re.IGNORECASE)
    msg = re.sub(r"password=\S+", "password=***", msg)
    return msg
