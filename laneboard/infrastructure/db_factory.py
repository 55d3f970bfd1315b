"""
Database connection factory utilities for laneboard.

Builds DSNs and connection pools from settings and applies per-transaction
timeouts. Pools are created on demand and owned by whoever created them; there
is no module-level connection state.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection, Cursor
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from laneboard.config import Settings, get_settings
from laneboard.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations such as schema setup. Prefer a pool for
    request traffic.

    Returns
    -------
    Connection
        A new psycopg connection instance.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(psycopg.OperationalError),
    reraise=True,
)
def create_pool(
    settings: Optional[Settings] = None,
    dsn: Optional[str] = None,
    wait_timeout: float = 10.0,
) -> ConnectionPool:
    """
    Open a synchronous connection pool and wait until it holds `min_size` connections.

    Parameters
    ----------
    settings : Settings, optional
        Source of DSN parts and pool sizes. Defaults to cached settings.
    dsn : str, optional
        Overrides the DSN built from settings.
    wait_timeout : float
        Seconds to wait for the initial connections before giving up.

    Returns
    -------
    ConnectionPool
        An open pool. The caller owns it and must close it.
    """
    settings = settings or get_settings()
    pool = ConnectionPool(
        conninfo=dsn or build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        open=True,
    )
    try:
        pool.wait(timeout=wait_timeout)
    except psycopg.OperationalError:
        pool.close()
        log.warning("Connection pool did not fill in time", extra={"timeout": wait_timeout})
        raise
    return pool


def apply_statement_timeout(cur: Cursor, timeout_ms: int, local: bool = True) -> None:
    """Bound how long any single statement may run."""
    cur.execute("SELECT set_config('statement_timeout', %s, %s)", (f"{int(timeout_ms)}ms", local))


def apply_lock_timeout(cur: Cursor, timeout_ms: int, local: bool = True) -> None:
    """Bound how long a statement may wait for a lock."""
    cur.execute("SELECT set_config('lock_timeout', %s, %s)", (f"{int(timeout_ms)}ms", local))


__all__ = [
    "apply_lock_timeout",
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "get_sync_connection",
]
