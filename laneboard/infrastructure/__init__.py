"""
Infrastructure package for laneboard.

Centralizes database connectivity concerns (DSN, pools, timeouts, schema).
Keep this layer focused on I/O and resource management, decoupled from the
ranking logic.
"""

from laneboard.infrastructure.db_factory import (
    apply_lock_timeout,
    apply_statement_timeout,
    build_dsn,
    create_pool,
    get_sync_connection,
)
from laneboard.infrastructure.schema import CLIENTS_DDL, ensure_schema

__all__ = [
    "CLIENTS_DDL",
    "apply_lock_timeout",
    "apply_statement_timeout",
    "build_dsn",
    "create_pool",
    "ensure_schema",
    "get_sync_connection",
]
