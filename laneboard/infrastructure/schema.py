"""
Table definition for the `clients` table.

There is deliberately no UNIQUE constraint on (lane, rank): a lane-only move
under the KEEP policy can leave two clients sharing a rank.
"""

from __future__ import annotations

from psycopg import Connection

from laneboard.domain.models import Lane

_LANE_CHECK = ", ".join(f"'{token}'" for token in Lane.tokens())

CLIENTS_DDL = f"""
CREATE TABLE IF NOT EXISTS public.clients (
    id          BIGINT PRIMARY KEY,
    name        TEXT NOT NULL DEFAULT '',
    lane        TEXT NOT NULL CHECK (lane IN ({_LANE_CHECK})),
    rank        INTEGER NOT NULL CHECK (rank > 0),
    attributes  JSONB NOT NULL DEFAULT '{{}}'::jsonb,
    updated_at  TIMESTAMPTZ
);
CREATE INDEX IF NOT EXISTS clients_lane_rank_idx ON public.clients (lane, rank);
"""


def ensure_schema(conn: Connection) -> None:
    """Create the clients table and its index if they do not exist."""
    with conn.cursor() as cur:
        cur.execute(CLIENTS_DDL)
    conn.commit()


__all__ = ["CLIENTS_DDL", "ensure_schema"]
