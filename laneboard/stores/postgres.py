"""
PostgreSQL record store.

Reads use short pooled connections. A transaction takes one
`pg_advisory_xact_lock` per lane, in a fixed lane order, before doing anything
else, so two rank changes touching the same lane never interleave their
shift reads and writes. Locks are released by COMMIT or ROLLBACK.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional

import psycopg
from psycopg import Cursor, errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from laneboard.config import Settings, get_settings
from laneboard.domain.errors import ConflictError, StorageError
from laneboard.domain.models import Lane, RankMutation, Record
from laneboard.infrastructure.db_factory import (
    apply_lock_timeout,
    apply_statement_timeout,
    create_pool,
)
from laneboard.stores.abstract import AbstractRecordStore, ordered_lanes
from laneboard.utils.logging import get_logger

log = get_logger(__name__)

# First key of the two-int advisory lock; the second is the lane's position.
LANE_LOCK_NAMESPACE = 0x4C414E45

_COLUMNS = "id, name, lane, rank, attributes, updated_at"
_CONFLICTS = (errors.LockNotAvailable, errors.SerializationFailure, errors.DeadlockDetected)


def lane_lock_key(lane: Lane) -> int:
    return list(Lane).index(lane)


def _to_record(row: Dict[str, Any]) -> Record:
    return Record(**row)


def _select(cur: Cursor, record_id: int, for_update: bool = False) -> Optional[Record]:
    sql = f"SELECT {_COLUMNS} FROM public.clients WHERE id = %s"
    if for_update:
        sql += " FOR UPDATE"
    cur.execute(sql, (record_id,))
    row = cur.fetchone()
    return _to_record(row) if row else None


def _scan(cur: Cursor, lane: Optional[Lane]) -> List[Record]:
    if lane is None:
        cur.execute(f"SELECT {_COLUMNS} FROM public.clients ORDER BY id")
    else:
        cur.execute(
            f"SELECT {_COLUMNS} FROM public.clients WHERE lane = %s ORDER BY rank, id",
            (lane.value,),
        )
    return [_to_record(row) for row in cur.fetchall()]


class _PostgresTransaction:
    def __init__(self, cur: Cursor, lanes: List[Lane]) -> None:
        self._cur = cur
        self._lanes = lanes
        self.writes = 0

    def fetch(self, record_id: int) -> Optional[Record]:
        return _select(self._cur, record_id, for_update=True)

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        return _scan(self._cur, lane)

    def write(self, mutation: RankMutation) -> None:
        if mutation.lane not in self._lanes:
            raise StorageError(
                long_message=f"Lane '{mutation.lane.value}' is not locked by this transaction.",
                record_id=mutation.record_id,
            )
        self._cur.execute(
            "UPDATE public.clients SET lane = %s, rank = %s, updated_at = now() WHERE id = %s",
            (mutation.lane.value, mutation.rank, mutation.record_id),
        )
        if self._cur.rowcount != 1:
            raise StorageError(
                long_message=f"Client {mutation.record_id} disappeared mid-transaction.",
                record_id=mutation.record_id,
            )
        self.writes += 1


class PostgresRecordStore(AbstractRecordStore):
    """
    Record store backed by the `clients` table.

    Parameters
    ----------
    settings : Settings, optional
        Pool sizes and timeouts. Defaults to cached settings.
    pool : ConnectionPool, optional
        Use an existing pool instead of creating one. The store closes only
        pools it created itself.
    dsn_override : str, optional
        Connect here instead of the DSN built from settings.
    """

    name: str = "postgres"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        pool: Optional[ConnectionPool] = None,
        dsn_override: Optional[str] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._dsn_override = dsn_override
        self._owns_pool = pool is None
        self._pool_instance: Optional[ConnectionPool] = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is None:
            try:
                self._pool_instance = create_pool(self._settings, dsn=self._dsn_override)
            except psycopg.Error as exc:
                raise StorageError(long_message=str(exc)) from exc
        return self._pool_instance

    @contextmanager
    def _reader(self) -> Iterator[Cursor]:
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._settings.db_statement_timeout_ms)
                    yield cur
        except psycopg.Error as exc:
            raise StorageError(long_message=str(exc)) from exc

    def fetch(self, record_id: int) -> Optional[Record]:
        with self._reader() as cur:
            return _select(cur, record_id)

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        with self._reader() as cur:
            return _scan(cur, lane)

    @contextmanager
    def transaction(self, lanes: Iterable[Lane]) -> Iterator[_PostgresTransaction]:
        locked = ordered_lanes(lanes)
        try:
            with self._get_pool().connection() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        apply_lock_timeout(cur, self._settings.db_lock_timeout_ms)
                        apply_statement_timeout(cur, self._settings.db_statement_timeout_ms)
                        for lane in locked:
                            cur.execute(
                                "SELECT pg_advisory_xact_lock(%s::int, %s::int)",
                                (LANE_LOCK_NAMESPACE, lane_lock_key(lane)),
                            )
                        txn = _PostgresTransaction(cur, locked)
                        yield txn
            log.debug(
                "Postgres transaction committed",
                extra={"lanes": [lane.value for lane in locked], "writes": txn.writes},
            )
        except _CONFLICTS as exc:
            raise ConflictError(long_message=str(exc)) from exc
        except psycopg.Error as exc:
            raise StorageError(long_message=str(exc)) from exc

    def close(self) -> None:
        if self._pool_instance is not None and self._owns_pool:
            self._pool_instance.close()
        self._pool_instance = None


__all__ = ["LANE_LOCK_NAMESPACE", "PostgresRecordStore", "lane_lock_key"]
