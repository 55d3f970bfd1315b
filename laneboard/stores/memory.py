"""
In-process record store.

Keeps records in a dict guarded by one lock per lane. Transactions stage their
writes on a private overlay and publish them in a single swap at commit, so a
failure at any point leaves the published rows untouched. Used for tests,
demos and embedding without a database.
"""

from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional

from laneboard.domain.errors import StorageError
from laneboard.domain.models import Lane, RankMutation, Record
from laneboard.stores.abstract import AbstractRecordStore, ordered_lanes
from laneboard.utils.logging import get_logger

log = get_logger(__name__)


def _sorted(records: Iterable[Record], lane: Optional[Lane]) -> List[Record]:
    if lane is None:
        return sorted(records, key=lambda r: r.id)
    return sorted((r for r in records if r.lane is lane), key=lambda r: (r.rank, r.id))


class _MemoryTransaction:
    def __init__(self, store: "MemoryRecordStore", lanes: List[Lane]) -> None:
        self._store = store
        self._lanes = lanes
        self._staged: Dict[int, Record] = {}

    def _view(self) -> Dict[int, Record]:
        rows = self._store._snapshot()
        rows.update(self._staged)
        return rows

    def fetch(self, record_id: int) -> Optional[Record]:
        staged = self._staged.get(record_id)
        if staged is not None:
            return staged
        return self._store.fetch(record_id)

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        return _sorted(self._view().values(), lane)

    def write(self, mutation: RankMutation) -> None:
        if mutation.lane not in self._lanes:
            raise StorageError(
                long_message=f"Lane '{mutation.lane.value}' is not locked by this transaction.",
                record_id=mutation.record_id,
            )
        current = self.fetch(mutation.record_id)
        if current is None:
            raise StorageError(
                long_message=f"Client {mutation.record_id} disappeared mid-transaction.",
                record_id=mutation.record_id,
            )
        self._staged[mutation.record_id] = current.model_copy(
            update={
                "lane": mutation.lane,
                "rank": mutation.rank,
                "updated_at": datetime.now(timezone.utc),
            }
        )

    def commit(self) -> int:
        self._store._publish(self._staged)
        return len(self._staged)


class MemoryRecordStore(AbstractRecordStore):
    """
    Thread-safe in-process store.

    Parameters
    ----------
    records : iterable of Record
        Initial contents. Ids must be unique.
    """

    name: str = "memory"

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._rows: Dict[int, Record] = {}
        for record in records:
            if record.id in self._rows:
                raise ValueError(f"Duplicate client id {record.id}")
            self._rows[record.id] = record
        self._data_lock = threading.Lock()
        self._lane_locks = {lane: threading.Lock() for lane in Lane}

    def _snapshot(self) -> Dict[int, Record]:
        with self._data_lock:
            return dict(self._rows)

    def _publish(self, staged: Dict[int, Record]) -> None:
        with self._data_lock:
            self._rows.update(staged)

    def fetch(self, record_id: int) -> Optional[Record]:
        with self._data_lock:
            return self._rows.get(record_id)

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        return _sorted(self._snapshot().values(), lane)

    @contextmanager
    def transaction(self, lanes: Iterable[Lane]) -> Iterator[_MemoryTransaction]:
        locked = ordered_lanes(lanes)
        with ExitStack() as stack:
            for lane in locked:
                stack.enter_context(self._lane_locks[lane])
            txn = _MemoryTransaction(self, locked)
            yield txn
            written = txn.commit()
            log.debug(
                "Memory transaction committed",
                extra={"lanes": [lane.value for lane in locked], "writes": written},
            )


__all__ = ["MemoryRecordStore"]
