"""
Transaction coordination for rank changes.

All `{lane, rank}` writes go through TransactionCoordinator. A unit of work
holds the locks of its lanes from the first read to commit; a RankPlan is
written inside it as displacements first and the target last, and either all
of it becomes visible or none of it does.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from laneboard.domain.errors import LaneboardError
from laneboard.domain.models import Lane, RankMutation, RankPlan, Record
from laneboard.stores.abstract import RecordStore, StoreTransaction, ordered_lanes
from laneboard.utils.logging import get_logger

log = get_logger(__name__)


class _TrackedTransaction:
    """Passes reads and writes through to a store transaction, counting writes."""

    def __init__(self, inner: StoreTransaction) -> None:
        self._inner = inner
        self.mutations = 0

    def fetch(self, record_id: int) -> Optional[Record]:
        return self._inner.fetch(record_id)

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        return self._inner.scan(lane)

    def write(self, mutation: RankMutation) -> None:
        self._inner.write(mutation)
        self.mutations += 1


class TransactionCoordinator:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @contextmanager
    def unit_of_work(
        self, lanes: Iterable[Lane], record_id: Optional[int] = None
    ) -> Iterator[StoreTransaction]:
        """
        Open a transaction serialized per lane.

        Commits when the block exits cleanly. Any exception, including a
        cancelled caller, rolls it back and is re-raised unchanged. Commit and
        rollback are logged with the lanes held, the record being changed (when
        given) and the number of writes issued.
        """
        ordered = ordered_lanes(lanes)
        locked = [lane.value for lane in ordered]
        start = time.perf_counter()
        tracked: Optional[_TrackedTransaction] = None
        try:
            with self._store.transaction(ordered) as txn:
                tracked = _TrackedTransaction(txn)
                yield tracked
        except LaneboardError as exc:
            mutations = tracked.mutations if tracked else 0
            log.warning(
                f"[ROLLBACK] {type(exc).__name__}: {exc.long_message} "
                f"record={record_id} mutations={mutations}",
                extra={
                    "lanes": locked,
                    "record_id": record_id,
                    "mutations": mutations,
                    "retryable": exc.retryable,
                },
            )
            raise
        except BaseException:
            mutations = tracked.mutations if tracked else 0
            log.warning(
                f"[ROLLBACK] aborted record={record_id} mutations={mutations}",
                extra={"lanes": locked, "record_id": record_id, "mutations": mutations},
            )
            raise
        log.info(
            "[COMMIT] lanes=%s record=%s mutations=%d",
            ",".join(locked),
            record_id,
            tracked.mutations,
            extra={
                "lanes": locked,
                "record_id": record_id,
                "mutations": tracked.mutations,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )

    def apply(self, plan: RankPlan, txn: Optional[StoreTransaction] = None) -> None:
        """
        Write every mutation of `plan`.

        With `txn` the writes join that open unit of work. Without it a new
        unit of work is opened for the plan's lane and committed here.
        """
        if txn is None:
            with self.unit_of_work([plan.lane], record_id=plan.target.record_id) as own:
                self._write(plan, own)
            return
        self._write(plan, txn)

    def _write(self, plan: RankPlan, txn: StoreTransaction) -> None:
        for mutation in plan.mutations:
            txn.write(mutation)
        log.debug(
            "Rank plan written",
            extra={
                "record_id": plan.target.record_id,
                "lane": plan.lane.value,
                "rank": plan.target.rank,
                "displaced": len(plan.displacements),
            },
        )


__all__ = ["TransactionCoordinator"]
