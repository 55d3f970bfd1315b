"""
Rank allocation against a live store.

RankAllocator resolves the record, locks the lanes involved, re-reads the
lane under the lock, plans the displacement and writes it through the
TransactionCoordinator. It keeps no state between calls.
"""

from __future__ import annotations

from typing import Optional

from laneboard.config import LaneMovePolicy, RankPolicy, Settings, get_settings
from laneboard.coordinator import TransactionCoordinator
from laneboard.domain.allocator import plan_change
from laneboard.domain.errors import ConflictError
from laneboard.domain.models import ChangeLane, LaneChange, Record, target_lane
from laneboard.queries import LaneQueryService
from laneboard.stores.abstract import RecordStore
from laneboard.utils.logging import get_logger

log = get_logger(__name__)


class RankAllocator:
    """
    Place a record at a requested lane and rank.

    Parameters
    ----------
    store : RecordStore
        Store to read from and write through.
    rank_policy : RankPolicy, optional
        Defaults to the configured policy.
    lane_move_policy : LaneMovePolicy, optional
        Defaults to the configured policy.
    """

    def __init__(
        self,
        store: RecordStore,
        rank_policy: Optional[RankPolicy] = None,
        lane_move_policy: Optional[LaneMovePolicy] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self._store = store
        self._coordinator = TransactionCoordinator(store)
        self.rank_policy = rank_policy or settings.rank_policy
        self.lane_move_policy = lane_move_policy or settings.lane_move_policy

    def apply(self, record_id: int, change: LaneChange) -> Record:
        """
        Apply `change` to record `record_id` and return the record as written.

        Raises NotFoundError for an unknown id, ConflictError when another
        writer moved the record between the first read and the locked re-read,
        and StorageError when the store fails. Nothing is written in any of
        those cases.
        """
        snapshot = LaneQueryService(self._store).fetch_by_id(record_id)
        lane = target_lane(change, snapshot.lane)

        with self._coordinator.unit_of_work([snapshot.lane, lane], record_id=record_id) as txn:
            queries = LaneQueryService(txn)
            record = queries.fetch_by_id(record_id)
            if record.lane is not snapshot.lane:
                raise ConflictError(
                    long_message=(
                        f"Client {record_id} moved from {snapshot.lane.value} to "
                        f"{record.lane.value} concurrently."
                    ),
                    record_id=record_id,
                )
            needs_lane = not isinstance(change, ChangeLane) or (
                self.lane_move_policy is LaneMovePolicy.APPEND
            )
            lane_records = queries.list_all(lane) if needs_lane else []
            plan = plan_change(
                record,
                change,
                lane_records,
                rank_policy=self.rank_policy,
                lane_move_policy=self.lane_move_policy,
            )
            self._coordinator.apply(plan, txn)

        log.info(
            f"[RANK] client {record_id} -> {plan.lane.value}#{plan.target.rank}",
            extra={
                "record_id": record_id,
                "change": change.kind,
                "lane": plan.lane.value,
                "rank": plan.target.rank,
                "displaced": len(plan.displacements),
            },
        )
        return record.model_copy(update={"lane": plan.target.lane, "rank": plan.target.rank})


__all__ = ["RankAllocator"]
