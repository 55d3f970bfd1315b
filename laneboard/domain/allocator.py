"""
Rank planning by displacement.

Pure functions only: given the record being changed, the requested change and
the records currently in the target lane, compute the writes that place the
record while keeping ranks in that lane unique and in their prior order.
Nothing here reads or writes a store.
"""

from __future__ import annotations

from typing import Iterable, List

from laneboard.config import LaneMovePolicy, RankPolicy
from laneboard.domain.errors import InvalidRankError
from laneboard.domain.models import (
    MAX_RANK,
    ChangeLane,
    Lane,
    LaneChange,
    RankMutation,
    RankPlan,
    Record,
    target_lane,
)


def _lane_mates(record: Record, lane: Lane, lane_records: Iterable[Record]) -> List[Record]:
    return [r for r in lane_records if r.lane is lane and r.id != record.id]


def resolve_rank(requested: int, lane_mates: List[Record], policy: RankPolicy) -> int:
    """
    Rank actually stored for a `requested` rank.

    SPARSE keeps the request as is, so a rank past the end leaves a gap.
    CLAMP pulls it back to one past the current lane size.
    """
    if policy is RankPolicy.CLAMP:
        return max(1, min(requested, len(lane_mates) + 1))
    return requested


def _no_room(lane: Lane, record_id: int) -> InvalidRankError:
    return InvalidRankError(
        long_message=(
            f"Client {record_id} already holds the last rank in {lane.value}; "
            "nothing can be placed after it."
        ),
        record_id=record_id,
    )


def displace(lane_mates: Iterable[Record], lane: Lane, rank: int) -> List[RankMutation]:
    """
    Increment the rank of every lane-mate holding `rank` or higher.

    Raises InvalidRankError when a lane-mate already sits at MAX_RANK.
    """
    shifted = []
    for r in lane_mates:
        if r.rank < rank:
            continue
        if r.rank >= MAX_RANK:
            raise _no_room(lane, r.id)
        shifted.append(RankMutation(record_id=r.id, lane=lane, rank=r.rank + 1))
    return shifted


def plan_change(
    record: Record,
    change: LaneChange,
    lane_records: Iterable[Record],
    rank_policy: RankPolicy = RankPolicy.SPARSE,
    lane_move_policy: LaneMovePolicy = LaneMovePolicy.KEEP,
) -> RankPlan:
    """
    Compute the writes for applying `change` to `record`.

    Parameters
    ----------
    record : Record
        Current state of the record being changed.
    change : LaneChange
        ChangeLane, ChangeRank or ChangeBoth.
    lane_records : iterable of Record
        Records currently in the target lane. The record itself may be among
        them; it never displaces itself.
    rank_policy : RankPolicy
        Whether a rank past the end of the lane is kept or clamped.
    lane_move_policy : LaneMovePolicy
        Whether a lane-only move keeps the old rank or appends to the new lane.

    Returns
    -------
    RankPlan
        Displacements plus the target write. The old lane is never compacted.
    """
    lane = target_lane(change, record.lane)
    mates = _lane_mates(record, lane, lane_records)

    if isinstance(change, ChangeLane):
        rank = record.rank
        if lane is not record.lane and lane_move_policy is LaneMovePolicy.APPEND:
            last = max(mates, key=lambda r: r.rank, default=None)
            if last is not None and last.rank >= MAX_RANK:
                raise _no_room(lane, last.id)
            rank = last.rank + 1 if last is not None else 1
        return RankPlan(lane=lane, target=RankMutation(record_id=record.id, lane=lane, rank=rank))

    rank = resolve_rank(change.rank, mates, rank_policy)
    return RankPlan(
        lane=lane,
        target=RankMutation(record_id=record.id, lane=lane, rank=rank),
        displacements=tuple(displace(mates, lane, rank)),
    )


__all__ = ["displace", "plan_change", "resolve_rank"]
