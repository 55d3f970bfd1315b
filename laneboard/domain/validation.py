"""
Input validation for raw request values.

The request layer runs every raw id, lane and rank through these helpers
before calling into the core, so the allocator only ever sees a well-formed
LaneChange.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from laneboard.domain.errors import (
    InvalidIdError,
    InvalidInputError,
    InvalidLaneError,
    InvalidRankError,
)
from laneboard.domain.models import (
    MAX_RANK,
    MAX_RECORD_ID,
    ChangeBoth,
    ChangeLane,
    ChangeRank,
    Lane,
    LaneChange,
)

_LANE_HELP = "Status must be one of: [backlog | inProgress | complete]."
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _as_int(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if _INTEGER.fullmatch(text):
            return int(text)
    return None


def parse_record_id(raw: Any) -> int:
    value = _as_int(raw)
    if value is None:
        raise InvalidIdError(long_message="Id can only be integer.", value=raw)
    if abs(value) > MAX_RECORD_ID:
        raise InvalidIdError(long_message="Id is out of range.", value=raw)
    return value


def parse_lane(raw: Any) -> Lane:
    if isinstance(raw, Lane):
        return raw
    if isinstance(raw, str) and raw in Lane.tokens():
        return Lane(raw)
    raise InvalidLaneError(long_message=_LANE_HELP, value=raw)


def parse_rank(raw: Any) -> int:
    value = _as_int(raw)
    if value is None or value <= 0:
        raise InvalidRankError(long_message="Priority must be a positive integer.", value=raw)
    if value > MAX_RANK:
        raise InvalidRankError(long_message=f"Priority must not exceed {MAX_RANK}.", value=raw)
    return value


def build_change(lane: Any = None, rank: Any = None) -> LaneChange:
    """
    Turn optional raw lane/rank values into an explicit change request.

    Lane is validated before rank, mirroring the order the request layer has
    always reported errors in.
    """
    parsed_lane = parse_lane(lane) if lane is not None else None
    parsed_rank = parse_rank(rank) if rank is not None else None

    if parsed_lane is not None and parsed_rank is not None:
        return ChangeBoth(lane=parsed_lane, rank=parsed_rank)
    if parsed_rank is not None:
        return ChangeRank(rank=parsed_rank)
    if parsed_lane is not None:
        return ChangeLane(lane=parsed_lane)
    raise InvalidInputError(
        message="Nothing to update.",
        long_message="Provide a status, a priority, or both.",
    )


__all__ = ["build_change", "parse_lane", "parse_rank", "parse_record_id"]
