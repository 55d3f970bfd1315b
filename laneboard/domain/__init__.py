"""
Domain package for laneboard.

Exports the record model, the change requests, the error taxonomy and the
pure rank planner. Nothing in this package performs I/O.
"""

from laneboard.domain.allocator import plan_change
from laneboard.domain.errors import (
    ConflictError,
    InvalidIdError,
    InvalidInputError,
    InvalidLaneError,
    InvalidRankError,
    LaneboardError,
    NotFoundError,
    StorageError,
)
from laneboard.domain.models import (
    ChangeBoth,
    ChangeLane,
    ChangeRank,
    Lane,
    LaneChange,
    RankMutation,
    RankPlan,
    Record,
)
from laneboard.domain.validation import build_change, parse_lane, parse_rank, parse_record_id

__all__ = [
    # Models
    "ChangeBoth",
    "ChangeLane",
    "ChangeRank",
    "Lane",
    "LaneChange",
    "RankMutation",
    "RankPlan",
    "Record",
    # Errors
    "ConflictError",
    "InvalidIdError",
    "InvalidInputError",
    "InvalidLaneError",
    "InvalidRankError",
    "LaneboardError",
    "NotFoundError",
    "StorageError",
    # Validation and planning
    "build_change",
    "parse_lane",
    "parse_rank",
    "parse_record_id",
    "plan_change",
]
