"""
Domain models for laneboard.

Defines the client record as stored in the `clients` table, the closed set of
lanes a record can occupy, the three explicit change requests a caller can
make, and the rank mutations the allocator produces for them.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


# Largest value the `rank INTEGER` column holds.
MAX_RANK = 2_147_483_647
# Largest value the `id BIGINT` column holds.
MAX_RECORD_ID = 9_223_372_036_854_775_807


class Lane(str, Enum):
    """Pipeline stage of a record. The values are the wire tokens."""

    BACKLOG = "backlog"
    IN_PROGRESS = "inProgress"
    COMPLETE = "complete"

    @classmethod
    def tokens(cls) -> List[str]:
        return [lane.value for lane in cls]


class Record(BaseModel):
    """
    Representation of a single row in the `clients` table.
    """

    id: int = Field(..., description="Primary key, immutable.")
    lane: Lane = Field(..., description="Stage the client currently occupies.")
    rank: int = Field(..., gt=0, description="1-based priority inside the lane.")
    name: str = Field("", description="Display name, opaque to ranking.")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Opaque columns.")
    updated_at: Optional[datetime] = Field(None, description="Last lane/rank write.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class ChangeLane(BaseModel):
    """Move to another lane; rank handling follows the lane move policy."""

    kind: Literal["lane"] = "lane"
    lane: Lane

    model_config = {"frozen": True}


class ChangeRank(BaseModel):
    """Re-rank inside the record's current lane."""

    kind: Literal["rank"] = "rank"
    rank: int = Field(..., gt=0, le=MAX_RANK)

    model_config = {"frozen": True}


class ChangeBoth(BaseModel):
    """Move to `lane` and insert at `rank`, displacing lane-mates."""

    kind: Literal["both"] = "both"
    lane: Lane
    rank: int = Field(..., gt=0, le=MAX_RANK)

    model_config = {"frozen": True}


LaneChange = Annotated[Union[ChangeLane, ChangeRank, ChangeBoth], Field(discriminator="kind")]


def target_lane(change: LaneChange, current: Lane) -> Lane:
    """Lane the record ends up in once `change` is applied."""
    if isinstance(change, ChangeRank):
        return current
    return change.lane


class RankMutation(BaseModel):
    """A single `{lane, rank}` write against one record."""

    record_id: int
    lane: Lane
    rank: int = Field(..., gt=0)

    model_config = {"frozen": True}


class RankPlan(BaseModel):
    """
    Writes needed to apply one change request.

    `displacements` are the lane-mates shifted to make room, `target` is the
    write to the requested record. They must be applied together.
    """

    lane: Lane
    target: RankMutation
    displacements: Tuple[RankMutation, ...] = ()

    model_config = {"frozen": True}

    @property
    def mutations(self) -> List[RankMutation]:
        shifted = sorted(self.displacements, key=lambda m: m.rank, reverse=True)
        return [*shifted, self.target]


__all__ = [
    "MAX_RANK",
    "MAX_RECORD_ID",
    "ChangeBoth",
    "ChangeLane",
    "ChangeRank",
    "Lane",
    "LaneChange",
    "RankMutation",
    "RankPlan",
    "Record",
    "target_lane",
]
