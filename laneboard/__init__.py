"""
Laneboard - ranked client pipeline.

Tracks client records through three lanes (backlog, inProgress, complete) and
keeps a strict rank order inside each lane:

- Displacement planning when a client is inserted at a rank
- Per-lane serialized, all-or-nothing writes
- PostgreSQL and in-process record stores behind one interface
- A typer CLI acting as the request layer
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from laneboard.allocator import RankAllocator
from laneboard.api import get_record, list_records, update_record
from laneboard.config import LaneMovePolicy, RankPolicy, Settings, StoreBackend, get_settings
from laneboard.coordinator import TransactionCoordinator
from laneboard.domain import (
    ChangeBoth,
    ChangeLane,
    ChangeRank,
    ConflictError,
    InvalidInputError,
    InvalidLaneError,
    InvalidRankError,
    Lane,
    LaneboardError,
    NotFoundError,
    Record,
    StorageError,
)
from laneboard.queries import LaneQueryService
from laneboard.stores import MemoryRecordStore, PostgresRecordStore, open_store
from laneboard.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "LaneMovePolicy",
    "RankPolicy",
    "Settings",
    "StoreBackend",
    "get_settings",
    # Core interface
    "get_record",
    "list_records",
    "update_record",
    # Components
    "LaneQueryService",
    "RankAllocator",
    "TransactionCoordinator",
    "MemoryRecordStore",
    "PostgresRecordStore",
    "open_store",
    # Domain
    "ChangeBoth",
    "ChangeLane",
    "ChangeRank",
    "Lane",
    "Record",
    # Errors
    "ConflictError",
    "InvalidInputError",
    "InvalidLaneError",
    "InvalidRankError",
    "LaneboardError",
    "NotFoundError",
    "StorageError",
    # Logging
    "configure_logging",
    "get_logger",
]
