"""
Core-facing interface consumed by the request layer.

Every call takes the store handle explicitly and validates raw input before
touching it. Usage:

    from laneboard.api import list_records, update_record
    from laneboard.stores import open_store

    with open_store() as store:
        rows = update_record(store, 3, lane="backlog", rank=1)
"""

from __future__ import annotations

from typing import Any, List, Optional

from laneboard.allocator import RankAllocator
from laneboard.config import Settings, get_settings
from laneboard.domain.models import Record
from laneboard.domain.validation import build_change, parse_record_id
from laneboard.queries import LaneQueryService
from laneboard.stores.abstract import RecordStore


def get_record(store: RecordStore, record_id: Any) -> Record:
    return LaneQueryService(store).fetch_by_id(parse_record_id(record_id))


def list_records(store: RecordStore, lane: Optional[Any] = None) -> List[Record]:
    return LaneQueryService(store).list_all(lane)


def update_record(
    store: RecordStore,
    record_id: Any,
    lane: Optional[Any] = None,
    rank: Optional[Any] = None,
    settings: Optional[Settings] = None,
) -> List[Record]:
    """
    Change a record's lane, rank, or both, and return the full listing.

    Parameters
    ----------
    store : RecordStore
        Store handle owned by the caller.
    record_id : Any
        Raw id; must be an integer.
    lane : Any, optional
        Raw lane token: backlog, inProgress or complete.
    rank : Any, optional
        Raw rank; must be a positive integer.
    settings : Settings, optional
        Source of the rank and lane move policies.

    Returns
    -------
    List[Record]
        Every record after the update, ordered by id.

    Raises
    ------
    InvalidInputError
        Malformed id, lane or rank, or neither lane nor rank given.
    NotFoundError
        No record with that id.
    StorageError
        The store failed; nothing was written.
    """
    parsed_id = parse_record_id(record_id)
    change = build_change(lane, rank)
    RankAllocator(store, settings=settings or get_settings()).apply(parsed_id, change)
    return list_records(store)


__all__ = ["get_record", "list_records", "update_record"]
