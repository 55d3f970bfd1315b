"""
Read-side operations over records.

LaneQueryService wraps anything that can `fetch` and `scan`: a store for
plain reads, or an open transaction when the allocator needs the locked view.
"""

from __future__ import annotations

from typing import Any, List, Optional

from laneboard.domain.errors import NotFoundError
from laneboard.domain.models import Record
from laneboard.domain.validation import parse_lane
from laneboard.stores.abstract import RecordReader


class LaneQueryService:
    def __init__(self, reader: RecordReader) -> None:
        self._reader = reader

    def fetch_by_id(self, record_id: int) -> Record:
        record = self._reader.fetch(record_id)
        if record is None:
            raise NotFoundError(
                long_message="Cannot find client with that id.",
                record_id=record_id,
            )
        return record

    def list_all(self, lane: Optional[Any] = None) -> List[Record]:
        """
        List every record, or only those in `lane`.

        An unknown lane token raises InvalidLaneError before the reader is used.
        """
        parsed = parse_lane(lane) if lane is not None else None
        return self._reader.scan(parsed)


__all__ = ["LaneQueryService"]
