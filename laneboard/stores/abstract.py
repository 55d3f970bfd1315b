"""
Record store interfaces for laneboard.

Concrete stores (PostgreSQL, in-process) implement the RecordStore protocol.
Reads may happen anywhere; `{lane, rank}` writes only happen through a
StoreTransaction obtained from `RecordStore.transaction`, which the
TransactionCoordinator owns.
"""

from __future__ import annotations

import abc
from typing import (
    ContextManager,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from laneboard.domain.models import Lane, RankMutation, Record

_LANE_ORDER = {lane: index for index, lane in enumerate(Lane)}


def ordered_lanes(lanes: Iterable[Lane]) -> List[Lane]:
    """Deduplicate and sort lanes into the global lock acquisition order."""
    return sorted(set(lanes), key=_LANE_ORDER.__getitem__)


@runtime_checkable
class RecordReader(Protocol):
    """Read side shared by stores and open transactions."""

    def fetch(self, record_id: int) -> Optional[Record]:
        """Return the record or None when the id is unknown."""
        ...

    def scan(self, lane: Optional[Lane] = None) -> List[Record]:
        """
        Return records, all of them ordered by id, or one lane ordered by rank.
        """
        ...


@runtime_checkable
class StoreTransaction(RecordReader, Protocol):
    """
    An open unit of work holding the locks of the lanes it was opened for.

    `fetch` inside a transaction also locks the fetched record until the
    transaction ends.
    """

    def write(self, mutation: RankMutation) -> None:
        """Stage a `{lane, rank}` write; visible to others only after commit."""
        ...


@runtime_checkable
class RecordStore(RecordReader, Protocol):
    """
    Durable keyed storage for client records.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier of the backend.
    """

    name: str

    def transaction(self, lanes: Iterable[Lane]) -> ContextManager[StoreTransaction]:
        """
        Open a transaction serialized against every other transaction that
        touches any of `lanes`. Commits on clean exit, rolls back otherwise.
        """
        ...

    def close(self) -> None:
        ...


class AbstractRecordStore(abc.ABC):
    """
    ABC helper for class-based stores.

    Subclasses set `name` and implement reads, `transaction` and `close`.
    Instances are context managers that close themselves on exit.
    """

    name: str

    @abc.abstractmethod
    def fetch(self, record_id: int) -> Optional[Record]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def scan(self, lane: Optional[Lane] = None) -> List[Record]:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def transaction(
        self, lanes: Iterable[Lane]
    ) -> ContextManager[StoreTransaction]:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        """Release resources. Default is a no-op."""

    def __enter__(self) -> "AbstractRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "AbstractRecordStore",
    "RecordReader",
    "RecordStore",
    "StoreTransaction",
    "ordered_lanes",
]
