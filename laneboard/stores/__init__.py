"""
Record stores for laneboard.

`open_store` is the only place a store handle is created from settings. The
request layer holds the handle for its lifetime and passes it into every core
call.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from laneboard.config import Settings, StoreBackend, get_settings
from laneboard.domain.models import Record
from laneboard.stores.abstract import (
    AbstractRecordStore,
    RecordReader,
    RecordStore,
    StoreTransaction,
    ordered_lanes,
)
from laneboard.stores.memory import MemoryRecordStore
from laneboard.stores.postgres import PostgresRecordStore
from laneboard.utils.logging import get_logger

log = get_logger(__name__)


def build_store(
    settings: Optional[Settings] = None,
    records: Iterable[Record] = (),
) -> AbstractRecordStore:
    """Instantiate the backend named by `settings.store_backend`."""
    settings = settings or get_settings()
    if settings.store_backend is StoreBackend.MEMORY:
        return MemoryRecordStore(records)
    return PostgresRecordStore(settings)


@contextmanager
def open_store(
    settings: Optional[Settings] = None,
    records: Iterable[Record] = (),
) -> Iterator[AbstractRecordStore]:
    """
    Acquire a store for the duration of the block and release it afterwards.

    Example
    -------
        with open_store(get_settings()) as store:
            records = list_records(store)
    """
    store = build_store(settings, records)
    log.info("Store opened", extra={"backend": store.name})
    try:
        yield store
    finally:
        store.close()
        log.info("Store closed", extra={"backend": store.name})


__all__ = [
    "AbstractRecordStore",
    "MemoryRecordStore",
    "PostgresRecordStore",
    "RecordReader",
    "RecordStore",
    "StoreTransaction",
    "build_store",
    "open_store",
    "ordered_lanes",
]
