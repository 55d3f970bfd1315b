"""
Pytest configuration for laneboard.

Provides fixtures for:
- Settings with fixed policies for unit tests
- In-process stores seeded with small lanes
- Database connection management and schema/seeding for integration tests
"""

from __future__ import annotations

import os
from typing import Callable, Generator, Iterable, List, Tuple

import psycopg
import pytest
from psycopg.types.json import Jsonb

from laneboard.config import LaneMovePolicy, RankPolicy, Settings, StoreBackend
from laneboard.domain.models import Lane, Record
from laneboard.infrastructure.schema import ensure_schema
from laneboard.stores.memory import MemoryRecordStore

RecordSpec = Tuple[int, Lane, int]


def build_records(specs: Iterable[RecordSpec]) -> List[Record]:
    return [
        Record(id=record_id, lane=lane, rank=rank, name=f"Client {record_id}")
        for record_id, lane, rank in specs
    ]


def ranks_by_id(records: Iterable[Record]) -> dict[int, Tuple[Lane, int]]:
    return {r.id: (r.lane, r.rank) for r in records}


# Three clients per lane with dense ranks; ids 1-3 backlog, 4-6 in progress, 7-9 complete.
DEFAULT_SPECS: List[RecordSpec] = [
    (1, Lane.BACKLOG, 1),
    (2, Lane.BACKLOG, 2),
    (3, Lane.BACKLOG, 3),
    (4, Lane.IN_PROGRESS, 1),
    (5, Lane.IN_PROGRESS, 2),
    (6, Lane.IN_PROGRESS, 3),
    (7, Lane.COMPLETE, 1),
    (8, Lane.COMPLETE, 2),
    (9, Lane.COMPLETE, 3),
]


@pytest.fixture
def unit_settings() -> Settings:
    """Settings pinned to the default policies and the memory backend."""
    return Settings(
        store_backend=StoreBackend.MEMORY,
        rank_policy=RankPolicy.SPARSE,
        lane_move_policy=LaneMovePolicy.KEEP,
        log_level="DEBUG",
    )


@pytest.fixture
def memory_store() -> MemoryRecordStore:
    return MemoryRecordStore(build_records(DEFAULT_SPECS))


@pytest.fixture
def store_factory() -> Callable[[Iterable[RecordSpec]], MemoryRecordStore]:
    def _factory(specs: Iterable[RecordSpec]) -> MemoryRecordStore:
        return MemoryRecordStore(build_records(specs))

    return _factory


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "laneboard"),
        db_pool_min_size=1,
        db_pool_max_size=8,
        store_backend=StoreBackend.POSTGRES,
        rank_policy=RankPolicy.SPARSE,
        lane_move_policy=LaneMovePolicy.KEEP,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the clients table exists.
    """
    ensure_schema(db_connection)
    return True


@pytest.fixture(scope="function")
def clean_clients_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the clients table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.clients;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.clients;")
    db_connection.commit()


@pytest.fixture(scope="function")
def seed_clients(
    db_connection: psycopg.Connection, clean_clients_table
) -> Callable[[Iterable[RecordSpec]], int]:
    """
    Return a loader that inserts (id, lane, rank) rows and reports the row count.
    """

    def _seed(specs: Iterable[RecordSpec]) -> int:
        records = build_records(specs)
        with db_connection.cursor() as cur:
            cur.executemany(
                "INSERT INTO public.clients (id, name, lane, rank, attributes) "
                "VALUES (%s, %s, %s, %s, %s)",
                [(r.id, r.name, r.lane.value, r.rank, Jsonb(r.attributes)) for r in records],
            )
        db_connection.commit()
        return len(records)

    return _seed


@pytest.fixture(scope="function")
def seeded_db_small(seed_clients) -> int:
    """
    Seed three clients per lane (ids 1-9).
    """
    return seed_clients(DEFAULT_SPECS)
