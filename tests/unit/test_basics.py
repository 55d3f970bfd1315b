import csv
import json
from pathlib import Path

import pytest

from laneboard import config
from laneboard.domain.models import Lane, Record
from laneboard.infrastructure.db_factory import build_dsn
from laneboard.infrastructure.schema import CLIENTS_DDL
from laneboard.stores import MemoryRecordStore, build_store, open_store
from scripts import generate_data

ENV_KEYS = [
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_NAME",
    "STORE_BACKEND",
    "RANK_POLICY",
    "LANE_MOVE_POLICY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_settings_defaults(clean_env):
    settings = config.Settings(_env_file=None)
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "laneboard"
    assert settings.store_backend is config.StoreBackend.POSTGRES
    assert settings.rank_policy is config.RankPolicy.SPARSE
    assert settings.lane_move_policy is config.LaneMovePolicy.KEEP
    assert settings.db_lock_timeout_ms > 0


def test_settings_read_policies_from_env(clean_env, monkeypatch):
    monkeypatch.setenv("RANK_POLICY", "clamp")
    monkeypatch.setenv("LANE_MOVE_POLICY", "append")
    monkeypatch.setenv("STORE_BACKEND", "memory")

    settings = config.Settings(_env_file=None)

    assert settings.rank_policy is config.RankPolicy.CLAMP
    assert settings.lane_move_policy is config.LaneMovePolicy.APPEND
    assert settings.store_backend is config.StoreBackend.MEMORY


def test_settings_only_declare_fields_something_reads():
    assert "app_env" not in config.Settings.model_fields


def test_build_dsn_from_settings():
    settings = config.Settings(db_user="u", db_password="p", db_host="h", db_port=6543, db_name="d")
    assert build_dsn(settings) == "postgresql://u:p@h:6543/d"


def test_lane_tokens_are_the_wire_values():
    assert Lane.tokens() == ["backlog", "inProgress", "complete"]
    for token in Lane.tokens():
        assert f"'{token}'" in CLIENTS_DDL


def test_open_store_builds_memory_backend_and_closes():
    settings = config.Settings(store_backend=config.StoreBackend.MEMORY)
    seed = [Record(id=1, lane=Lane.BACKLOG, rank=1)]

    with open_store(settings, seed) as store:
        assert isinstance(store, MemoryRecordStore)
        assert store.fetch(1).rank == 1


def test_build_store_defaults_to_postgres_without_connecting():
    store = build_store(config.Settings(store_backend=config.StoreBackend.POSTGRES))
    assert store.name == "postgres"
    store.close()


def test_generate_data_writes_dense_ranks_per_lane(tmp_path: Path):
    csv_path = tmp_path / "clients.csv"
    generate_data._generate_rows_csv(csv_path, rows=12, seed=123)

    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))

    assert rows[0] == ["id", "name", "lane", "rank", "attributes"]
    assert len(rows) == 13
    by_lane: dict[str, list[int]] = {}
    for _, _, lane, rank, attributes in rows[1:]:
        by_lane.setdefault(lane, []).append(int(rank))
        json.loads(attributes)
    assert set(by_lane) <= set(Lane.tokens())
    for ranks in by_lane.values():
        assert ranks == list(range(1, len(ranks) + 1))


def test_generate_data_is_deterministic():
    first = generate_data._generate_records(20, seed=7)
    second = generate_data._generate_records(20, seed=7)
    assert first == second
