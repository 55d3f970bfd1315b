"""
Configuration settings for laneboard.

Uses Pydantic Settings to load environment variables for the database
connection, the record store backend, ranking policies and logging.
"""
from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    POSTGRES = "postgres"
    MEMORY = "memory"


class RankPolicy(str, Enum):
    """How a requested rank beyond the end of a lane is stored."""

    SPARSE = "sparse"
    CLAMP = "clamp"


class LaneMovePolicy(str, Enum):
    """What happens to rank when only the lane changes."""

    KEEP = "keep"
    APPEND = "append"


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("laneboard", alias="DB_NAME")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_lock_timeout_ms: int = Field(2_000, alias="DB_LOCK_TIMEOUT_MS")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Lanes
    store_backend: StoreBackend = Field(StoreBackend.POSTGRES, alias="STORE_BACKEND")
    rank_policy: RankPolicy = Field(RankPolicy.SPARSE, alias="RANK_POLICY")
    lane_move_policy: LaneMovePolicy = Field(LaneMovePolicy.KEEP, alias="LANE_MOVE_POLICY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["LaneMovePolicy", "RankPolicy", "Settings", "StoreBackend", "get_settings"]
