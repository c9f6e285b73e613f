# backend/seating/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/seating.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///seating.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Cache backend: "memory", "redis" or "none"
    SEATING_CACHE_BACKEND = os.environ.get("SEATING_CACHE_BACKEND", "memory")
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    SEATING_CACHE_MAX_ENTRIES = int(os.environ.get("SEATING_CACHE_MAX_ENTRIES", "1024"))

    # Seconds
    SEATING_CHART_CACHE_TTL = int(os.environ.get("SEATING_CHART_CACHE_TTL", "600"))
    SEATING_LIST_CACHE_TTL = int(os.environ.get("SEATING_LIST_CACHE_TTL", "300"))

    # Seat patches are not historized unless enabled
    SEATING_SNAPSHOT_ON_SEAT_PATCH = _env_bool("SEATING_SNAPSHOT_ON_SEAT_PATCH", False)

    # 0 keeps every snapshot
    SEATING_MAX_VERSIONS_PER_CHART = int(os.environ.get("SEATING_MAX_VERSIONS_PER_CHART", "0"))
