from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - SQLITE_DB_PATH: path to the sqlite file the store is flushed to. Default './data/todos.db'.
      Use ':memory:' to keep the store purely in memory.
    - STORE_TIMEOUT_SECONDS: max seconds to wait for the store before failing (default: 5)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root logging level (default: INFO)
    - LOG_FILE: optional path of a file receiving ERROR level logs
    - HOST / PORT: bind address for the uvicorn entry point (default: 0.0.0.0 / 3000)
    """

    sqlite_db_path: str = "./data/todos.db"
    store_timeout: float = 5.0
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_file: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    log_file = os.getenv("LOG_FILE")
    return Settings(
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        store_timeout=_parse_float(_get_env("STORE_TIMEOUT_SECONDS", "5"), 5.0),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_file=log_file.strip() if log_file and log_file.strip() else None,
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "3000"), 3000),
    )
