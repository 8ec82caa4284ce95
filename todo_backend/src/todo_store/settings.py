from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from .errors import ConfigurationError

ID_STRATEGIES = {"max", "counter"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DB_URI: MongoDB connection string (required)
    - DATABASE_NAME: database holding the todo collection (required)
    - TODO_COLLECTION: collection name for todo items. Default 'todos'
    - ID_STRATEGY: 'max' (default) or 'counter'
    - COUNTERS_COLLECTION: collection used by the 'counter' strategy. Default 'counters'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level. Default 'INFO'
    - LOG_JSON: 'true' (default) for JSON log lines, 'false' for plain text
    """

    db_uri: str
    database_name: str
    collection_name: str = "todos"
    id_strategy: str = "max"
    counters_collection: str = "counters"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_json: bool = True


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _require_env(name: str, description: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise ConfigurationError(f"{name} is not defined in the environment ({description})")
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
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
    """
    Return application settings loaded from environment variables.

    Raises:
        ConfigurationError: if DB_URI or DATABASE_NAME is missing or blank.
    """
    db_uri = _require_env("DB_URI", "MongoDB connection string")
    database_name = _require_env("DATABASE_NAME", "target database name")

    id_strategy = _get_env("ID_STRATEGY", "max").strip().lower()
    if id_strategy not in ID_STRATEGIES:
        # Fallback to max+1 if unsupported
        id_strategy = "max"

    return Settings(
        db_uri=db_uri,
        database_name=database_name,
        collection_name=_get_env("TODO_COLLECTION", "todos").strip(),
        id_strategy=id_strategy,
        counters_collection=_get_env("COUNTERS_COLLECTION", "counters").strip(),
        cors_allow_origins=get_cors_origins(),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_json=_parse_bool(_get_env("LOG_JSON", "true"), True),
    )


# PUBLIC_INTERFACE
def get_cors_origins() -> List[str]:
    """Return CORS origins without requiring the database settings to be present."""
    return _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
