"""Configuration utilities for the recruitment portal.

This module loads application configuration with the following rules:
- Primary source: `portal_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.

The same configuration object feeds both the HTTP service (database, upload
destinations) and the autosave client (debounce interval, timeouts, retries).
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_PORTAL_CONFIG = Path("portal_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: log and ignore unreadable override
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class AutosaveConfig(BaseModel):
    debounce_ms: int = Field(default=1000, gt=0)
    # Automatic re-sends of an edit whose write failed transiently
    max_resaves: int = Field(default=5, ge=0)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class ClientConfig(BaseModel):
    request_timeout_s: float = Field(default=10.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_initial_s: float = Field(default=0.25, ge=0)


class UploadsConfig(BaseModel):
    public_base_url: str = "http://localhost:8000/api/v1/uploads"
    max_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("uploads.public_base_url must be a non-empty string")
        return v.rstrip("/")


class AppConfig(BaseModel):
    database: DatabaseConfig
    autosave: AutosaveConfig
    client: ClientConfig
    uploads: UploadsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) portal_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_PORTAL_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    def _pick(env_key: str, file_key: str, base_key: str, default: str) -> str:
        return str(_env(env_key) or _read_config_file(file_key) or _base(base_key, default)).strip()

    dsn = _pick("DATABASE_URL", "database.url", "database.dsn", "sqlite+pysqlite:///:memory:")
    debounce_ms = _pick("AUTOSAVE_DEBOUNCE_MS", "autosave.debounce_ms", "autosave.debounce_ms", "1000")
    max_resaves = _pick("AUTOSAVE_MAX_RESAVES", "autosave.max_resaves", "autosave.max_resaves", "5")
    timeout_s = _pick("CLIENT_REQUEST_TIMEOUT_S", "client.request_timeout_s", "client.request_timeout_s", "10")
    max_attempts = _pick("CLIENT_MAX_ATTEMPTS", "client.max_attempts", "client.max_attempts", "3")
    backoff_s = _pick("CLIENT_BACKOFF_INITIAL_S", "client.backoff_initial_s", "client.backoff_initial_s", "0.25")
    uploads_url = _pick(
        "UPLOADS_PUBLIC_BASE_URL",
        "uploads.public_base_url",
        "uploads.public_base_url",
        "http://localhost:8000/api/v1/uploads",
    )
    uploads_max = _pick("UPLOADS_MAX_BYTES", "uploads.max_bytes", "uploads.max_bytes", "10485760")

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            autosave=AutosaveConfig(debounce_ms=debounce_ms, max_resaves=max_resaves),
            client=ClientConfig(
                request_timeout_s=timeout_s,
                max_attempts=max_attempts,
                backoff_initial_s=backoff_s,
            ),
            uploads=UploadsConfig(public_base_url=uploads_url, max_bytes=uploads_max),
        )
        return cfg
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


_CONFIG: AppConfig | None = None


def get_config(reload: bool = False) -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _CONFIG
    if _CONFIG is None or reload:
        _CONFIG = load_config()
    return _CONFIG


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "AutosaveConfig",
    "ClientConfig",
    "UploadsConfig",
    "load_config",
    "get_config",
]
