"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/barcoder.db"),
        description="SQLite database holding the list, card and product snapshots.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    product_api_base_url: str = Field(
        default="https://world.openfoodfacts.org/api/v2",
        description="Open Food Facts API root used for product lookups.",
    )
    product_api_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for a product lookup before treating it as failed.",
    )
    product_api_user_agent: str = Field(
        default="Barcoder/1.0 (personal shopping helper)",
        description="User-Agent header sent to the product database.",
    )
    product_cache_persist_not_found: bool = Field(
        default=True,
        description="Persist confirmed 'not found' lookups in the durable product cache.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("BARCODER_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (api_token := _env("BARCODER_API_TOKEN")):
        payload["api_token"] = api_token
    if (log_level := _env("BARCODER_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("BARCODER_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("BARCODER_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (base_url := _env("BARCODER_PRODUCT_API_BASE_URL")):
        payload["product_api_base_url"] = base_url.rstrip("/")
    if (timeout := _env("BARCODER_PRODUCT_API_TIMEOUT")):
        try:
            payload["product_api_timeout"] = float(timeout)
        except ValueError:
            pass
    if (user_agent := _env("BARCODER_PRODUCT_API_USER_AGENT")):
        payload["product_api_user_agent"] = user_agent
    if (persist_not_found := _env("BARCODER_PRODUCT_CACHE_PERSIST_NOT_FOUND")):
        payload["product_cache_persist_not_found"] = _coerce_bool(persist_not_found)
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
