from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv


_PORT_ENV = "PORT"
_HOST_ENV = "HOST"
_BASE_URL_ENV = "ARANET_BASE_URL"
_API_KEY_ENV = "ARANET_API_KEY"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_CORS_ORIGINS_ENV = "CORS_ORIGINS"

DEFAULT_PORT = 5050
DEFAULT_BASE_URL = "https://aranet.cloud"


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    aranet_base_url: str
    aranet_api_key: Optional[str]
    log_level: str
    cors_origins: Tuple[str, ...]

    def require_api_key(self) -> str:
        if not self.aranet_api_key:
            raise ConfigurationError(f"{_API_KEY_ENV} is not set (environment or .env file).")
        return self.aranet_api_key


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_port(default: int) -> int:
    value = os.getenv(_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_log_level(default: str) -> str:
    return _read_str_env(_LOG_LEVEL_ENV, default).upper()


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(part.strip() for part in value.split(",") if part.strip())
    return origins or default


@lru_cache
def get_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True), override=False)
    return Settings(
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_port(DEFAULT_PORT),
        aranet_base_url=_read_str_env(_BASE_URL_ENV, DEFAULT_BASE_URL).rstrip("/"),
        aranet_api_key=_read_optional_env(_API_KEY_ENV),
        log_level=_read_log_level("INFO"),
        cors_origins=_read_origins(("*",)),
    )
