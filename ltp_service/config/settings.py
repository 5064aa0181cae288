from __future__ import annotations

import os
from dataclasses import dataclass


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def parse_str(value: str | None, default: str) -> str:
    # empty env vars count as unset
    if not value:
        return default
    return value


@dataclass(frozen=True)
class Settings:
    PORT: int
    REDIS_HOST: str
    REDIS_PORT: int
    REDIS_PASSWORD: str
    REDIS_DB: int
    CACHE_ENABLED: bool
    CACHE_SOCKET_TIMEOUT_SECONDS: float
    PRICE_FRESHNESS_SECONDS: int
    BASE_ASSET: str
    KRAKEN_BASE_URL: str
    KRAKEN_ASSET_CODE: str
    UPSTREAM_TIMEOUT_SECONDS: float
    DB_URL: str
    AUDIT_ENABLED: bool
    AUDIT_QUEUE_SIZE: int
    LOG_LEVEL: str

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            PORT=parse_int(os.getenv("PORT"), 8080),
            REDIS_HOST=parse_str(os.getenv("REDIS_HOST"), "localhost"),
            REDIS_PORT=parse_int(os.getenv("REDIS_PORT"), 6379),
            REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", ""),
            REDIS_DB=parse_int(os.getenv("REDIS_DB"), 0),
            CACHE_ENABLED=parse_bool(os.getenv("CACHE_ENABLED"), True),
            CACHE_SOCKET_TIMEOUT_SECONDS=parse_float(os.getenv("CACHE_SOCKET_TIMEOUT_SECONDS"), 0.5),
            PRICE_FRESHNESS_SECONDS=parse_int(os.getenv("PRICE_FRESHNESS_SECONDS"), 60),
            BASE_ASSET=parse_str(os.getenv("BASE_ASSET"), "BTC").upper(),
            KRAKEN_BASE_URL=parse_str(os.getenv("KRAKEN_BASE_URL"), "https://api.kraken.com"),
            KRAKEN_ASSET_CODE=parse_str(os.getenv("KRAKEN_ASSET_CODE"), "XBT").upper(),
            UPSTREAM_TIMEOUT_SECONDS=parse_float(os.getenv("UPSTREAM_TIMEOUT_SECONDS"), 10.0),
            DB_URL=parse_str(os.getenv("DB_URL"), "sqlite+aiosqlite:///./ltp.db"),
            AUDIT_ENABLED=parse_bool(os.getenv("AUDIT_ENABLED"), True),
            AUDIT_QUEUE_SIZE=parse_int(os.getenv("AUDIT_QUEUE_SIZE"), 1000),
            LOG_LEVEL=parse_str(os.getenv("LOG_LEVEL"), "INFO").upper(),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget the memoized settings so the next call re-reads the environment."""
    global _settings
    _settings = None
