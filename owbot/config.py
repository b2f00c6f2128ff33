"""Configuration management for the bot."""

import math
import os
from dataclasses import dataclass

RETRY_AFTER_UNITS = ("seconds", "milliseconds")


def _env_number(name: str, default: str, cast=float, minimum=0):
    raw = os.environ.get(name, default)
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {e}")
    if not math.isfinite(value):
        raise ValueError(f"Invalid {name}: must be a finite number, got {raw}")
    if value < minimum:
        raise ValueError(f"Invalid {name}: must be at least {minimum}, got {value}")
    return value


@dataclass
class Config:
    """Bot configuration from environment variables."""

    # Required
    discord_token: str

    # OWAPI client
    owapi_base_url: str = "https://owapi.net/api/v3/"
    owapi_max_concurrency: int = 1
    owapi_retry_after_unit: str = "seconds"
    owapi_default_retry_after: float = 10.0
    owapi_http_timeout: float = 30.0

    # Stats cache
    stats_cache_size: int = 200
    stats_cache_ttl: float = 300.0

    # Longest time a command is processed before it is given up on
    command_timeout: float = 15.0

    # User store, in memory when unset
    user_db_path: str | None = None

    # Observability
    log_level: str = "INFO"
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""

        discord_token = os.environ.get("DISCORD_BOT_TOKEN")
        if not discord_token:
            raise ValueError("DISCORD_BOT_TOKEN environment variable is required")

        retry_after_unit = os.environ.get("OWAPI_RETRY_AFTER_UNIT", "seconds").lower()
        if retry_after_unit not in RETRY_AFTER_UNITS:
            raise ValueError(
                f"Invalid OWAPI_RETRY_AFTER_UNIT: {retry_after_unit!r}, "
                f"expected one of {', '.join(RETRY_AFTER_UNITS)}"
            )

        return cls(
            discord_token=discord_token,
            owapi_base_url=os.environ.get("OWAPI_BASE_URL", cls.owapi_base_url),
            owapi_max_concurrency=_env_number(
                "OWAPI_MAX_CONCURRENCY", "1", cast=int, minimum=1
            ),
            owapi_retry_after_unit=retry_after_unit,
            owapi_default_retry_after=_env_number(
                "OWAPI_DEFAULT_RETRY_AFTER_SECONDS", "10"
            ),
            owapi_http_timeout=_env_number("OWAPI_HTTP_TIMEOUT_SECONDS", "30"),
            stats_cache_size=_env_number("STATS_CACHE_SIZE", "200", cast=int, minimum=1),
            stats_cache_ttl=_env_number("STATS_CACHE_TTL_SECONDS", "300"),
            command_timeout=_env_number("COMMAND_TIMEOUT_SECONDS", "15"),
            user_db_path=os.environ.get("USER_DB_PATH") or None,
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            environment=os.environ.get("ENVIRONMENT", "development"),
        )
