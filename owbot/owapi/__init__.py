"""Client for the third-party Overwatch stats API (OWAPI)."""

from owbot.owapi.cache import StatsCache
from owbot.owapi.client import StatsClient, normalize_tag
from owbot.owapi.errors import (
    OwApiCancelledError,
    OwApiDecodeError,
    OwApiError,
    OwApiTransportError,
    OwApiUpstreamError,
)
from owbot.owapi.gate import AdmissionGate
from owbot.owapi.models import UserStats
from owbot.owapi.transport import RateLimitedTransport

__all__ = [
    "AdmissionGate",
    "OwApiCancelledError",
    "OwApiDecodeError",
    "OwApiError",
    "OwApiTransportError",
    "OwApiUpstreamError",
    "RateLimitedTransport",
    "StatsCache",
    "StatsClient",
    "UserStats",
    "normalize_tag",
]
