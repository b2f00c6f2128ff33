"""Rate limited, cached client for the OWAPI stats endpoint."""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from owbot import __version__
from owbot.owapi.cache import StatsCache
from owbot.owapi.errors import (
    OwApiCancelledError,
    OwApiDecodeError,
    OwApiUpstreamError,
)
from owbot.owapi.gate import AdmissionGate, KeyedLock
from owbot.owapi.models import RegionStats, UserStats
from owbot.owapi.transport import DEFAULT_RETRY_AFTER, RateLimitedTransport

logger = logging.getLogger(__name__)

API_BASE_URL = "https://owapi.net/api/v3/"

# Regions in order of preference when two have played the same number of games
REGION_ORDER = ("us", "eu", "kr", "any")


def normalize_tag(battle_tag: str) -> str:
    """URL friendly form of a BattleTag, used as cache key and in the path.

    ``"Name#1234"`` becomes ``"Name-1234"``; normalizing twice changes nothing.
    """
    return battle_tag.replace("#", "-")


def _region_candidates(body: dict[str, Any]) -> list[tuple[str, Any]]:
    # A flat document is a single region's stats
    if "stats" in body:
        region = body.get("region")
        return [(region.upper() if isinstance(region, str) else "ANY", body)]

    names = [name for name in body if not name.startswith("_")]
    names.sort(
        key=lambda name: (
            REGION_ORDER.index(name.lower())
            if name.lower() in REGION_ORDER
            else len(REGION_ORDER)
        )
    )
    return [(name.upper(), body[name]) for name in names]


def select_region(body: dict[str, Any]) -> tuple[str, UserStats] | None:
    """Pick the region with the most competitive games played.

    Returns ``None`` if no region has any competitive games.
    """
    best: tuple[str, UserStats] | None = None
    most_played = 0
    for region, data in _region_candidates(body):
        if not isinstance(data, dict):
            continue
        try:
            stats = RegionStats.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable region {region}: {e}")
            continue
        if stats.competitive is not None and stats.games > most_played:
            most_played = stats.games
            best = (region, stats.competitive)
    return best


class StatsClient:
    """Client for competitive stats from the OWAPI.

    Stats are cached per BattleTag. Requests go through an
    :class:`AdmissionGate` so that bursts of chat commands do not translate
    into bursts of requests against the third-party API. The cache is checked
    again once a permit is obtained, so concurrent lookups of the same
    BattleTag result in a single request.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        *,
        cache: StatsCache | None = None,
        gate: AdmissionGate | None = None,
        transport: RateLimitedTransport | None = None,
        http_timeout: float = 30.0,
        retry_after_unit: str = "seconds",
        default_retry_after: float = DEFAULT_RETRY_AFTER,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.cache = cache if cache is not None else StatsCache()
        self.gate = gate if gate is not None else AdmissionGate()
        self.transport = transport
        self.http_timeout = http_timeout
        self.retry_after_unit = retry_after_unit
        self.default_retry_after = default_retry_after
        self._key_locks = KeyedLock()
        self._http: httpx.AsyncClient | None = None

    async def start(self):
        """Initialize the HTTP client, unless a transport was given."""
        if self.transport is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.http_timeout,
            headers={"User-Agent": f"owbot/{__version__}"},
        )
        self.transport = RateLimitedTransport(
            self._http,
            retry_after_unit=self.retry_after_unit,
            default_retry_after=self.default_retry_after,
        )
        logger.info(f"OWAPI client initialized for {self.base_url}")

    async def close(self):
        """Close the HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None
            self.transport = None

    async def __aenter__(self) -> "StatsClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_stats(
        self, battle_tag: str, timeout: float | None = None
    ) -> UserStats:
        """Return competitive stats for ``battle_tag``.

        Waiting for a permit, the request itself and any 429 back-off all
        count against ``timeout`` seconds; when it runs out
        :class:`OwApiCancelledError` is raised.

        Raises:
            OwApiCancelledError: The timeout expired.
            OwApiTransportError: The API could not be reached.
            OwApiUpstreamError: Bad response, or no competitive stats.
            OwApiDecodeError: The response was not a JSON object.
        """
        if self.transport is None:
            raise RuntimeError("OWAPI client not initialized")

        key = normalize_tag(battle_tag)
        stats = self.cache.get(key)
        if stats is not None:
            logger.debug(f"Stats cache hit for {key}")
            return stats

        try:
            async with asyncio.timeout(timeout):
                if self.gate.size > 1:
                    # The gate alone does not keep two requests for the
                    # same key apart when it admits more than one
                    async with self._key_locks.hold(key):
                        return await self._fetch_stats(key)
                return await self._fetch_stats(key)
        except TimeoutError as e:
            logger.info(f"Stats lookup for {key} timed out")
            raise OwApiCancelledError(
                f"Timed out after {timeout}s fetching stats for {key}"
            ) from e

    async def _fetch_stats(self, key: str) -> UserStats:
        async with self.gate.permit():
            # Another lookup may have fetched the same key while we waited
            stats = self.cache.get(key)
            if stats is not None:
                logger.debug(f"Stats cache hit for {key} after wait")
                return stats

            response = await self.transport.get(f"u/{quote(key, safe='')}/stats")
            stats = self._decode(key, response)
            self.cache.put(key, stats)
            return stats

    def _decode(self, key: str, response: httpx.Response) -> UserStats:
        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"Could not decode response for {key} as JSON")
            raise OwApiDecodeError(f"Response for {key} is not JSON: {e}") from e
        if not isinstance(body, dict):
            raise OwApiDecodeError(
                f"Response for {key} is a {type(body).__name__}, not an object"
            )

        best = select_region(body)
        if best is None:
            raise OwApiUpstreamError(
                f"Could not find a region with competitive stats for {key}"
            )
        region, stats = best
        return stats.model_copy(update={"battle_tag": key, "region": region})
