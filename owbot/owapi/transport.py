"""HTTP transport that waits out 429 Too Many Requests responses."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from owbot.owapi.errors import OwApiTransportError, OwApiUpstreamError

logger = logging.getLogger(__name__)

# Seconds to wait after a 429 response when Retry-After is missing or invalid
DEFAULT_RETRY_AFTER = 10.0

RETRY_AFTER_UNITS = {"seconds": 1.0, "milliseconds": 0.001}


def extract_retry_after(
    response: httpx.Response,
    unit: str = "seconds",
    default: float = DEFAULT_RETRY_AFTER,
) -> float:
    """Seconds to wait before retrying ``response``, 0 if it is not a 429.

    The ``Retry-After`` header is read in the configured ``unit``; deployments
    of the API disagree on whether it is seconds or milliseconds.
    """
    if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
        return 0.0
    try:
        value = float(response.headers["Retry-After"])
    except (KeyError, ValueError):
        return default
    if value < 0:
        return default
    return value * RETRY_AFTER_UNITS[unit]


def upstream_error(response: httpx.Response) -> OwApiUpstreamError:
    """Build an error for a failed response, using its JSON error body if any."""
    code = None
    api_message = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        if isinstance(body.get("code"), int):
            code = body["code"]
        if isinstance(body.get("message"), str):
            api_message = body["message"]
    request = response.request
    message = f"{request.method} {request.url}: {response.status_code}"
    if code is not None or api_message:
        message += f" ({code}) {api_message or ''}".rstrip()
    return OwApiUpstreamError(
        message,
        status_code=response.status_code,
        code=code,
        api_message=api_message,
    )


class RateLimitedTransport:
    """Sends GET requests, retrying those rejected with a 429 response.

    Retries are not limited in number; bound them with a deadline around
    the call. Network failures are raised as :class:`OwApiTransportError`
    and never retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        retry_after_unit: str = "seconds",
        default_retry_after: float = DEFAULT_RETRY_AFTER,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if retry_after_unit not in RETRY_AFTER_UNITS:
            raise ValueError(
                f"retry_after_unit must be one of {sorted(RETRY_AFTER_UNITS)}, "
                f"got {retry_after_unit!r}"
            )
        self.client = client
        self.retry_after_unit = retry_after_unit
        self.default_retry_after = default_retry_after
        self._sleep = sleep

    async def get(self, url: str) -> httpx.Response:
        """GET ``url`` (relative to the client's base url).

        Returns the first 2xx response, read in full.
        """
        while True:
            try:
                response = await self.client.get(url)
            except httpx.TransportError as e:
                logger.warning(f"Request to {url} failed: {e!r}")
                raise OwApiTransportError(f"GET {url}: {e}") from e

            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                break
            retry_after = extract_retry_after(
                response, self.retry_after_unit, self.default_retry_after
            )
            logger.info(
                f"Got a 429 response, limiting for {retry_after}s: {response.url}"
            )
            await self._sleep(retry_after)

        if not response.is_success:
            error = upstream_error(response)
            logger.warning(f"Bad response: {error}")
            raise error

        logger.debug(f"Request was successful: {response.url}")
        return response
