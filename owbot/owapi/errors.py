"""Exceptions raised by the OWAPI client.

Hierarchy::

    OwApiError
    ├── OwApiTransportError
    ├── OwApiUpstreamError   (status_code, code, message)
    ├── OwApiDecodeError
    └── OwApiCancelledError
"""


class OwApiError(Exception):
    """Base class for every failure of a stats lookup."""


class OwApiTransportError(OwApiError):
    """The request never produced a response (connection refused, timeout...)."""


class OwApiUpstreamError(OwApiError):
    """The API answered, but not with usable stats.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status of the response, ``None`` when the response
            was successful but held no competitive stats.
        code: Error code from the JSON error body, if any.
        api_message: Error message from the JSON error body, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: int | None = None,
        api_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.api_message = api_message


class OwApiDecodeError(OwApiError):
    """The response body could not be read as a stats document."""


class OwApiCancelledError(OwApiError):
    """The caller's deadline expired before the lookup finished."""
