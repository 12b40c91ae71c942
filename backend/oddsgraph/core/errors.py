"""Typed failures raised by the ingestion pipeline and the analytics services.

"Not configured" is deliberately absent: a missing upstream credential is a
successful, empty result carrying a ``warning`` string, never an exception.
"""

from __future__ import annotations


class OddsGraphError(Exception):
    """Base class for failures the API layer translates into a response.

    Attributes:
        code: Machine-readable error code (e.g. "UNSUPPORTED_MARKET").
        status_code: HTTP status the boundary layer should answer with.
    """

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str, *, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"{self.code}: {message}")


class UnsupportedMarketError(OddsGraphError):
    """A market was requested from an operation or endpoint that cannot serve it."""

    code = "UNSUPPORTED_MARKET"
    status_code = 422

    def __init__(self, message: str, *, market: str, code: str | None = None) -> None:
        self.market = market
        super().__init__(message, code=code)


class ValidationFailureError(OddsGraphError):
    """Required caller input is missing or out of range."""

    code = "VALIDATION_FAILED"
    status_code = 400


class UpstreamFailureError(OddsGraphError):
    """The odds feed could not be reached or returned an unusable payload."""

    code = "UPSTREAM_FAILURE"
    status_code = 502

    def __init__(self, message: str, *, endpoint: str) -> None:
        self.endpoint = endpoint
        super().__init__(message)
