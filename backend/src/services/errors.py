"""Error taxonomy for the search pipeline.

Every error is terminal for the request. The router maps ``status_code``,
``code``, ``message`` and ``details`` onto the shared ``ErrorDetail`` envelope.
"""

from __future__ import annotations

import httpx

# Upper bound on how much of an upstream error body is echoed back.
MAX_UPSTREAM_BODY_CHARS = 500


class SearchError(Exception):
    """Base class for all pipeline failures."""

    status_code = 500

    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class MissingParameterError(SearchError):
    status_code = 400

    def __init__(self, parameter: str) -> None:
        super().__init__(
            code="MISSING_PARAMETER",
            message=f"Missing parameter: {parameter}",
            details={"parameter": parameter},
        )


class InvalidParameterError(SearchError):
    status_code = 400

    def __init__(self, parameter: str, reason: str) -> None:
        super().__init__(
            code="INVALID_PARAMETER",
            message=f"Invalid parameter: {parameter}",
            details={"parameter": parameter, "reason": reason},
        )


class InvalidMedicineError(SearchError):
    status_code = 400

    def __init__(self, suggestions: list[str] | tuple[str, ...]) -> None:
        self.suggestions = list(suggestions)
        super().__init__(
            code="INVALID_MEDICINE",
            message="Invalid medicine name",
            details={"suggestions": self.suggestions},
        )


class LocationNotFoundError(SearchError):
    status_code = 404

    def __init__(self, location: str) -> None:
        super().__init__(
            code="LOCATION_NOT_FOUND",
            message="Location not found",
            details={"location": location},
        )


class UpstreamError(SearchError):
    """A provider was unreachable, answered non-2xx, or sent a malformed payload."""

    status_code = 502

    def __init__(
        self,
        provider: str,
        message: str,
        upstream_status: int | None = None,
        upstream_body: str | None = None,
    ) -> None:
        self.provider = provider
        self.upstream_status = upstream_status
        details: dict = {"provider": provider}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        if upstream_body:
            details["upstream_body"] = upstream_body[:MAX_UPSTREAM_BODY_CHARS]
        super().__init__(code="UPSTREAM_ERROR", message=message, details=details)

    @classmethod
    def from_httpx(cls, provider: str, message: str, exc: Exception) -> UpstreamError:
        """Build from an httpx or decoding failure without leaking the request URL."""
        if isinstance(exc, httpx.HTTPStatusError):
            return cls(
                provider,
                message,
                upstream_status=exc.response.status_code,
                upstream_body=exc.response.text,
            )
        return cls(provider, f"{message}: {type(exc).__name__}")
