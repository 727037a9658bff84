"""Shared httpx plumbing for upstream providers."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.config import Settings
from src.services.errors import UpstreamError

logger = logging.getLogger(__name__)

# Exceptions that mean "the provider answered, but not in the shape we expect".
MALFORMED_PAYLOAD_ERRORS = (ValueError, KeyError, TypeError, AttributeError, IndexError)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the process-wide client. Upstream timeout policy lives here."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    )


async def fetch_json(
    client: httpx.AsyncClient,
    provider: str,
    failure_message: str,
    method: str,
    url: str,
    **kwargs: Any,
) -> Any:
    """Send one request and decode its JSON body.

    Transport errors, non-2xx answers and undecodable bodies all surface as
    ``UpstreamError``. The request URL is never included, since primary
    provider credentials travel as query parameters.
    """
    try:
        resp = await client.request(method, url, **kwargs)
        resp.raise_for_status()
        return resp.json()
    except httpx.HTTPStatusError as e:
        logger.warning(
            "%s answered HTTP %d", provider, e.response.status_code
        )
        raise UpstreamError.from_httpx(provider, failure_message, e) from e
    except httpx.HTTPError as e:
        logger.warning("%s unreachable: %s", provider, type(e).__name__)
        raise UpstreamError.from_httpx(provider, failure_message, e) from e
    except ValueError as e:
        logger.warning("%s returned a non-JSON body", provider)
        raise UpstreamError.from_httpx(provider, failure_message, e) from e
