"""Free-text location to coordinates, via Geoapify or Nominatim."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from src.models.pharmacy import Coordinate
from src.services.errors import UpstreamError
from src.services.lookup_cache import LookupCache, normalize_key
from src.services.upstream import MALFORMED_PAYLOAD_ERRORS, fetch_json

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    """Return the single best coordinate for ``text``, or None when unknown."""

    name: str

    async def geocode(self, text: str) -> Coordinate | None: ...


class GeoapifyGeocoder:
    name = "geoapify"

    def __init__(self, client: httpx.AsyncClient, api_key: str, url: str) -> None:
        self._client = client
        self._api_key = api_key
        self._url = url

    async def geocode(self, text: str) -> Coordinate | None:
        payload = await fetch_json(
            self._client,
            self.name,
            "Geocoding failed",
            "GET",
            self._url,
            params={"text": text, "limit": 1, "apiKey": self._api_key},
        )
        try:
            features = payload.get("features") or []
            if not features:
                return None
            props = features[0]["properties"]
            return Coordinate(lat=float(props["lat"]), lon=float(props["lon"]))
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(
                self.name, "Geocoding failed: malformed payload"
            ) from e


class NominatimGeocoder:
    name = "nominatim"

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self._url = url

    async def geocode(self, text: str) -> Coordinate | None:
        payload = await fetch_json(
            self._client,
            self.name,
            "Geocoding failed",
            "GET",
            self._url,
            params={"format": "json", "q": text, "limit": 1},
        )
        try:
            if not payload:
                return None
            # Nominatim encodes coordinates as strings.
            item = payload[0]
            return Coordinate(lat=float(item["lat"]), lon=float(item["lon"]))
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(
                self.name, "Geocoding failed: malformed payload"
            ) from e


class LocationResolver:
    """Cache-fronted geocoding over whichever provider was configured.

    The cache key ignores the provider: a process only ever uses one.
    Misses are not cached so a later request can still find the place.
    """

    def __init__(self, geocoder: Geocoder, cache: LookupCache) -> None:
        self.geocoder = geocoder
        self._cache = cache

    async def resolve(self, text: str) -> Coordinate | None:
        key = normalize_key(text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        coordinate = await self.geocoder.geocode(text.strip())
        if coordinate is None:
            logger.info("%s found no match for %r", self.geocoder.name, text)
            return None

        logger.info(
            "Geocoded %r -> (%.5f, %.5f) via %s",
            text,
            coordinate.lat,
            coordinate.lon,
            self.geocoder.name,
        )
        self._cache.set(key, coordinate)
        return coordinate
