"""Nearby pharmacy search, via Geoapify Places or the Overpass API."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from src.models.pharmacy import Coordinate, Facility
from src.services.errors import UpstreamError
from src.services.geo import haversine_km
from src.services.upstream import MALFORMED_PAYLOAD_ERRORS, fetch_json

logger = logging.getLogger(__name__)

OVERPASS_QUERY_TEMPLATE = """\
[out:json];
(
  node["amenity"="{amenity}"](around:{radius},{lat},{lon});
  way["amenity"="{amenity}"](around:{radius},{lat},{lon});
  relation["amenity"="{amenity}"](around:{radius},{lat},{lon});
);
out center tags;"""


class FacilityProvider(Protocol):
    """Return facilities around ``origin`` in provider order.

    ``radius_m`` must already be clamped by the caller.
    """

    name: str

    async def search(self, origin: Coordinate, radius_m: int) -> list[Facility]: ...


def _local_distance_km(
    origin: Coordinate, lat: float | None, lon: float | None
) -> float | None:
    if lat is None or lon is None:
        return None
    return round(haversine_km(origin.lat, origin.lon, lat, lon), 2)


def _join_address(parts: list[str | None]) -> str | None:
    present = [p for p in parts if p]
    return ", ".join(present) if present else None


class GeoapifyPlaces:
    name = "geoapify"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        url: str,
        category: str = "healthcare.pharmacy",
        limit: int = 30,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._url = url
        self._category = category
        self._limit = limit

    async def search(self, origin: Coordinate, radius_m: int) -> list[Facility]:
        payload = await fetch_json(
            self._client,
            self.name,
            "Pharmacy search failed",
            "GET",
            self._url,
            params={
                "categories": self._category,
                "filter": f"circle:{origin.lon},{origin.lat},{radius_m}",
                "bias": f"proximity:{origin.lon},{origin.lat}",
                "limit": self._limit,
                "apiKey": self._api_key,
            },
        )
        try:
            features = payload.get("features") or []
            return [self._to_facility(f["properties"], origin) for f in features]
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(
                self.name, "Pharmacy search failed: malformed payload"
            ) from e

    @staticmethod
    def _to_facility(props: dict, origin: Coordinate) -> Facility:
        lat, lon = props.get("lat"), props.get("lon")
        distance_m = props.get("distance")
        if distance_m is not None:
            distance_km = round(float(distance_m) / 1000, 2)
        else:
            distance_km = _local_distance_km(origin, lat, lon)
        return Facility(
            id=props["place_id"],
            name=props.get("name") or "Unknown Pharmacy",
            address=props.get("formatted")
            or _join_address([props.get("street"), props.get("city")]),
            phone=(props.get("contact") or {}).get("phone"),
            distance_km=distance_km,
            lat=lat,
            lon=lon,
        )


class OverpassPlaces:
    name = "overpass"

    def __init__(
        self, client: httpx.AsyncClient, url: str, amenity: str = "pharmacy"
    ) -> None:
        self._client = client
        self._url = url
        self._amenity = amenity

    def build_query(self, origin: Coordinate, radius_m: int) -> str:
        return OVERPASS_QUERY_TEMPLATE.format(
            amenity=self._amenity, radius=radius_m, lat=origin.lat, lon=origin.lon
        )

    async def search(self, origin: Coordinate, radius_m: int) -> list[Facility]:
        query = self.build_query(origin, radius_m)
        logger.debug("Overpass query:\n%s", query)
        payload = await fetch_json(
            self._client,
            self.name,
            "Pharmacy search failed",
            "POST",
            self._url,
            data={"data": query},
        )
        try:
            elements = payload.get("elements") or []
            return [self._to_facility(e, origin) for e in elements]
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(
                self.name, "Pharmacy search failed: malformed payload"
            ) from e

    @staticmethod
    def _to_facility(element: dict, origin: Coordinate) -> Facility:
        # Ways and relations carry their position under "center".
        center = element.get("center") or {}
        lat = element.get("lat", center.get("lat"))
        lon = element.get("lon", center.get("lon"))
        tags = element.get("tags") or {}
        return Facility(
            id=element["id"],
            name=tags.get("name") or "Pharmacy",
            address=_join_address(
                [
                    tags.get("addr:housenumber"),
                    tags.get("addr:street"),
                    tags.get("addr:city"),
                    tags.get("addr:postcode"),
                ]
            ),
            phone=tags.get("phone") or tags.get("contact:phone"),
            distance_km=_local_distance_km(origin, lat, lon),
            lat=lat,
            lon=lon,
        )
