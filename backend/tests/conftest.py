"""Test fixtures and configuration."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from src.config import Settings
from src.dependencies import get_search_pipeline
from src.main import app
from src.services.search_service import SearchPipeline, build_pipeline

RXNAV_URL = "https://rxnav.test/REST"
NOMINATIM_URL = "https://nominatim.test/search"
OVERPASS_URL = "https://overpass.test/api/interpreter"
GEOAPIFY_GEOCODE_URL = "https://geoapify.test/v1/geocode/search"
GEOAPIFY_PLACES_URL = "https://geoapify.test/v2/places"
GEOAPIFY_KEY = "test-geoapify-key"

BOSTON = (42.3554334, -71.060511)

# RxNav /drugs.json payloads keyed by lower-cased name
DRUGS = {
    "amoxicillin": {
        "drugGroup": {
            "name": None,
            "conceptGroup": [
                {"tty": "BPCK"},
                {
                    "tty": "SCD",
                    "conceptProperties": [
                        {"rxcui": "308182", "name": "amoxicillin 250 MG Oral Capsule"},
                        {"rxcui": "308191", "name": "amoxicillin 500 MG Oral Capsule"},
                    ],
                },
                {
                    "tty": "IN",
                    "conceptProperties": [{"rxcui": "723", "name": "Amoxicillin"}],
                },
            ],
        }
    },
    "lisinopril 10 mg oral tablet": {
        "drugGroup": {
            "name": None,
            "conceptGroup": [
                {
                    "tty": "SCD",
                    "conceptProperties": [
                        {"rxcui": "314076", "name": "lisinopril 10 MG Oral Tablet"},
                    ],
                },
            ],
        }
    },
    "ibuprofen": {
        "drugGroup": {
            "name": None,
            "conceptGroup": [
                {
                    "tty": "SCD",
                    "conceptProperties": [
                        {"rxcui": "197806", "name": "ibuprofen 600 MG Oral Tablet"},
                        {"rxcui": "197805", "name": "ibuprofen 400 MG Oral Tablet"},
                    ],
                },
            ],
        }
    },
}

SUGGESTIONS = {
    "amoxicilin": ["amoxicillin", "amoxicillin / clavulanate"],
}

GEOCODES = {
    "boston, ma": [
        {"place_id": 1, "lat": str(BOSTON[0]), "lon": str(BOSTON[1])},
    ],
}


def _overpass_elements() -> list[dict]:
    """Pharmacies around Boston, including ones without coordinates or tags."""
    elements: list[dict] = []
    for i in range(20):
        elements.append(
            {
                "type": "node",
                "id": 4_100_000_000 + i * 7919,
                "lat": BOSTON[0] + 0.003 * (i % 7),
                "lon": BOSTON[1] - 0.002 * (i % 5),
                "tags": {
                    "amenity": "pharmacy",
                    "name": f"Pharmacy {i}",
                    "addr:housenumber": str(100 + i),
                    "addr:street": "Tremont Street",
                    "addr:city": "Boston",
                    "addr:postcode": "02116",
                },
            }
        )
    elements.append(
        {
            "type": "way",
            "id": 77_001,
            "center": {"lat": BOSTON[0] + 0.01, "lon": BOSTON[1]},
            "tags": {"amenity": "pharmacy", "name": "CVS", "phone": "+1 617 555 0100"},
        }
    )
    elements.append(
        {
            "type": "relation",
            "id": 88_002,
            "tags": {"amenity": "pharmacy", "contact:phone": "+1 617 555 0199"},
        }
    )
    return elements


OVERPASS_ELEMENTS = _overpass_elements()


class FakeUpstream:
    """httpx.MockTransport handler standing in for every upstream provider."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.overpass_elements = OVERPASS_ELEMENTS
        self.geoapify_features: list[dict] = []

    def count(self, host: str, path_suffix: str = "") -> int:
        return sum(
            1
            for r in self.requests
            if r.url.host == host and r.url.path.endswith(path_suffix)
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url
        if url.host == "rxnav.test":
            name = url.params["name"].lower()
            if url.path.endswith("/drugs.json"):
                return httpx.Response(
                    200, json=DRUGS.get(name, {"drugGroup": {"name": None}})
                )
            suggestions = SUGGESTIONS.get(name)
            return httpx.Response(
                200,
                json={
                    "suggestionGroup": {
                        "name": name,
                        "suggestionList": (
                            {"suggestion": suggestions} if suggestions else None
                        ),
                    }
                },
            )
        if url.host == "nominatim.test":
            return httpx.Response(200, json=GEOCODES.get(url.params["q"].lower(), []))
        if url.host == "overpass.test":
            return httpx.Response(200, json={"elements": self.overpass_elements})
        if url.host == "geoapify.test" and url.path.endswith("/geocode/search"):
            hits = GEOCODES.get(url.params["text"].lower(), [])
            features = [
                {"properties": {"lat": float(h["lat"]), "lon": float(h["lon"])}}
                for h in hits
            ]
            return httpx.Response(200, json={"features": features})
        if url.host == "geoapify.test" and url.path.endswith("/places"):
            return httpx.Response(200, json={"features": self.geoapify_features})
        return httpx.Response(404, json={"error": "unexpected request"})


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream: FakeUpstream) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def keyless_settings() -> Settings:
    return Settings(
        geoapify_key="",
        rxnorm_base_url=RXNAV_URL,
        nominatim_url=NOMINATIM_URL,
        overpass_url=OVERPASS_URL,
        cache_ttl_seconds=0,
    )


@pytest.fixture
def keyed_settings() -> Settings:
    return Settings(
        geoapify_key=GEOAPIFY_KEY,
        rxnorm_base_url=RXNAV_URL,
        geoapify_geocode_url=GEOAPIFY_GEOCODE_URL,
        geoapify_places_url=GEOAPIFY_PLACES_URL,
        cache_ttl_seconds=0,
    )


@pytest.fixture
def pipeline(
    keyless_settings: Settings, http_client: httpx.AsyncClient
) -> SearchPipeline:
    return build_pipeline(keyless_settings, http_client)


@pytest.fixture
async def client(pipeline: SearchPipeline) -> AsyncIterator[AsyncClient]:
    app.dependency_overrides[get_search_pipeline] = lambda: pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
