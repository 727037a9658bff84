"""Search pipeline: medicine, location, pharmacies, then price, filter and sort."""

from __future__ import annotations

import logging

import httpx

from src.config import Settings
from src.models.pharmacy import EnrichedFacility, Facility, SearchQuery
from src.models.schemas import LocationSummary, MedSummary, SearchResult
from src.services.errors import (
    InvalidMedicineError,
    LocationNotFoundError,
    MissingParameterError,
)
from src.services.geocoding_service import (
    GeoapifyGeocoder,
    LocationResolver,
    NominatimGeocoder,
)
from src.services.lookup_cache import make_lookup_cache
from src.services.places_service import FacilityProvider, GeoapifyPlaces, OverpassPlaces
from src.services.rxnorm_service import MedicineResolver
from src.services.synthetic_pricing import simulate_price, simulate_stock

logger = logging.getLogger(__name__)

MIN_RADIUS_M = 1_000
MAX_RADIUS_M = 50_000

STOCK_FILTERS = ("in_stock", "low_stock")


def clamp_radius_m(radius_km: float) -> int:
    """Convert a requested radius to meters, clamped to [1 km, 50 km]."""
    return int(max(MIN_RADIUS_M, min(MAX_RADIUS_M, radius_km * 1000)))


def enrich(facilities: list[Facility], rxcui: str) -> list[EnrichedFacility]:
    return [
        EnrichedFacility(
            **f.model_dump(),
            price_usd=simulate_price(rxcui, f.id),
            availability=simulate_stock(f.id),
        )
        for f in facilities
    ]


def apply_filters(
    items: list[EnrichedFacility],
    price_min: float | None = None,
    price_max: float | None = None,
    stock: str = "any",
) -> list[EnrichedFacility]:
    """Keep items inside the price band and, for in_stock/low_stock, that stock level.

    Any other ``stock`` value (including "any") does no stock filtering.
    """
    if price_min is not None:
        items = [i for i in items if i.price_usd >= price_min]
    if price_max is not None:
        items = [i for i in items if i.price_usd <= price_max]
    if stock in STOCK_FILTERS:
        items = [i for i in items if i.availability == stock]
    return items


def sort_items(items: list[EnrichedFacility], sort: str) -> list[EnrichedFacility]:
    """Order by price or distance; unknown sort values fall back to distance.

    Sorting is stable, so equal keys keep provider order. Items without a
    distance always trail those with one.
    """
    if sort == "price_asc":
        return sorted(items, key=lambda i: i.price_usd)
    if sort == "price_desc":
        return sorted(items, key=lambda i: i.price_usd, reverse=True)
    return sorted(
        items,
        key=lambda i: (i.distance_km is None, i.distance_km or 0.0),
    )


class SearchPipeline:
    """Run one search end to end. Each call is independent of the others."""

    def __init__(
        self,
        medicines: MedicineResolver,
        locations: LocationResolver,
        places: FacilityProvider,
    ) -> None:
        self.medicines = medicines
        self.locations = locations
        self.places = places

    async def run(self, query: SearchQuery) -> SearchResult:
        if not query.med:
            raise MissingParameterError("med")
        if not query.location:
            raise MissingParameterError("location")

        drug = await self.medicines.resolve(query.med)
        if not drug.found:
            raise InvalidMedicineError(drug.suggestions)

        origin = await self.locations.resolve(query.location)
        if origin is None:
            raise LocationNotFoundError(query.location)

        radius_m = clamp_radius_m(query.radius_km)
        facilities = await self.places.search(origin, radius_m)
        logger.info(
            "%s returned %d pharmacies within %dm of %r",
            self.places.name,
            len(facilities),
            radius_m,
            query.location,
        )

        items = apply_filters(
            enrich(facilities, drug.rxcui),
            price_min=query.price_min,
            price_max=query.price_max,
            stock=query.stock,
        )
        items = sort_items(items, query.sort)
        logger.debug(
            "After filters (price %s-%s, stock=%s) and sort=%s: %d items",
            query.price_min,
            query.price_max,
            query.stock,
            query.sort,
            len(items),
        )

        return SearchResult(
            med=MedSummary(name=drug.name, rxcui=drug.rxcui),
            location=LocationSummary(
                text=query.location, lat=origin.lat, lon=origin.lon
            ),
            total=len(items),
            items=items,
        )


def build_pipeline(settings: Settings, client: httpx.AsyncClient) -> SearchPipeline:
    """Wire the pipeline once per process.

    The provider pair is fixed here from ``geoapify_key`` presence and never
    re-evaluated per request.
    """
    if settings.geoapify_key:
        geocoder = GeoapifyGeocoder(
            client, settings.geoapify_key, settings.geoapify_geocode_url
        )
        places = GeoapifyPlaces(
            client,
            settings.geoapify_key,
            settings.geoapify_places_url,
            category=settings.places_category,
            limit=settings.places_limit,
        )
    else:
        geocoder = NominatimGeocoder(client, settings.nominatim_url)
        places = OverpassPlaces(
            client, settings.overpass_url, amenity=settings.overpass_amenity
        )
    logger.info("Providers: geocoding=%s places=%s", geocoder.name, places.name)

    medicines = MedicineResolver(
        client,
        make_lookup_cache(
            "rxnorm", settings.cache_ttl_seconds, settings.cache_max_entries
        ),
        settings.rxnorm_base_url,
    )
    locations = LocationResolver(
        geocoder,
        make_lookup_cache(
            "geocode", settings.cache_ttl_seconds, settings.cache_max_entries
        ),
    )
    return SearchPipeline(medicines, locations, places)


if __name__ == "__main__":
    import asyncio
    import json

    from src.config import settings
    from src.services.upstream import create_http_client

    # Runs one search against the live providers, no web server needed.
    async def main() -> None:
        async with create_http_client(settings) as client:
            pipeline = build_pipeline(settings, client)
            result = await pipeline.run(
                SearchQuery(
                    med="Amoxicillin",
                    location="Boston, MA",
                    radius_km=10,
                    sort="price_asc",
                )
            )
        print(json.dumps(result.model_dump(), indent=2))

    asyncio.run(main())
