"""Medicine name normalization against RxNorm (RxNav REST API)."""

from __future__ import annotations

import logging

import httpx

from src.models.pharmacy import DrugResolution
from src.services.errors import UpstreamError
from src.services.lookup_cache import LookupCache, normalize_key
from src.services.upstream import MALFORMED_PAYLOAD_ERRORS, fetch_json

logger = logging.getLogger(__name__)

PROVIDER = "rxnorm"
_MALFORMED_MESSAGE = "RxNorm lookup failed: malformed payload"


def _concept_candidates(payload: dict) -> list[dict]:
    """Flatten drugGroup.conceptGroup[].conceptProperties[] in provider order."""
    groups = (payload.get("drugGroup") or {}).get("conceptGroup") or []
    candidates: list[dict] = []
    for group in groups:
        candidates.extend(group.get("conceptProperties") or [])
    return candidates


def _pick_candidate(candidates: list[dict], key: str) -> dict | None:
    """Prefer an exact case-insensitive name match, else the first candidate."""
    for candidate in candidates:
        if str(candidate.get("name", "")).lower() == key:
            return candidate
    return candidates[0] if candidates else None


def _suggestions(payload: dict) -> list[str]:
    group = payload.get("suggestionGroup") or {}
    suggestion_list = group.get("suggestionList") or {}
    return [str(s) for s in suggestion_list.get("suggestion") or []]


class MedicineResolver:
    """Resolve free text to an RxNorm concept, or to spelling suggestions.

    Both outcomes are cached by normalized input, so repeated misspellings
    do not hit RxNav again.
    """

    def __init__(
        self, client: httpx.AsyncClient, cache: LookupCache, base_url: str
    ) -> None:
        self._client = client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    async def resolve(self, name: str) -> DrugResolution:
        key = normalize_key(name)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        query = name.strip()
        payload = await fetch_json(
            self._client,
            PROVIDER,
            "RxNorm lookup failed",
            "GET",
            f"{self._base_url}/drugs.json",
            params={"name": query},
        )
        try:
            best = _pick_candidate(_concept_candidates(payload), key)
            resolution = (
                DrugResolution(rxcui=str(best["rxcui"]), name=str(best["name"]))
                if best is not None
                else None
            )
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(PROVIDER, _MALFORMED_MESSAGE) from e

        if resolution is None:
            logger.info("No RxNorm concept for %r, fetching suggestions", query)
            resolution = await self._suggest(query)
        else:
            logger.info(
                "Resolved %r -> rxcui=%s (%s)", query, resolution.rxcui, resolution.name
            )

        self._cache.set(key, resolution)
        return resolution

    async def _suggest(self, query: str) -> DrugResolution:
        payload = await fetch_json(
            self._client,
            PROVIDER,
            "RxNorm lookup failed",
            "GET",
            f"{self._base_url}/spellingsuggestions.json",
            params={"name": query},
        )
        try:
            return DrugResolution(suggestions=tuple(_suggestions(payload)))
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise UpstreamError(PROVIDER, _MALFORMED_MESSAGE) from e
