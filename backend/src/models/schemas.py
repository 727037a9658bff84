"""Pydantic request/response/error schemas."""

from __future__ import annotations

from pydantic import BaseModel

from src.models.pharmacy import EnrichedFacility


# --- Search API schemas ---


class MedSummary(BaseModel):
    name: str
    rxcui: str


class LocationSummary(BaseModel):
    text: str
    lat: float
    lon: float


class SearchResult(BaseModel):
    med: MedSummary
    location: LocationSummary
    total: int
    items: list[EnrichedFacility]


# --- Health schema ---


class HealthResponse(BaseModel):
    status: str
    timestamp: int


# --- Error schema ---


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: dict = {}
