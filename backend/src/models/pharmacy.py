"""Pydantic models for the lookup pipeline: drugs, coordinates, and facilities."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Availability = Literal["in_stock", "low_stock", "out_of_stock"]


class DrugResolution(BaseModel):
    """Outcome of resolving a free-text medicine name against RxNorm.

    Either a concept was matched (``rxcui`` and ``name`` set, no suggestions)
    or nothing matched and ``suggestions`` holds the spelling alternatives.
    """

    model_config = ConfigDict(frozen=True)

    rxcui: str | None = None
    name: str | None = None
    suggestions: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_matched_or_suggested(self) -> DrugResolution:
        if (self.rxcui is None) != (self.name is None):
            raise ValueError("rxcui and name must be set together")
        if self.rxcui is not None and self.suggestions:
            raise ValueError("a matched drug carries no suggestions")
        return self

    @property
    def found(self) -> bool:
        return self.rxcui is not None


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class Facility(BaseModel):
    """A pharmacy returned by a places provider.

    ``distance_km`` is None when the provider gave no distance and the
    facility has no usable coordinates. It is never defaulted to zero.
    """

    model_config = ConfigDict(frozen=True)

    id: str | int
    name: str
    address: str | None = None
    phone: str | None = None
    distance_km: float | None = None
    lat: float | None = None
    lon: float | None = None


class EnrichedFacility(Facility):
    price_usd: float
    availability: Availability


class SearchQuery(BaseModel):
    """Normalized search parameters as received from the HTTP boundary."""

    med: str = ""
    location: str = ""
    radius_km: float = 10
    price_min: float | None = None
    price_max: float | None = None
    stock: str = "any"
    sort: str = "distance"

    @field_validator("med", "location", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("price_min", "price_max", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: object) -> object:
        # The browser client sends empty strings for unset price inputs.
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("radius_km", mode="before")
    @classmethod
    def _blank_radius_is_default(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 10
        return value
