"""Deterministic stand-ins for a live pricing and inventory feed.

Values depend only on the identifiers passed in, so the same drug/pharmacy
pair yields the same price and stock level across requests and restarts.
Replace this module with a real data source without touching the pipeline.
"""

from __future__ import annotations

from src.models.pharmacy import Availability

_UINT32_MASK = 0xFFFFFFFF


def seed_hash(value: str | int) -> int:
    """Polynomial rolling hash (x31) over UTF-16 code units, unsigned 32-bit."""
    data = str(value).encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & _UINT32_MASK
    return h


def simulate_price(rxcui: str | int, place_id: str | int) -> float:
    """Base of $10-$49 from the drug, plus $0.00-$1.99 from the pharmacy."""
    base_dollars = 10 + seed_hash(rxcui) % 40
    variation_cents = seed_hash(place_id) % 200
    return (base_dollars * 100 + variation_cents) / 100


def simulate_stock(place_id: str | int) -> Availability:
    bucket = seed_hash(place_id) % 100
    if bucket < 10:
        return "out_of_stock"
    if bucket < 35:
        return "low_stock"
    return "in_stock"
