"""Unit tests for synthetic price/stock generation and distance helpers."""

from __future__ import annotations

import pytest

from src.services.geo import haversine_km
from src.services.synthetic_pricing import seed_hash, simulate_price, simulate_stock


class TestSeedHash:
    def test_empty_string(self) -> None:
        assert seed_hash("") == 0

    def test_polynomial_31(self) -> None:
        assert seed_hash("a") == 97
        assert seed_hash("ab") == 97 * 31 + 98

    def test_wraps_to_unsigned_32_bit(self) -> None:
        # Same arithmetic as Java's String.hashCode, read as unsigned.
        assert seed_hash("polygenelubricants") == 2**31
        assert 0 <= seed_hash("x" * 500) < 2**32

    def test_int_and_str_ids_agree(self) -> None:
        assert seed_hash(4100007919) == seed_hash("4100007919")

    def test_hashes_utf16_code_units(self) -> None:
        # U+1F48A is a surrogate pair: 0xD83D, 0xDC8A
        assert seed_hash("\U0001f48a") == (0xD83D * 31 + 0xDC8A)


class TestSimulatePrice:
    def test_known_value(self) -> None:
        # base 10 + 97 % 40 = 27, cents 3105 % 200 = 105
        assert simulate_price("a", "ab") == 28.05

    def test_deterministic(self) -> None:
        first = simulate_price("723", "place-abc")
        assert all(simulate_price("723", "place-abc") == first for _ in range(5))

    @pytest.mark.parametrize(
        "rxcui,place_id",
        [("723", 1), ("308182", "51a9c1"), ("197806", 4100000000), ("x", "")],
    )
    def test_range_and_two_decimals(self, rxcui, place_id) -> None:
        price = simulate_price(rxcui, place_id)
        assert 10.0 <= price < 52.0
        assert round(price, 2) == price

    def test_base_comes_from_drug(self) -> None:
        a = simulate_price("723", "p1")
        b = simulate_price("723", "p2")
        assert abs(a - b) < 2.0


class TestSimulateStock:
    @pytest.mark.parametrize(
        "place_id,expected",
        [
            ("d", "out_of_stock"),  # 100 % 100 = 0
            ("ab", "out_of_stock"),  # 3105 % 100 = 5
            ("n", "low_stock"),  # 110 % 100 = 10
            ("7", "in_stock"),  # 55
            ("a", "in_stock"),  # 97
        ],
    )
    def test_fixed_partition(self, place_id, expected) -> None:
        assert simulate_stock(place_id) == expected

    def test_deterministic(self) -> None:
        assert simulate_stock(88002) == simulate_stock("88002")


class TestHaversine:
    def test_zero_distance(self) -> None:
        assert haversine_km(42.36, -71.06, 42.36, -71.06) == 0.0

    def test_boston_to_new_york(self) -> None:
        km = haversine_km(42.3601, -71.0589, 40.7128, -74.0060)
        assert 300 < km < 310

    def test_symmetric(self) -> None:
        there = haversine_km(51.5, -0.12, 48.85, 2.35)
        back = haversine_km(48.85, 2.35, 51.5, -0.12)
        assert there == pytest.approx(back)
