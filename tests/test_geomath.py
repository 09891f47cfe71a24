#!/usr/bin/env python3
"""
Tests for the geographic math module.

Tests:
- LatLng validation and conversion
- Haversine distance (symmetry, identity, triangle inequality, known values)
- Vectorized distance against the scalar version
- Displacement and planar bearing consistency
- Random placement around a center
"""

import math
import random

import numpy as np
import pytest
from numpy.testing import assert_allclose

from airdefense.geomath import (
    EARTH_RADIUS_M,
    LatLng,
    as_latlng,
    displace,
    haversine_distance,
    haversine_many,
    planar_bearing,
    random_point_around,
)


KYIV = LatLng(50.45, 30.52)


def random_points(seed: int, count: int, spread_deg: float = 1.0) -> list[LatLng]:
    """Seeded random points scattered around Kyiv."""
    rng = random.Random(seed)
    return [
        LatLng(KYIV.lat + rng.uniform(-spread_deg, spread_deg),
               KYIV.lng + rng.uniform(-spread_deg, spread_deg))
        for _ in range(count)
    ]


# =============================================================================
# LATLNG
# =============================================================================

class TestLatLng:
    """Tests for the LatLng value type."""

    def test_rejects_latitude_above_90(self):
        """Latitude > 90 raises ValueError."""
        with pytest.raises(ValueError):
            LatLng(91.0, 0.0)

    def test_rejects_nan(self):
        """Non-finite coordinates raise ValueError."""
        with pytest.raises(ValueError):
            LatLng(float('nan'), 0.0)
        with pytest.raises(ValueError):
            LatLng(0.0, float('inf'))

    def test_tuple_roundtrip(self):
        """to_tuple/from_tuple preserve the coordinates."""
        assert LatLng.from_tuple(KYIV.to_tuple()) == KYIV

    def test_as_latlng_accepts_tuple(self):
        """as_latlng converts a (lat, lng) pair."""
        assert as_latlng((50.0, 30.0)) == LatLng(50.0, 30.0)
        assert as_latlng(KYIV) is KYIV

    def test_is_hashable_and_immutable(self):
        """LatLng is frozen."""
        with pytest.raises(AttributeError):
            KYIV.lat = 10.0  # type: ignore[misc]
        assert len({KYIV, LatLng(50.45, 30.52)}) == 1


# =============================================================================
# HAVERSINE
# =============================================================================

class TestHaversineDistance:
    """Tests for great-circle distance."""

    def test_zero_for_same_point(self):
        """distance(a, a) == 0."""
        assert haversine_distance(KYIV, KYIV) == 0.0

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_symmetric(self, seed):
        """distance(a, b) == distance(b, a)."""
        a, b = random_points(seed, 2)
        assert haversine_distance(a, b) == pytest.approx(haversine_distance(b, a), abs=1e-9)

    def test_positive_for_distinct_points(self):
        """Distinct points have positive distance."""
        assert haversine_distance(KYIV, LatLng(50.45, 30.5201)) > 0.0

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is 2*pi*R/360."""
        expected = 2 * math.pi * EARTH_RADIUS_M / 360
        d = haversine_distance(LatLng(50.0, 30.0), LatLng(51.0, 30.0))
        assert d == pytest.approx(expected, rel=1e-9)

    def test_antipodal_points(self):
        """Opposite points are half a circumference apart."""
        d = haversine_distance(LatLng(0.0, 0.0), LatLng(0.0, 180.0))
        assert d == pytest.approx(math.pi * EARTH_RADIUS_M, rel=1e-9)

    @pytest.mark.parametrize("seed", range(10))
    def test_triangle_inequality(self, seed):
        """d(a, c) <= d(a, b) + d(b, c)."""
        a, b, c = random_points(seed, 3, spread_deg=5.0)
        assert haversine_distance(a, c) <= (
            haversine_distance(a, b) + haversine_distance(b, c) + 1e-6
        )

    def test_method_matches_function(self):
        """LatLng.distance_to delegates to haversine_distance."""
        other = LatLng(50.5, 30.6)
        assert KYIV.distance_to(other) == haversine_distance(KYIV, other)


class TestHaversineMany:
    """Tests for vectorized distance."""

    def test_matches_scalar(self):
        """Each element equals the scalar haversine result."""
        points = random_points(11, 25)
        expected = np.array([haversine_distance(p, KYIV) for p in points])
        assert_allclose(haversine_many(points, KYIV), expected, rtol=1e-9, atol=1e-6)

    def test_empty_input(self):
        """No points gives an empty array."""
        result = haversine_many([], KYIV)
        assert isinstance(result, np.ndarray)
        assert result.shape == (0,)

    def test_origin_in_list_is_zero(self):
        """The origin itself is at distance 0."""
        result = haversine_many([KYIV, LatLng(50.5, 30.5)], KYIV)
        assert result[0] == pytest.approx(0.0, abs=1e-6)


# =============================================================================
# DISPLACEMENT AND BEARING
# =============================================================================

class TestDisplace:
    """Tests for planar displacement."""

    def test_north_increases_latitude(self):
        """Bearing 0 moves north only."""
        moved = displace(KYIV, 1000.0, 0.0)
        assert moved.lat > KYIV.lat
        assert moved.lng == pytest.approx(KYIV.lng, abs=1e-12)

    def test_east_increases_longitude(self):
        """Bearing 90 moves east only."""
        moved = displace(KYIV, 1000.0, 90.0)
        assert moved.lng > KYIV.lng
        assert moved.lat == pytest.approx(KYIV.lat, abs=1e-12)

    def test_zero_distance_is_identity(self):
        """Moving 0 m leaves the point in place."""
        assert displace(KYIV, 0.0, 123.0) == KYIV

    @pytest.mark.parametrize("bearing", [0, 45, 90, 135, 180, 225, 270, 315])
    @pytest.mark.parametrize("meters", [100.0, 1_000.0, 10_000.0])
    def test_distance_back_matches(self, bearing, meters):
        """Displacing by m then measuring back gives about m."""
        moved = displace(KYIV, meters, bearing)
        assert haversine_distance(KYIV, moved) == pytest.approx(meters, rel=5e-3)

    def test_latitude_never_leaves_valid_range(self):
        """A huge northward step clamps at the pole."""
        moved = displace(LatLng(89.5, 0.0), 500_000.0, 0.0)
        assert moved.lat <= 90.0


class TestPlanarBearing:
    """Tests for planar bearing."""

    @pytest.mark.parametrize("bearing,expected", [
        (0.0, 0.0),
        (90.0, 90.0),
        (180.0, 180.0),
        (270.0, 270.0),
    ])
    def test_cardinal_directions(self, bearing, expected):
        """Cardinal bearings come back exactly."""
        other = displace(KYIV, 5_000.0, bearing)
        assert planar_bearing(KYIV, other) == pytest.approx(expected, abs=1e-6)

    @pytest.mark.parametrize("bearing", [10.0, 37.0, 123.0, 250.0, 333.0])
    def test_inverse_of_displace(self, bearing):
        """planar_bearing recovers the bearing used by displace."""
        other = displace(KYIV, 8_000.0, bearing)
        assert planar_bearing(KYIV, other) == pytest.approx(bearing, abs=1e-6)

    def test_longitude_scaled_by_latitude(self):
        """Equal degree offsets north and east are not a 45 degree bearing at 60N."""
        origin = LatLng(60.0, 10.0)
        other = LatLng(60.01, 10.01)
        expected = math.degrees(math.atan2(0.01 * math.cos(math.radians(60.0)), 0.01))
        assert planar_bearing(origin, other) == pytest.approx(expected, abs=1e-6)
        assert planar_bearing(origin, other) == pytest.approx(26.565, abs=1e-3)

    def test_same_point_is_zero(self):
        """Bearing to self is 0 by convention."""
        assert planar_bearing(KYIV, KYIV) == 0.0

    def test_range_is_0_to_360(self):
        """Bearings are normalized to [0, 360)."""
        other = displace(KYIV, 1_000.0, -30.0)
        assert 0.0 <= planar_bearing(KYIV, other) < 360.0


# =============================================================================
# RANDOM PLACEMENT
# =============================================================================

class TestRandomPointAround:
    """Tests for random placement."""

    def test_within_radius(self):
        """All points land within the requested radius."""
        rng = random.Random(42)
        for _ in range(200):
            p = random_point_around(KYIV, 20_000.0, rng)
            assert haversine_distance(KYIV, p) <= 20_000.0 * 1.01

    def test_seeded_is_deterministic(self):
        """Same seed, same point."""
        a = random_point_around(KYIV, 5_000.0, random.Random(7))
        b = random_point_around(KYIV, 5_000.0, random.Random(7))
        assert a == b
