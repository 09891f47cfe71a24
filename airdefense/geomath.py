#!/usr/bin/env python3
"""
Geographic Math Module for the Air Defense Simulator

Implements the small-area geometry every other module builds on:
- LatLng: an immutable (latitude, longitude) pair in degrees
- Great-circle (haversine) distance on a spherical Earth
- Displacement of a point by meters along a bearing (planar approximation)
- Planar bearing between two points, consistent with displace()
- Vectorized distance from one origin to many points (numpy)

Bearing convention: degrees clockwise from north, where "north" is +latitude
and "east" is +longitude in a locally flat frame. displace() converts meter
offsets to degree offsets with a fixed METERS_PER_DEGREE for latitude and
METERS_PER_DEGREE * cos(latitude) for longitude. This is consistent and
deterministic but not globally accurate; errors grow with distance and with
|latitude|, so it must not be used near the poles or across long distances.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np


# =============================================================================
# EARTH CONSTANTS
# =============================================================================

# Mean Earth radius for the haversine formula (meters)
EARTH_RADIUS_M = 6_371_000.0

# Planar approximation: meters per degree of latitude (and of longitude at the equator)
METERS_PER_DEGREE = 111_320.0

# Beyond this |latitude| the cos(latitude) longitude scaling breaks down
MAX_PLANAR_LATITUDE_DEG = 89.0


# =============================================================================
# LATLNG
# =============================================================================

@dataclass(frozen=True)
class LatLng:
    """
    A geographic position.

    Attributes:
        lat: Latitude in degrees, -90 to 90.
        lng: Longitude in degrees.
    """
    lat: float
    lng: float

    def __post_init__(self) -> None:
        """Reject non-finite or out-of-range coordinates."""
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            raise ValueError(f"Coordinates must be finite, got ({self.lat}, {self.lng})")
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude must be within [-90, 90], got {self.lat}")

    def distance_to(self, other: LatLng) -> float:
        """Great-circle distance to another point in meters."""
        return haversine_distance(self, other)

    def bearing_to(self, other: LatLng) -> float:
        """Planar bearing to another point in degrees."""
        return planar_bearing(self, other)

    def moved(self, meters: float, bearing_deg: float) -> LatLng:
        """Return this point displaced by meters along a bearing."""
        return displace(self, meters, bearing_deg)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to a (lat, lng) tuple."""
        return (self.lat, self.lng)

    @classmethod
    def from_tuple(cls, t: Iterable[float]) -> LatLng:
        """Create from a (lat, lng) pair."""
        lat, lng = t
        return cls(float(lat), float(lng))

    def __repr__(self) -> str:
        return f"LatLng({self.lat:.6f}, {self.lng:.6f})"


def as_latlng(point: LatLng | tuple[float, float]) -> LatLng:
    """Accept either a LatLng or a (lat, lng) pair."""
    if isinstance(point, LatLng):
        return point
    return LatLng.from_tuple(point)


# =============================================================================
# DISTANCE
# =============================================================================

def haversine_distance(a: LatLng, b: LatLng) -> float:
    """
    Great-circle distance between two points on a sphere.

    Symmetric, zero iff a == b, and satisfies the triangle inequality.

    Args:
        a: First point.
        b: Second point.

    Returns:
        Distance in meters.
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)

    h = (math.sin(d_lat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2)
    # Clamp to guard sqrt(1 - h) against rounding just above 1.0
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_many(points: list[LatLng], origin: LatLng) -> np.ndarray:
    """
    Distances from one origin to many points, vectorized.

    Args:
        points: Points to measure to.
        origin: Common origin.

    Returns:
        Array of distances in meters, same order as points.
    """
    if not points:
        return np.empty(0, dtype=float)

    coords = np.radians(np.array([p.to_tuple() for p in points], dtype=float))
    lat1 = math.radians(origin.lat)
    lng1 = math.radians(origin.lng)
    lat2 = coords[:, 0]
    lng2 = coords[:, 1]

    h = (np.sin((lat2 - lat1) / 2) ** 2 +
         math.cos(lat1) * np.cos(lat2) * np.sin((lng2 - lng1) / 2) ** 2)
    h = np.clip(h, 0.0, 1.0)
    return 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


# =============================================================================
# DISPLACEMENT AND BEARING
# =============================================================================

def displace(point: LatLng, meters: float, bearing_deg: float) -> LatLng:
    """
    Move a point by a distance along a bearing (planar approximation).

    Args:
        point: Starting point.
        meters: Distance to move in meters.
        bearing_deg: Direction in degrees clockwise from north.

    Returns:
        The displaced point.
    """
    angle = math.radians(bearing_deg)
    north_m = meters * math.cos(angle)
    east_m = meters * math.sin(angle)

    d_lat = north_m / METERS_PER_DEGREE
    d_lng = east_m / (METERS_PER_DEGREE * _lng_scale(point.lat))

    # Clamp so a step can never push latitude outside the valid range
    new_lat = max(-90.0, min(90.0, point.lat + d_lat))
    return LatLng(new_lat, point.lng + d_lng)


def planar_bearing(origin: LatLng, target: LatLng) -> float:
    """
    Bearing from origin to target in the same planar frame displace() uses.

    Computed as atan2(d_lng * cos(origin.lat), d_lat), not the unscaled
    atan2(d_lng, d_lat). The cos(latitude) factor matches the longitude
    scaling in displace(), so displace(origin, d, planar_bearing(origin,
    target)) heads straight at the target. Without it the bearing skews
    east-west at higher latitudes and pursuit curves instead of closing
    directly.

    Returns:
        Bearing in degrees, in [0, 360).
    """
    d_north = target.lat - origin.lat
    d_east = (target.lng - origin.lng) * _lng_scale(origin.lat)
    if d_north == 0 and d_east == 0:
        return 0.0
    return math.degrees(math.atan2(d_east, d_north)) % 360.0


def _lng_scale(lat_deg: float) -> float:
    """cos(latitude), held away from zero near the poles."""
    clamped = max(-MAX_PLANAR_LATITUDE_DEG, min(MAX_PLANAR_LATITUDE_DEG, lat_deg))
    return math.cos(math.radians(clamped))


# =============================================================================
# RANDOM PLACEMENT
# =============================================================================

def random_point_around(
    center: LatLng,
    max_meters: float,
    rng: Optional[random.Random] = None
) -> LatLng:
    """
    Pick a point at a uniformly random angle and distance from center.

    Distance is uniform in [0, max_meters], so points cluster toward the
    center the way the spawner expects.

    Args:
        center: Center point.
        max_meters: Maximum distance from center.
        rng: Random source (defaults to a fresh unseeded generator).

    Returns:
        A point within max_meters of center.
    """
    rng = rng or random.Random()
    bearing = rng.uniform(0.0, 360.0)
    distance = rng.uniform(0.0, max_meters)
    return displace(center, distance, bearing)
