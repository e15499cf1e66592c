"""Geographic helpers and the travel time model."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .tuning import DEFAULT_TUNING, MovementConstants

EARTH_RADIUS_M = 6_371_000
METERS_PER_DEGREE_LNG = 111_320
METERS_PER_DEGREE_LAT = 110_574

COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two points in meters."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def bearing(a: Coordinates, b: Coordinates) -> float:
    """Initial bearing from a to b in degrees, 0 = north."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlng = math.radians(b.lng - a.lng)
    x = math.sin(dlng) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return (math.degrees(math.atan2(x, y)) + 360) % 360


def compass_direction(a: Coordinates, b: Coordinates) -> str:
    """Eight-point compass name of the direction from a to b."""
    return COMPASS_POINTS[int((bearing(a, b) + 22.5) // 45) % 8]


def transit_time(distance: float, movement: MovementConstants = DEFAULT_TUNING.movement) -> float:
    """Seconds to ride between two adjacent stations.

    Cruise time at the average metro speed plus an acceleration allowance
    proportional to the distance, capped per hop.
    """
    cruise = distance / movement.metro_speed_ms
    acceleration = min(distance * movement.acceleration_factor, movement.max_acceleration_seconds)
    return cruise + acceleration


def walking_time(distance: float, movement: MovementConstants = DEFAULT_TUNING.movement) -> float:
    """Seconds to walk the given distance, rounded to whole seconds."""
    return float(round(distance / movement.walking_speed_ms))


def grid_cell(point: Coordinates, cell_size: float) -> tuple[int, int]:
    """Spatial grid cell containing a point."""
    return (
        math.floor(point.lng * METERS_PER_DEGREE_LNG / cell_size),
        math.floor(point.lat * METERS_PER_DEGREE_LAT / cell_size),
    )
