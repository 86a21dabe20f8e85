from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

LatLon = Tuple[float, float]  # (lat, lon)

# segment duration in ms = distance in metres / speed * DURATION_SCALE
DURATION_SCALE = 10.0
EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class Route:
    """
    A predefined trip the user can pick from the dropdown.
    waypoints: points the directions service must pass through, in order.
    """
    name: str
    waypoints: Tuple[LatLon, ...]

    def __post_init__(self):
        if not self.waypoints:
            raise ValueError("Route needs at least one waypoint")
        object.__setattr__(self, "waypoints", tuple((float(lat), float(lon)) for lat, lon in self.waypoints))

    @property
    def start(self) -> LatLon:
        return self.waypoints[0]

    @property
    def dest(self) -> LatLon:
        return self.waypoints[-1]

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "waypoints": [list(p) for p in self.waypoints],
        }


def interpolate(a: LatLon, b: LatLon, t: float) -> LatLon:
    lat1, lon1 = a
    lat2, lon2 = b
    return (lat1 + t * (lat2 - lat1), lon1 + t * (lon2 - lon1))


def haversine_m(a: LatLon, b: LatLon) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    x = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(x))


def segment_duration_ms(a: LatLon, b: LatLon, speed: float) -> float:
    # lower speed -> longer duration -> slower marker
    if speed <= 0:
        raise ValueError(f"speed must be > 0, got {speed}")
    return haversine_m(a, b) / speed * DURATION_SCALE


def route_length_m(points: List[LatLon]) -> float:
    return sum(haversine_m(points[i], points[i + 1]) for i in range(len(points) - 1))
