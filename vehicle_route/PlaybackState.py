from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from vehicle_route.RouteBase import LatLon, Route


class Phase(Enum):
    IDLE = auto()
    MOVING = auto()
    STOPPED = auto()


@dataclass
class PlaybackState:
    """
    Everything the map shows for the single vehicle.
    Owned by PlaybackController and handed to AnimationDriver explicitly.
    segment_index < len(route_coords) holds while phase is MOVING.
    """
    speed: float = 5.0
    phase: Phase = Phase.IDLE
    segment_index: int = 0
    moving: bool = False
    position: Optional[LatLon] = None
    route_coords: List[LatLon] = field(default_factory=list)
    selected_index: Optional[int] = None
    selected_route: Optional[Route] = None

    def last_coord(self) -> Optional[LatLon]:
        return self.route_coords[-1] if self.route_coords else None

    def to_json(self, include_route: bool = True) -> dict:
        data = {
            "phase": self.phase.name,
            "moving": self.moving,
            "segment_index": self.segment_index,
            "speed": self.speed,
            "selected_index": self.selected_index,
            "vehicle": list(self.position) if self.position is not None else None,
        }
        if include_route:
            # polyline + waypoint markers, only needed when the route changes
            data["route_coords"] = [list(p) for p in self.route_coords]
            data["waypoints"] = [list(p) for p in self.selected_route.waypoints] if self.selected_route else []
        return data
