from __future__ import annotations

import asyncio
import logging
import math
from typing import Callable, List, Optional, Sequence

from vehicle_route.AnimationDriver import AnimationDriver
from vehicle_route.PlaybackState import PlaybackState
from vehicle_route.RouteBase import LatLon, Route
from vehicle_route.directions import RouteFetchError
from vehicle_route.frame_scheduler import FrameScheduler

logger = logging.getLogger(__name__)

FetchRoute = Callable[[Sequence[LatLon]], List[LatLon]]
Listener = Callable[[str, dict], None]  # (event type, payload)


class PlaybackController:
    """
    Wires the dropdown and the start/stop button to the fetch adapter and the driver.
    All methods run on the event loop; only the directions request leaves it.
    """

    def __init__(self,
                 routes: Sequence[Route],
                 fetch_route: FetchRoute,
                 scheduler: FrameScheduler,
                 speed: float = 5.0):
        if speed <= 0:
            raise ValueError(f"speed must be > 0, got {speed}")
        self.routes = list(routes)
        self.fetch_route = fetch_route
        self.state = PlaybackState(speed=speed)
        self.driver = AnimationDriver(scheduler, on_change=self._on_driver_change)
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> dict:
        return self.state.to_json()

    def _on_driver_change(self, state: PlaybackState) -> None:
        self._publish()

    def _publish(self, event: str = "position") -> None:
        payload = self.state.to_json(include_route=event == "route")
        for listener in list(self._listeners):
            listener(event, payload)

    async def select_route(self, index: Optional[int]) -> bool:
        if index is None:
            return False
        if not 0 <= index < len(self.routes):
            logger.warning("no route with index %s (%d configured)", index, len(self.routes))
            return False

        route = self.routes[index]
        if len(route.waypoints) < 2:
            logger.warning("%s has fewer than two waypoints, nothing to fetch", route.name)
            return False

        self.state.selected_index = index
        self.state.selected_route = route
        logger.info("selected %s", route.name)
        self._publish("route")

        try:
            coords = await asyncio.to_thread(self.fetch_route, route.waypoints)
        except RouteFetchError:
            logger.exception("Error fetching route")
            return False

        # last response to land wins
        self.driver.reset(self.state)
        self.state.route_coords = list(coords)
        self.state.position = self.state.route_coords[0] if self.state.route_coords else None
        logger.info("%s: %d points", route.name, len(self.state.route_coords))
        self._publish("route")
        return True

    def toggle_movement(self) -> bool:
        if not self.state.moving:
            if not self.driver.start(self.state):
                logger.info("nothing to animate, select a route first")
        else:
            self.driver.stop(self.state)
        self._publish()
        return self.state.moving

    def set_speed(self, value: float) -> None:
        if not math.isfinite(value) or value <= 0:
            raise ValueError(f"speed must be > 0, got {value}")
        self.state.speed = value
        self._publish()
