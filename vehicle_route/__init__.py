from vehicle_route.RouteBase import LatLon, Route, interpolate
from vehicle_route.PlaybackState import Phase, PlaybackState
from vehicle_route.directions import RouteFetchError

__all__ = ["LatLon", "Route", "interpolate", "Phase", "PlaybackState", "RouteFetchError"]
