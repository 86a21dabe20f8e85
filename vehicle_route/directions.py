import logging
from typing import Any, Dict, List, Optional, Sequence

import polyline
import requests

from vehicle_route.RouteBase import LatLon

logger = logging.getLogger(__name__)

ORS_URL = "https://api.openrouteservice.org"
OSRM_URL = "https://router.project-osrm.org"


class RouteFetchError(Exception):
    """Directions request failed or answered with something we can't use."""


def lonlat(p: LatLon) -> str:
    # directions services want "lon,lat"
    lat, lon = p
    return f"{lon},{lat}"


def _check_waypoints(waypoints: Sequence[LatLon]) -> None:
    if len(waypoints) < 2:
        raise ValueError("At least two waypoints are required to fetch a route.")


def _get_json(session: requests.Session, url: str, params: Optional[Dict[str, str]], timeout: float) -> Dict[str, Any]:
    try:
        r = session.get(url, params=params, timeout=timeout)
        r.raise_for_status()
        return r.json()
    except requests.RequestException as e:
        raise RouteFetchError(f"request to {url} failed: {e}") from e
    except ValueError as e:
        raise RouteFetchError(f"invalid JSON from {url}") from e


class ORSDirections:
    """
    OpenRouteService GET /v2/directions/{profile}.
    Answers GeoJSON; geometry coordinates are [lon, lat].
    """

    def __init__(self, api_key: str, base_url: str = ORS_URL, profile: str = "driving-car",
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.session = session or requests.Session()

    def build_params(self, waypoints: Sequence[LatLon]) -> Dict[str, str]:
        return {
            "api_key": self.api_key,
            "start": lonlat(waypoints[0]),
            "end": lonlat(waypoints[-1]),
            "waypoints": "|".join(lonlat(p) for p in waypoints),
        }

    def fetch_route(self, waypoints: Sequence[LatLon]) -> List[LatLon]:
        _check_waypoints(waypoints)
        url = f"{self.base_url}/v2/directions/{self.profile}"
        logger.debug("ORS request %s %s -> %s", self.profile, waypoints[0], waypoints[-1])
        data = _get_json(self.session, url, self.build_params(waypoints), self.timeout)

        try:
            coords = data["features"][0]["geometry"]["coordinates"]
            geometry_latlon = [(float(lat), float(lon)) for lon, lat, *_ in coords]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RouteFetchError(f"unexpected ORS response: {str(data)[:200]}") from e

        if not geometry_latlon:
            raise RouteFetchError("ORS returned an empty geometry")
        return geometry_latlon


class OSRMDirections:
    """
    OSRM /route/v1/{profile}/lon,lat;lon,lat...
    Geometry comes back as an encoded polyline (lat first after decoding).
    """

    def __init__(self, base_url: str = OSRM_URL, profile: str = "driving",
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_route(self, waypoints: Sequence[LatLon]) -> List[LatLon]:
        _check_waypoints(waypoints)
        coords = ";".join(lonlat(p) for p in waypoints)
        url = f"{self.base_url}/route/v1/{self.profile}/{coords}"
        data = _get_json(self.session, url, {"overview": "full"}, self.timeout)

        if not isinstance(data, dict):
            raise RouteFetchError("unexpected OSRM response")
        if data.get("code") != "Ok":
            raise RouteFetchError(f"OSRM answered {data.get('code')}: {data.get('message', '')}")

        try:
            geometry_latlon = [(float(lat), float(lon)) for lat, lon in polyline.decode(data["routes"][0]["geometry"])]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise RouteFetchError("unexpected OSRM response") from e

        if not geometry_latlon:
            raise RouteFetchError("OSRM returned an empty geometry")
        return geometry_latlon
