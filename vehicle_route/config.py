from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv

from vehicle_route.RouteBase import LatLon, Route
from vehicle_route.directions import ORS_URL, OSRM_URL, ORSDirections, OSRMDirections

MAP_CENTER: LatLon = (25.4358, 81.8463)  # Prayagraj
MAP_ZOOM = 13

ROUTES: List[Route] = [
    Route("Route 1", ((25.4358, 81.8463), (25.555, 81.9863))),
    Route("Route 2", ((25.4358, 81.8463), (25.565, 81.9963))),
]

PROVIDERS = ("ors", "osrm")


class ConfigError(Exception):
    pass


def read_key_file(path: Union[str, Path] = "key.txt") -> Optional[str]:
    p = Path(path)
    if not p.is_file():
        return None
    return p.read_text(encoding="utf-8").strip() or None


@dataclass
class Settings:
    ors_api_key: Optional[str] = None
    provider: str = "ors"
    ors_url: str = ORS_URL
    ors_profile: str = "driving-car"
    osrm_url: str = OSRM_URL
    osrm_profile: str = "driving"
    timeout_s: float = 30.0
    speed: float = 5.0
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        load_dotenv(env_file)
        return cls(
            ors_api_key=os.getenv("ORS_API_KEY") or read_key_file(),
            provider=os.getenv("ROUTE_PROVIDER", "ors").lower(),
            ors_url=os.getenv("ORS_URL", ORS_URL),
            ors_profile=os.getenv("ORS_PROFILE", "driving-car"),
            osrm_url=os.getenv("OSRM_URL", OSRM_URL),
            osrm_profile=os.getenv("OSRM_PROFILE", "driving"),
            timeout_s=float(os.getenv("ROUTE_TIMEOUT_S", "30")),
            speed=float(os.getenv("VEHICLE_SPEED", "5")),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
        )

    def directions(self) -> Union[ORSDirections, OSRMDirections]:
        if self.provider == "osrm":
            return OSRMDirections(base_url=self.osrm_url, profile=self.osrm_profile, timeout=self.timeout_s)
        if self.provider != "ors":
            raise ConfigError(f"Unknown provider: {self.provider} (expected one of {', '.join(PROVIDERS)})")
        if not self.ors_api_key:
            raise ConfigError("ORS_API_KEY is not set (env, .env or key.txt)")
        return ORSDirections(api_key=self.ors_api_key, base_url=self.ors_url,
                             profile=self.ors_profile, timeout=self.timeout_s)
