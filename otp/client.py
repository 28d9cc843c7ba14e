#Purpose: The OTP "adapter/client".
#Sole responsibility: talk to a running OTP via HTTP and return its JSON.
#Encapsulates OTP-specific details:
#coordinate formatting ("lat,lon" - note OTP wants lat first, unlike OSRM)
#date/time formatting for the plan and isochrone endpoints
#mode validation
#turning error payloads into exceptions
#Table/frame conversion lives in results.py.

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import requests

from .connection import OTPConnection
from .errors import OTPPlanError, OTPRequestError

logger = logging.getLogger(__name__)

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]

# Modes understood by OTP 1.x
MODES = {
    "TRANSIT", "WALK", "BICYCLE", "CAR", "BUS", "RAIL", "SUBWAY", "TRAM",
    "FERRY", "CABLE_CAR", "GONDOLA", "FUNICULAR", "AIRPLANE",
    "BICYCLE_RENT", "CAR_PARK", "CAR_PICKUP",
}


def format_place(place: LatLon) -> str:
    """Validate a (lat, lon) pair and format it as OTP expects: 'lat,lon'"""
    if len(place) != 2:
        raise ValueError(f"Expected a (lat, lon) pair, got {place!r}")

    lat, lon = float(place[0]), float(place[1])
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValueError(f"Coordinates must be finite, got {place!r}")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} outside [-90, 90]; coordinates are (lat, lon)")
    if not -180 <= lon <= 180:
        raise ValueError(f"Longitude {lon} outside [-180, 180]")
    return f"{lat},{lon}"


def format_mode(mode: Union[str, Iterable[str]]) -> str:
    """'transit,walk' or ['TRANSIT', 'WALK'] -> 'TRANSIT,WALK'"""
    if isinstance(mode, str):
        modes = mode.split(",")
    else:
        modes = list(mode)

    modes = [m.strip().upper() for m in modes if m and m.strip()]
    if not modes:
        raise ValueError("At least one mode is required")

    unknown = [m for m in modes if m not in MODES]
    if unknown:
        raise ValueError(f"Unknown mode(s): {', '.join(unknown)}")
    return ",".join(modes)


def format_date_time(date_time: Optional[datetime] = None) -> Dict[str, str]:
    """OTP 1.x takes date as MM-DD-YYYY and time as HH:MM:SS, local to the router."""
    date_time = date_time or datetime.now()
    return {
        "date": date_time.strftime("%m-%d-%Y"),
        "time": date_time.strftime("%H:%M:%S"),
    }


def _bool(value: bool) -> str:
    return "true" if value else "false"


class OTPClient:
    """
    OTP Adapter / Client

    Sole responsibility:
    - Talk to OTP via HTTP
    - Convert internal (lat, lon) -> OTP "lat,lon"
    - Raise on error payloads, return JSON otherwise
    """

    def __init__(self, connection: Optional[OTPConnection] = None, timeout: float = 30,
                 session: Optional[requests.Session] = None):
        self.connection = connection or OTPConnection()
        self.timeout = timeout  # seconds to wait for OTP before giving up
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    #----------------
    # Internal helpers
    #----------------
    def _get(self, url: str, params: Any = None) -> Any:
        logger.debug("GET %s params=%s", url, params)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise OTPRequestError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise OTPRequestError(
                f"OTP returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise OTPRequestError(f"OTP returned invalid JSON for {url}") from e

    #----------------
    # Public methods
    #----------------
    def routers(self) -> List[str]:
        """Ids of the routers the server has loaded."""
        data = self._get(f"{self.connection.base_url()}/routers")
        return [item["routerId"] for item in data.get("routerInfo", [])]

    def plan(self, from_place: LatLon, to_place: LatLon, *,
             mode: Union[str, Sequence[str]] = "CAR",
             date_time: Optional[datetime] = None,
             arrive_by: bool = False,
             max_walk_distance: float = 1000,
             num_itineraries: int = 3,
             walk_reluctance: float = 2,
             transfer_penalty: int = 0,
             min_transfer_time: int = 0,
             extra_params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Calls the OTP /plan endpoint and returns the raw response.

        Returns:
            {"plan": {"itineraries": [...], ...}, "requestParameters": {...}}

        Raises OTPPlanError when OTP could not find a trip
        (e.g. {"error": {"id": 404, "msg": "PATH_NOT_FOUND", ...}}).
        """
        if num_itineraries < 1:
            raise ValueError("num_itineraries must be >= 1")
        if max_walk_distance < 0:
            raise ValueError("max_walk_distance cannot be negative")

        params = {
            "fromPlace": format_place(from_place),
            "toPlace": format_place(to_place),
            "mode": format_mode(mode),
            "arriveBy": _bool(arrive_by),
            "maxWalkDistance": max_walk_distance,
            "numItineraries": num_itineraries,
            "walkReluctance": walk_reluctance,
            "transferPenalty": transfer_penalty,
            "minTransferTime": min_transfer_time,
        }
        params.update(format_date_time(date_time))
        if extra_params:
            params.update(extra_params)

        data = self._get(f"{self.connection.router_url()}/plan", params=params)

        error = data.get("error")
        if error:
            raise OTPPlanError(
                error.get("id"),
                error.get("msg", ""),
                error.get("message", ""),
            )
        return data

    def isochrone(self, from_place: LatLon, *,
                  mode: Union[str, Sequence[str]] = "TRANSIT,WALK",
                  date_time: Optional[datetime] = None,
                  cutoffs: Sequence[int] = (600, 1200, 1800),
                  arrive_by: bool = False,
                  max_walk_distance: float = 1000) -> Dict[str, Any]:
        """
        Calls the OTP /isochrone endpoint.
        cutoffs are travel times in seconds, one polygon is returned per cutoff.

        Returns a GeoJSON FeatureCollection dict.
        """
        if not cutoffs:
            raise ValueError("At least one cutoff is required")
        if any(c <= 0 for c in cutoffs):
            raise ValueError("cutoffs must be positive numbers of seconds")

        # list of tuples so requests repeats cutoffSec once per value
        params = [
            ("fromPlace", format_place(from_place)),
            ("mode", format_mode(mode)),
            ("arriveBy", _bool(arrive_by)),
            ("maxWalkDistance", max_walk_distance),
        ]
        params += list(format_date_time(date_time).items())
        params += [("cutoffSec", int(c)) for c in cutoffs]

        data = self._get(f"{self.connection.router_url()}/isochrone", params=params)
        if data.get("type") != "FeatureCollection":
            raise OTPRequestError("OTP isochrone response is not a GeoJSON FeatureCollection")
        return data

    def geocode(self, query: str, *, autocomplete: bool = False, stops: bool = True,
                clusters: bool = False, corners: bool = True) -> List[Dict[str, Any]]:
        """
        Calls the OTP /geocode endpoint (stop names, stop ids, street corners).
        """
        if not query:
            raise ValueError("query cannot be empty")

        params = {
            "query": query,
            "autocomplete": _bool(autocomplete),
            "stops": _bool(stops),
            "clusters": _bool(clusters),
            "corners": _bool(corners),
        }
        return self._get(f"{self.connection.router_url()}/geocode", params=params)
