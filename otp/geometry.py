#Purpose: Geometry helpers for OTP responses.
#OTP encodes leg geometry as Google encoded polylines (lat,lon order, 5 digits).
#We decode them with the polyline library and return shapely geometries in
#(lon, lat) order, which is what geopandas/shapely expect.

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
import polyline
from shapely.geometry import LineString, Point


def decode_points(points: Optional[str], precision: int = 5) -> List[Tuple[float, float]]:
    """Encoded polyline -> [(lon, lat), ...]"""
    if not points:
        return []
    return [(lon, lat) for lat, lon in polyline.decode(points, precision)]


def decode_geometry(points: Optional[str], precision: int = 5) -> Union[LineString, Point, None]:
    """
    Encoded polyline -> shapely LineString.
    A single point cannot make a line, so that comes back as a Point.
    """
    coordinates = decode_points(points, precision)
    if not coordinates:
        return None
    if len(coordinates) == 1:
        return Point(coordinates[0])
    return LineString(coordinates)


def leg_geometry(leg: Dict[str, Any], precision: int = 5):
    return decode_geometry((leg.get("legGeometry") or {}).get("points"), precision)


def _step_elevation(step: Dict[str, Any]) -> List[Tuple[float, float]]:
    # OTP 1.x gives either [{"first": distance, "second": elevation}, ...]
    # or a flat "d,e,d,e,..." string depending on version
    elevation = step.get("elevation")
    if not elevation:
        return []
    if isinstance(elevation, str):
        values = [float(v) for v in elevation.split(",") if v != ""]
        return list(zip(values[0::2], values[1::2]))
    return [(float(pair["first"]), float(pair["second"])) for pair in elevation]


def elevation_profile(leg: Dict[str, Any]) -> pd.DataFrame:
    """
    Elevation along a leg as a DataFrame of distance (metres from the leg start)
    and elevation (metres). Step distances restart at zero, so each step is
    offset by the length of the steps before it.
    """
    rows = []
    offset = 0.0
    for step in leg.get("steps") or []:
        for distance, elevation in _step_elevation(step):
            rows.append((offset + distance, elevation))
        offset += float(step.get("distance", 0.0))
    return pd.DataFrame(rows, columns=["distance", "elevation"])
