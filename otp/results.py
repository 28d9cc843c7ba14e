"""
Purpose: Turn OTP JSON into tables.

What it does:
- itineraries_to_frame(): /plan response -> one row per leg, geometry optional
- isochrone_to_frame(): /isochrone GeoJSON -> polygons with their cutoff time
- geocode_to_frame(): /geocode results -> points

Rule: No HTTP here, inputs are already-decoded JSON.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import geopandas as gpd
import numpy as np
import pandas as pd

from .geometry import elevation_profile, leg_geometry

CRS = "EPSG:4326"

ITINERARY_COLUMNS = [
    "itinerary",
    "duration",
    "start_time",
    "end_time",
    "walk_time",
    "transit_time",
    "waiting_time",
    "walk_distance",
    "transfers",
    "fare",
    "fare_currency",
]

LEG_COLUMNS = [
    "leg",
    "leg_mode",
    "leg_distance",
    "leg_duration",
    "leg_start_time",
    "leg_end_time",
    "leg_from",
    "leg_to",
    "leg_route",
    "leg_agency",
]

TIME_COLUMNS = ["start_time", "end_time", "leg_start_time", "leg_end_time"]


def _fare(itinerary: Dict[str, Any]):
    """regular fare in currency units, (nan, None) when OTP has no fare data"""
    regular = ((itinerary.get("fare") or {}).get("fare") or {}).get("regular")
    if not regular:
        return np.nan, None
    cents = regular.get("cents")
    currency = (regular.get("currency") or {}).get("currencyCode")
    if cents is None:
        return np.nan, currency
    return cents / 100.0, currency


def _place_name(place: Optional[Dict[str, Any]]) -> Optional[str]:
    if not place:
        return None
    return place.get("name")


def _to_timestamps(frame: pd.DataFrame, timezone: Optional[str]) -> pd.DataFrame:
    # OTP times are epoch milliseconds
    for column in TIME_COLUMNS:
        values = pd.to_datetime(frame[column], unit="ms", utc=True)
        if timezone:
            values = values.dt.tz_convert(timezone)
        frame[column] = values
    return frame


def itineraries_to_frame(plan: Dict[str, Any], get_geometry: bool = True,
                         full_elevation: bool = False,
                         timezone: Optional[str] = None) -> pd.DataFrame:
    """
    Flatten a /plan response to one row per leg.

    Itinerary level values (duration, walk_time, fare...) are repeated on each
    of that itinerary's legs; leg values are prefixed leg_.

    Returns a GeoDataFrame (EPSG:4326, leg LineStrings) when get_geometry,
    otherwise a plain DataFrame. With full_elevation a leg_elevation column
    holds a distance/elevation DataFrame per leg.
    """
    itineraries = ((plan or {}).get("plan") or {}).get("itineraries") or []

    rows: List[Dict[str, Any]] = []
    geometries = []
    for itinerary_index, itinerary in enumerate(itineraries, 1):
        fare, currency = _fare(itinerary)
        base = {
            "itinerary": itinerary_index,
            "duration": itinerary.get("duration"),
            "start_time": itinerary.get("startTime"),
            "end_time": itinerary.get("endTime"),
            "walk_time": itinerary.get("walkTime"),
            "transit_time": itinerary.get("transitTime"),
            "waiting_time": itinerary.get("waitingTime"),
            "walk_distance": itinerary.get("walkDistance"),
            "transfers": itinerary.get("transfers"),
            "fare": fare,
            "fare_currency": currency,
        }

        for leg_index, leg in enumerate(itinerary.get("legs") or [], 1):
            row = dict(base)
            row.update({
                "leg": leg_index,
                "leg_mode": leg.get("mode"),
                "leg_distance": leg.get("distance"),
                "leg_duration": leg.get("duration"),
                "leg_start_time": leg.get("startTime"),
                "leg_end_time": leg.get("endTime"),
                "leg_from": _place_name(leg.get("from")),
                "leg_to": _place_name(leg.get("to")),
                "leg_route": leg.get("route") or None,
                "leg_agency": leg.get("agencyName"),
            })
            if full_elevation:
                row["leg_elevation"] = elevation_profile(leg)
            rows.append(row)

            if get_geometry:
                geometries.append(leg_geometry(leg))

    columns = ITINERARY_COLUMNS + LEG_COLUMNS
    if full_elevation:
        columns = columns + ["leg_elevation"]

    frame = pd.DataFrame(rows, columns=columns)
    frame = _to_timestamps(frame, timezone)

    if not get_geometry:
        return frame
    return gpd.GeoDataFrame(
        frame,
        geometry=gpd.GeoSeries(geometries, index=frame.index, crs=CRS),
    )


def isochrone_to_frame(geojson: Dict[str, Any]) -> gpd.GeoDataFrame:
    """
    Isochrone polygons with their cutoff in seconds, largest (longest time) first
    so they draw nicely on top of each other.
    """
    features = (geojson or {}).get("features") or []
    if not features:
        return gpd.GeoDataFrame(
            {"time": pd.Series([], dtype="int64")},
            geometry=gpd.GeoSeries([], crs=CRS),
        )

    frame = gpd.GeoDataFrame.from_features(features, crs=CRS)
    frame["time"] = pd.to_numeric(frame["time"]).astype("int64")
    frame = frame.sort_values("time", ascending=False).reset_index(drop=True)
    return frame[["time", "geometry"]]


def geocode_to_frame(results: List[Dict[str, Any]]) -> gpd.GeoDataFrame:
    """/geocode results (stops, corners) as points"""
    frame = pd.DataFrame(
        [
            {
                "id": item.get("id"),
                "description": item.get("description"),
                "lat": item.get("lat"),
                "lon": item.get("lng"),
            }
            for item in results or []
        ],
        columns=["id", "description", "lat", "lon"],
    )
    return gpd.GeoDataFrame(
        frame,
        geometry=gpd.points_from_xy(frame["lon"].astype(float), frame["lat"].astype(float)),
        crs=CRS,
    )
