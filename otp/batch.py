#Purpose: Many trips in one call.
#Given origin and destination points (one-to-many, many-to-one or paired
#many-to-many) plan every pair against OTP and return one table.
#Pairs are independent so they are planned on a thread pool; OTP itself does the work.
#Failures don't stop the batch, they are collected and reported.

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from .client import OTPClient
from .errors import OTPError
from .results import itineraries_to_frame

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanFailure:
    index: int
    from_place: tuple
    to_place: tuple
    error: str


@dataclass
class BatchResult:
    frame: pd.DataFrame
    failures: List[PlanFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def as_points(places: Any, name: str) -> np.ndarray:
    """
    Coerce a (lat, lon) pair or a sequence of pairs to an (n, 2) float array.
    """
    points = np.asarray(places, dtype=float)
    if points.ndim == 1 and points.shape[0] == 2:
        points = points.reshape(1, 2)

    if points.ndim != 2 or points.shape[1] != 2 or points.shape[0] == 0:
        raise ValueError(f"{name} must be a (lat, lon) pair or a list of them")
    if not np.isfinite(points).all():
        raise ValueError(f"{name} contains missing or infinite coordinates")
    return points


def pair_points(from_points: np.ndarray, to_points: np.ndarray):
    """one-to-many and many-to-one are expanded; many-to-many must pair up 1:1"""
    n_from, n_to = len(from_points), len(to_points)
    if n_from == n_to:
        return from_points, to_points
    if n_from == 1:
        return np.repeat(from_points, n_to, axis=0), to_points
    if n_to == 1:
        return from_points, np.repeat(to_points, n_from, axis=0)
    raise ValueError(
        f"from_places ({n_from}) and to_places ({n_to}) must be the same length, "
        "or one of them a single point"
    )


def _pair_ids(ids: Optional[Sequence], n_points: int, n_pairs: int, name: str):
    if ids is None:
        return None
    ids = list(ids)
    if len(ids) != n_points:
        raise ValueError(f"{name} must have one id per point ({n_points}), got {len(ids)}")
    if n_points == 1 and n_pairs > 1:
        ids = ids * n_pairs
    return ids


def plan_many(client: OTPClient, from_places: Any, to_places: Any, *,
              from_ids: Optional[Sequence] = None, to_ids: Optional[Sequence] = None,
              workers: int = 1, get_geometry: bool = True,
              timezone: Optional[str] = None, **plan_kwargs) -> BatchResult:
    """
    Plan every origin/destination pair.

    Args:
        client: OTPClient for the router
        from_places / to_places: (lat, lon) or list of (lat, lon)
        from_ids / to_ids: optional labels, one per point, copied to the output
        workers: number of requests in flight at once
        plan_kwargs: passed on to OTPClient.plan (mode, date_time, ...)

    Returns:
        BatchResult with all legs of all pairs in .frame and the pairs OTP
        could not plan in .failures
    """
    if workers < 1:
        raise ValueError("workers must be >= 1")

    from_points = as_points(from_places, "from_places")
    to_points = as_points(to_places, "to_places")
    from_ids = _pair_ids(from_ids, len(from_points), len(to_points), "from_ids")
    to_ids = _pair_ids(to_ids, len(to_points), len(from_points), "to_ids")
    from_points, to_points = pair_points(from_points, to_points)

    def run(index: int):
        from_place = tuple(float(v) for v in from_points[index])
        to_place = tuple(float(v) for v in to_points[index])
        response = client.plan(from_place, to_place, **plan_kwargs)
        frame = itineraries_to_frame(response, get_geometry=get_geometry, timezone=timezone)
        return tag(
            frame,
            f"{from_place[0]},{from_place[1]}",
            f"{to_place[0]},{to_place[1]}",
            from_ids[index] if from_ids is not None else None,
            to_ids[index] if to_ids is not None else None,
        )

    def tag(frame, from_place, to_place, from_id, to_id):
        # same leading columns whether or not any trip was planned
        frame.insert(0, "to_place", to_place)
        frame.insert(0, "from_place", from_place)
        if to_ids is not None:
            frame.insert(0, "to_id", to_id)
        if from_ids is not None:
            frame.insert(0, "from_id", from_id)
        return frame

    frames = []
    failures: List[PlanFailure] = []
    n_pairs = len(from_points)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, index) for index in range(n_pairs)]
        for index, future in enumerate(futures):
            try:
                frames.append(future.result())
            except (OTPError, ValueError) as e:
                failure = PlanFailure(
                    index=index,
                    from_place=tuple(float(v) for v in from_points[index]),
                    to_place=tuple(float(v) for v in to_points[index]),
                    error=str(e),
                )
                logger.warning("Failed to plan trip %s (%s -> %s): %s",
                               index, failure.from_place, failure.to_place, e)
                failures.append(failure)

    logger.info("Planned %s of %s trips", n_pairs - len(failures), n_pairs)

    if not frames:
        empty = tag(itineraries_to_frame({}, get_geometry=get_geometry), None, None, None, None)
        return BatchResult(frame=empty, failures=failures)
    return BatchResult(frame=pd.concat(frames, ignore_index=True), failures=failures)
