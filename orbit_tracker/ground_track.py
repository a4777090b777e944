"""
Ground-Track Sampler

Samples the propagator over a time window centred on a reference instant to
build the past/future orbit path of an object.

The produced sequence is raw: strictly chronological, one point per
successful sample, no interpolation across failed samples and no marker at
antimeridian wraps. Consumers detect wraps themselves (a longitude jump of
more than 180 degrees between consecutive points); ``split_path`` implements
that rule for map renderers.

Recomputing a path costs one SGP4 call per step, so callers refresh it when
the tracked object changes or on a coarse timer, not on every position
update.
"""

from collections import deque
from datetime import datetime, timedelta
from typing import Iterable, List, Sequence, Tuple

from config import config
from orbit_tracker.models import OrbitPathPoint, TwoLineElement
from orbit_tracker.propagator import propagate

ANTIMERIDIAN_JUMP_DEG = 180.0

Segment = List[OrbitPathPoint]


def build_path(
    tle: TwoLineElement,
    center: datetime,
    window_minutes: float = config.ORBIT_WINDOW_MINUTES,
    step_minutes: float = config.ORBIT_STEP_MINUTES,
) -> List[OrbitPathPoint]:
    """
    Sample positions from ``center - window/2`` to ``center + window/2``.

    Args:
        tle: Element set of the object
        center: Reference instant (usually "now" or a replay time)
        window_minutes: Total span of the window
        step_minutes: Sampling interval

    Returns:
        Chronological list of OrbitPathPoint; failed samples are skipped

    Raises:
        ValueError: If the step is not positive or the window is negative
    """
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")
    if window_minutes < 0:
        raise ValueError(f"window_minutes must not be negative, got {window_minutes}")

    # small tolerance so e.g. 90/1.5 yields the closing sample
    steps = int(window_minutes / step_minutes + 1e-9)
    start = center - timedelta(minutes=window_minutes / 2.0)

    points = []
    for i in range(steps + 1):
        instant = start + timedelta(minutes=i * step_minutes)
        state = propagate(tle, instant)
        if state is None:
            continue
        points.append(OrbitPathPoint(
            latitude=state.latitude,
            longitude=state.longitude,
            timestamp=state.timestamp,
        ))
    return points


def is_antimeridian_crossing(previous: OrbitPathPoint, current: OrbitPathPoint) -> bool:
    return abs(current.longitude - previous.longitude) > ANTIMERIDIAN_JUMP_DEG


def count_antimeridian_crossings(points: Sequence[OrbitPathPoint]) -> int:
    return sum(
        1 for previous, current in zip(points, points[1:])
        if is_antimeridian_crossing(previous, current)
    )


def split_path(
    points: Sequence[OrbitPathPoint], reference: datetime
) -> Tuple[List[Segment], List[Segment]]:
    """
    Split a path into renderable past and future polylines.

    Points at or before ``reference`` are past, later ones are future. Each
    side is cut wherever consecutive points wrap the antimeridian.

    Returns:
        (past_segments, future_segments)
    """
    past_segments: List[Segment] = []
    future_segments: List[Segment] = []
    past: Segment = []
    future: Segment = []

    previous = None
    for point in points:
        crossing = previous is not None and is_antimeridian_crossing(previous, point)
        if point.timestamp <= reference:
            if crossing and past:
                past_segments.append(past)
                past = []
            past.append(point)
        else:
            if crossing and future:
                future_segments.append(future)
                future = []
            future.append(point)
        previous = point

    if past:
        past_segments.append(past)
    if future:
        future_segments.append(future)

    return past_segments, future_segments


class PositionHistory:
    """Rolling trail of the most recent positions of one object."""

    def __init__(self, maxlen: int = config.POSITION_HISTORY_SIZE):
        self._points = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._points.maxlen

    def append(self, point: OrbitPathPoint) -> None:
        self._points.append(point)

    def extend(self, points: Iterable[OrbitPathPoint]) -> None:
        self._points.extend(points)

    def points(self) -> List[OrbitPathPoint]:
        return list(self._points)

    def clear(self) -> None:
        self._points.clear()

    def __len__(self) -> int:
        return len(self._points)
