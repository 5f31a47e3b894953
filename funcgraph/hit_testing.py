"""Resolve a click position to a marker or curve.

Priority is strict: extremum markers of the selected curve, then intersection
markers (only when shown), then the first visible curve whose rendered samples
pass within a small box around the pointer. A click that hits nothing yields
:data:`NO_HIT`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .config import GraphConfig
from .graph_types import Extremum, ScreenPoint


@dataclass(frozen=True)
class ExtremumMarker:
    extremum: Extremum
    screen: ScreenPoint


@dataclass(frozen=True)
class IntersectionMarker:
    screen: ScreenPoint
    equation_ids: tuple[str, str]


@dataclass(frozen=True)
class CurveTrace:
    """Rendered samples of one curve in list order, left to right."""

    equation_id: str
    samples: tuple[ScreenPoint, ...]


@dataclass(frozen=True)
class ExtremumHit:
    marker: ExtremumMarker


@dataclass(frozen=True)
class IntersectionHit:
    marker: IntersectionMarker


@dataclass(frozen=True)
class CurveHit:
    equation_id: str
    sample: ScreenPoint


@dataclass(frozen=True)
class NoHit:
    pass


NO_HIT = NoHit()
HitResult = Union[ExtremumHit, IntersectionHit, CurveHit, NoHit]


def nearest_within(
    points: Iterable[ScreenPoint], sx: float, sy: float, radius: float
) -> Optional[int]:
    """Return the index of the closest point strictly inside ``radius``."""
    best_index: Optional[int] = None
    best_d2 = radius * radius
    for index, point in enumerate(points):
        d2 = point.distance_squared(sx, sy)
        if d2 < best_d2:
            best_index, best_d2 = index, d2
    return best_index


def curve_at(curves: Sequence[CurveTrace], sx: float, sy: float, half_box: float) -> Optional[CurveHit]:
    """Return the first curve sample inside the ``half_box`` square around the pointer."""
    for curve in curves:
        for sample in curve.samples:
            if abs(sample.sx - sx) < half_box and abs(sample.sy - sy) < half_box:
                return CurveHit(curve.equation_id, sample)
    return None


def resolve_click(
    sx: float,
    sy: float,
    *,
    extremum_markers: Sequence[ExtremumMarker] = (),
    intersection_markers: Sequence[IntersectionMarker] = (),
    curves: Sequence[CurveTrace] = (),
    show_intersections: bool = False,
    config: Optional[GraphConfig] = None,
) -> HitResult:
    """Resolve ``(sx, sy)`` against markers and curves in priority order."""
    cfg = config or GraphConfig()

    index = nearest_within((m.screen for m in extremum_markers), sx, sy, cfg.extremum_hit_radius)
    if index is not None:
        return ExtremumHit(extremum_markers[index])

    if show_intersections:
        index = nearest_within(
            (m.screen for m in intersection_markers), sx, sy, cfg.intersection_hit_radius
        )
        if index is not None:
            return IntersectionHit(intersection_markers[index])

    hit = curve_at(curves, sx, sy, cfg.curve_hit_box)
    if hit is not None:
        return hit
    return NO_HIT


__all__ = [
    "CurveHit",
    "CurveTrace",
    "ExtremumHit",
    "ExtremumMarker",
    "HitResult",
    "IntersectionHit",
    "IntersectionMarker",
    "NO_HIT",
    "NoHit",
    "curve_at",
    "nearest_within",
    "resolve_click",
]
