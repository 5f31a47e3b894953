"""Drawing instructions handed to a rendering surface.

A :class:`RenderFrame` is fully resolved to screen space: a surface only
strokes polylines, fills circles and places text. Frames are rebuilt on every
recomputation and hold no references back into the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .graph_types import GraphBounds, GraphStyle, Point
from .ticks import AxisLine, GridLine

ScreenPolyline = tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class CurveDrawing:
    """One equation's segments in screen space.

    Consecutive segments must not be joined; the gap between them is where
    the function is undefined.
    """

    equation_id: str
    style: GraphStyle
    segments: tuple[ScreenPolyline, ...]


class MarkerRole(str, Enum):
    INTERSECTION = "intersection"
    EXTREMUM = "extremum"


@dataclass(frozen=True)
class Marker:
    sx: float
    sy: float
    radius: float
    color: str
    role: MarkerRole


@dataclass(frozen=True)
class SelectedPoint:
    """A marker the user clicked, kept in data space."""

    point: Point
    role: MarkerRole
    equation_ids: tuple[str, ...]


@dataclass(frozen=True)
class PointLabel:
    text: str
    sx: float
    sy: float


@dataclass(frozen=True)
class RenderFrame:
    """Everything needed to draw one state of the graph."""

    width: int
    height: int
    bounds: GraphBounds
    grid: tuple[GridLine, ...]
    axes: tuple[AxisLine, ...]
    curves: tuple[CurveDrawing, ...]
    markers: tuple[Marker, ...]
    label: Optional[PointLabel] = None


__all__ = [
    "CurveDrawing",
    "Marker",
    "MarkerRole",
    "PointLabel",
    "RenderFrame",
    "ScreenPolyline",
    "SelectedPoint",
]
