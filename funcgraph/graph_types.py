"""Data model shared by every ``funcgraph`` component.

Purpose
-------
Plain, immutable records describing what the engine consumes (equations and
viewport bounds) and what it produces (points, screen projections and
extrema). The records carry no behaviour beyond small conveniences so they can
cross thread boundaries and be used as cache keys.

Important gotchas
-----------------
- ``GraphBounds`` does not validate on construction. Stores and transforms call
  :meth:`GraphBounds.validate` at their boundaries instead, so a degenerate
  candidate can be inspected and refused without an exception escaping the
  interactive loop.
- ``ScreenPoint`` values are only meaningful for the transform that produced
  them. Re-project after every bounds or canvas change.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple


class DegenerateGeometryError(ValueError):
    """Raised for zero-size bounds, canvases or sample counts."""


@dataclass(frozen=True)
class Point:
    """A data-space coordinate."""

    x: float
    y: float


Segment = Tuple[Point, ...]


@dataclass(frozen=True)
class GraphBounds:
    """Visible data-space rectangle.

    Parameters
    ----------
    x_min, x_max : float
        Horizontal extent; valid bounds have ``x_min < x_max``.
    y_min, y_max : float
        Vertical extent; valid bounds have ``y_min < y_max``.
    """

    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @classmethod
    def from_ranges(
        cls, x_range: tuple[float, float], y_range: tuple[float, float]
    ) -> "GraphBounds":
        """Build bounds from ``(min, max)`` pairs."""
        return cls(
            x_min=float(x_range[0]),
            x_max=float(x_range[1]),
            y_min=float(y_range[0]),
            y_max=float(y_range[1]),
        )

    @property
    def x_range(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_range(self) -> float:
        return self.y_max - self.y_min

    @property
    def is_degenerate(self) -> bool:
        """Return True when either range is empty, inverted or non-finite."""
        values = (self.x_min, self.x_max, self.y_min, self.y_max)
        if not all(math.isfinite(v) for v in values):
            return True
        return not (self.x_min < self.x_max and self.y_min < self.y_max)

    def validate(self) -> "GraphBounds":
        """Return ``self`` or raise :class:`DegenerateGeometryError`."""
        if self.is_degenerate:
            raise DegenerateGeometryError(
                "bounds must be finite with x_min < x_max and y_min < y_max, "
                f"got {self.as_tuple()!r}"
            )
        return self

    def shifted(self, dx: float, dy: float) -> "GraphBounds":
        """Return bounds translated by ``(dx, dy)`` in data units."""
        return GraphBounds(
            x_min=self.x_min + dx,
            x_max=self.x_max + dx,
            y_min=self.y_min + dy,
            y_max=self.y_max + dy,
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x_min, self.x_max, self.y_min, self.y_max)


@dataclass(frozen=True)
class GraphStyle:
    """Stroke style for one curve."""

    color: str = "#1f77b4"
    line_width: float = 2.0


class CurveKind(str, Enum):
    """How an equation's expression should be read.

    Only ``EXPLICIT`` (``y = f(x)``) curves are sampled; the other kinds are
    carried as metadata.
    """

    EXPLICIT = "explicit"
    IMPLICIT = "implicit"
    POLAR = "polar"


@dataclass(frozen=True)
class Equation:
    """One user-entered curve, read-only to the engine.

    Parameters
    ----------
    id : str
        Unique key used by stores, caches and hit results.
    expression : str
        Text handed to the expression evaluator with ``x`` bound.
    kind : CurveKind
        Curve metadata; non-explicit curves are not sampled.
    style : GraphStyle
        Stroke style forwarded to the rendering surface.
    visible : bool
        Hidden equations are skipped by sampling, intersections and hit tests.
    """

    id: str
    expression: str
    kind: CurveKind = CurveKind.EXPLICIT
    style: GraphStyle = field(default_factory=GraphStyle)
    visible: bool = True

    @property
    def is_plottable(self) -> bool:
        """Return True when the equation is visible and explicit."""
        return self.visible and self.kind is CurveKind.EXPLICIT

    def with_expression(self, expression: str) -> "Equation":
        return replace(self, expression=expression)


@dataclass(frozen=True)
class ScreenPoint:
    """A data point together with its current screen projection."""

    data_point: Point
    sx: float
    sy: float

    def distance_squared(self, sx: float, sy: float) -> float:
        dx = self.sx - sx
        dy = self.sy - sy
        return dx * dx + dy * dy


class ExtremumKind(str, Enum):
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class Extremum:
    """A local maximum or minimum of one curve."""

    x: float
    y: float
    kind: ExtremumKind

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


__all__ = [
    "CurveKind",
    "DegenerateGeometryError",
    "Equation",
    "Extremum",
    "ExtremumKind",
    "GraphBounds",
    "GraphStyle",
    "Point",
    "ScreenPoint",
    "Segment",
]
