"""Coordinate mapping between data space and screen space.

Screen rows grow downward while data ``y`` grows upward, so the vertical axis
is inverted. A :class:`ViewportTransform` is cheap to build and must be rebuilt
whenever bounds or canvas size change; nothing here caches projections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .graph_types import DegenerateGeometryError, GraphBounds, Point, ScreenPoint, Segment


@dataclass(frozen=True)
class ViewportTransform:
    """Affine map from ``bounds`` onto a ``width`` x ``height`` pixel rectangle.

    Raises
    ------
    DegenerateGeometryError
        If the bounds are degenerate or the pixel size is not positive.
    """

    bounds: GraphBounds
    width: int
    height: int

    def __post_init__(self) -> None:
        self.bounds.validate()
        if self.width <= 0 or self.height <= 0:
            raise DegenerateGeometryError(
                f"canvas size must be positive, got {self.width}x{self.height}"
            )

    @property
    def pixel_size(self) -> tuple[float, float]:
        """Return data units per pixel along x and y."""
        return (self.bounds.x_range / self.width, self.bounds.y_range / self.height)

    def to_screen_x(self, x: float) -> float:
        b = self.bounds
        return (x - b.x_min) / b.x_range * self.width

    def to_screen_y(self, y: float) -> float:
        b = self.bounds
        return self.height - (y - b.y_min) / b.y_range * self.height

    def to_data_x(self, sx: float) -> float:
        b = self.bounds
        return b.x_min + sx / self.width * b.x_range

    def to_data_y(self, sy: float) -> float:
        b = self.bounds
        return b.y_min + (self.height - sy) / self.height * b.y_range

    def to_data(self, sx: float, sy: float) -> Point:
        return Point(self.to_data_x(sx), self.to_data_y(sy))

    def project(self, point: Point) -> ScreenPoint:
        """Attach the current screen position to ``point``."""
        return ScreenPoint(
            data_point=point,
            sx=self.to_screen_x(point.x),
            sy=self.to_screen_y(point.y),
        )

    def project_all(self, points: Iterable[Point]) -> tuple[ScreenPoint, ...]:
        return tuple(self.project(p) for p in points)

    def project_segment(self, segment: Segment) -> tuple[tuple[float, float], ...]:
        """Return the ``(sx, sy)`` polyline for one sampled segment."""
        return tuple((self.to_screen_x(p.x), self.to_screen_y(p.y)) for p in segment)


__all__ = ["ViewportTransform"]
