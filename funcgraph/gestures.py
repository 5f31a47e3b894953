"""Pointer gestures to viewport updates.

The controller only *computes* candidate bounds; committing them is the
viewport store's job (see :class:`funcgraph.store.ViewportStore`). Every
method that can move the view returns the new :class:`GraphBounds` or
``None`` when the event does not change the view.

State machine
-------------
``IDLE --pointer_down--> DRAGGING --pointer_up/pointer_leave--> IDLE``.
``pointer_move`` pans only while ``DRAGGING``. Wheel and pinch zoom in any
state.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from .config import GraphConfig
from .graph_types import DegenerateGeometryError, GraphBounds
from .viewport import ViewportTransform

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


def pan_bounds(
    bounds: GraphBounds, dx_pixels: float, dy_pixels: float, width: int, height: int
) -> GraphBounds:
    """Shift ``bounds`` so content follows a drag of ``(dx, dy)`` pixels.

    Dragging right moves the view left in data space and dragging down moves
    it up, hence the sign flip on ``x`` only (screen ``y`` is already
    inverted).
    """
    if width <= 0 or height <= 0:
        raise DegenerateGeometryError(f"canvas size must be positive, got {width}x{height}")
    dx_data = -dx_pixels * (bounds.x_range / width)
    dy_data = dy_pixels * (bounds.y_range / height)
    return bounds.shifted(dx_data, dy_data)


def zoom_bounds(
    bounds: GraphBounds, sx: float, sy: float, factor: float, width: int, height: int
) -> GraphBounds:
    """Scale both ranges by ``factor`` keeping the data point under ``(sx, sy)`` fixed.

    Per axis, with ``t`` the pointer's fraction of the way from the minimum
    edge: ``new_min = anchor - t * new_range``.
    """
    if not factor > 0:
        raise ValueError(f"zoom factor must be > 0, got {factor!r}")
    transform = ViewportTransform(bounds, width, height)
    anchor = transform.to_data(sx, sy)
    tx = sx / width
    ty = (height - sy) / height

    new_x_range = bounds.x_range * factor
    new_y_range = bounds.y_range * factor
    x_min = anchor.x - tx * new_x_range
    y_min = anchor.y - ty * new_y_range
    return GraphBounds(
        x_min=x_min,
        x_max=x_min + new_x_range,
        y_min=y_min,
        y_max=y_min + new_y_range,
    )


class GestureController:
    """Track drag state and turn pointer events into candidate bounds.

    Parameters
    ----------
    config : GraphConfig, optional
        Source of the zoom factors.
    """

    def __init__(self, config: Optional[GraphConfig] = None) -> None:
        self._config = config or GraphConfig()
        self._state = GestureState.IDLE
        self._anchor: Optional[tuple[float, float]] = None

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is GestureState.DRAGGING

    @property
    def anchor(self) -> Optional[tuple[float, float]]:
        """Return the last recorded pointer position while dragging."""
        return self._anchor

    def pointer_down(self, sx: float, sy: float) -> None:
        self._state = GestureState.DRAGGING
        self._anchor = (sx, sy)

    def pointer_move(
        self, sx: float, sy: float, bounds: GraphBounds, width: int, height: int
    ) -> Optional[GraphBounds]:
        """Pan by the motion since the last anchor; ``None`` when idle or still."""
        if self._state is not GestureState.DRAGGING or self._anchor is None:
            return None
        dx = sx - self._anchor[0]
        dy = sy - self._anchor[1]
        self._anchor = (sx, sy)
        if dx == 0 and dy == 0:
            return None
        return pan_bounds(bounds, dx, dy, width, height)

    def pointer_up(self) -> None:
        self._state = GestureState.IDLE
        self._anchor = None

    def pointer_leave(self) -> None:
        self.pointer_up()

    def zoom_factor_for_wheel(self, delta_y: float) -> Optional[float]:
        """Map a wheel delta to a range multiplier (positive delta zooms out)."""
        if delta_y > 0:
            return self._config.zoom_out_factor
        if delta_y < 0:
            return self._config.effective_zoom_in_factor
        return None

    def wheel(
        self, sx: float, sy: float, delta_y: float, bounds: GraphBounds, width: int, height: int
    ) -> Optional[GraphBounds]:
        factor = self.zoom_factor_for_wheel(delta_y)
        if factor is None:
            return None
        return zoom_bounds(bounds, sx, sy, factor, width, height)

    def pinch(
        self, sx: float, sy: float, scale: float, bounds: GraphBounds, width: int, height: int
    ) -> Optional[GraphBounds]:
        """Zoom around the pinch centre; ``scale > 1`` (fingers apart) zooms in."""
        if not scale > 0:
            logger.debug("ignoring pinch with non-positive scale %r", scale)
            return None
        if scale == 1:
            return None
        return zoom_bounds(bounds, sx, sy, 1.0 / scale, width, height)


__all__ = ["GestureController", "GestureState", "pan_bounds", "zoom_bounds"]
