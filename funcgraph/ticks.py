"""Axis tick spacing, grid-line layout and coordinate labels."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .graph_types import DegenerateGeometryError
from .viewport import ViewportTransform

_ORIGIN_EPS = 1e-8


def nice_step(range_: float, target_ticks: float) -> float:
    """Return a step of the form ``{1, 2, 5} * 10**k`` for ``range_``.

    Parameters
    ----------
    range_ : float
        Positive extent of the axis in data units.
    target_ticks : float
        Approximate number of ticks wanted across ``range_``.

    Raises
    ------
    DegenerateGeometryError
        If ``range_`` or ``target_ticks`` is not a positive finite number.

    Examples
    --------
    >>> nice_step(100, 10)
    10.0
    >>> nice_step(7, 10)
    0.5
    """
    if not (math.isfinite(range_) and range_ > 0):
        raise DegenerateGeometryError(f"tick range must be positive and finite, got {range_!r}")
    if not (math.isfinite(target_ticks) and target_ticks > 0):
        raise DegenerateGeometryError(f"target_ticks must be positive, got {target_ticks!r}")
    rough = range_ / target_ticks
    magnitude = 10.0 ** math.floor(math.log10(rough))
    msd = rough / magnitude
    if msd > 5:
        multiplier = 5
    elif msd > 2:
        multiplier = 2
    else:
        multiplier = 1
    return magnitude * multiplier


def tick_values(lo: float, hi: float, step: float) -> list[float]:
    """Return the multiples of ``step`` inside ``[lo, hi]`` in increasing order."""
    if not step > 0:
        raise DegenerateGeometryError(f"step must be > 0, got {step!r}")
    first = math.ceil(lo / step)
    last = math.floor(hi / step)
    # Index-based so long ranges do not accumulate drift.
    return [k * step for k in range(first, last + 1)]


def format_tick(value: float) -> str:
    """Format an axis label: two decimals, ``.00`` dropped, blank at the origin."""
    if abs(value) <= _ORIGIN_EPS:
        return ""
    text = f"{value:.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    return text


def format_coord(value: float) -> str:
    """Format a selected-point coordinate with at most five decimals.

    >>> format_coord(2.0)
    '2'
    >>> format_coord(1.2500049)
    '1.25'
    """
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.5f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


class Orientation(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class GridLine:
    """One grid line plus its axis tick and label.

    ``position`` is the screen coordinate across the line (``sx`` for vertical
    lines, ``sy`` for horizontal ones). ``tick`` is the short stroke drawn on
    the opposite axis as ``(start, end)`` along the line, or ``None`` when that
    axis is off screen.
    """

    orientation: Orientation
    value: float
    position: float
    label: str
    tick: Optional[tuple[float, float]]


@dataclass(frozen=True)
class AxisLine:
    orientation: Orientation
    position: float


def grid_lines(
    transform: ViewportTransform,
    target_ticks: float = 10.0,
    tick_half_length: float = 5.0,
) -> list[GridLine]:
    """Lay out vertical then horizontal grid lines for ``transform``."""
    b = transform.bounds
    x_step = nice_step(b.x_range, target_ticks)
    y_step = nice_step(b.y_range, target_ticks)
    x_axis_sy = transform.to_screen_y(0.0)
    y_axis_sx = transform.to_screen_x(0.0)
    x_tick = None
    if 0.0 <= x_axis_sy <= transform.height:
        x_tick = (x_axis_sy - tick_half_length, x_axis_sy + tick_half_length)
    y_tick = None
    if 0.0 <= y_axis_sx <= transform.width:
        y_tick = (y_axis_sx - tick_half_length, y_axis_sx + tick_half_length)

    lines: list[GridLine] = []
    for x in tick_values(b.x_min, b.x_max, x_step):
        lines.append(
            GridLine(
                orientation=Orientation.VERTICAL,
                value=x,
                position=transform.to_screen_x(x),
                label=format_tick(x),
                tick=x_tick,
            )
        )
    for y in tick_values(b.y_min, b.y_max, y_step):
        lines.append(
            GridLine(
                orientation=Orientation.HORIZONTAL,
                value=y,
                position=transform.to_screen_y(y),
                label=format_tick(y),
                tick=y_tick,
            )
        )
    return lines


def axis_lines(transform: ViewportTransform) -> list[AxisLine]:
    """Return the ``x = 0`` and ``y = 0`` axes that lie strictly inside the view."""
    b = transform.bounds
    axes: list[AxisLine] = []
    if b.x_min < 0 < b.x_max:
        axes.append(AxisLine(Orientation.VERTICAL, transform.to_screen_x(0.0)))
    if b.y_min < 0 < b.y_max:
        axes.append(AxisLine(Orientation.HORIZONTAL, transform.to_screen_y(0.0)))
    return axes


__all__ = [
    "AxisLine",
    "GridLine",
    "Orientation",
    "axis_lines",
    "format_coord",
    "format_tick",
    "grid_lines",
    "nice_step",
    "tick_values",
]
