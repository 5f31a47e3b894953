"""Display sampling of explicit curves.

One sample is taken per horizontal pixel, which is enough for visual fidelity
but not for numerical analysis (see :mod:`funcgraph.intersections` and
:mod:`funcgraph.extrema` for that). Undefined samples split the curve into
segments; the rendering surface must not connect points across a split.
"""

from __future__ import annotations

import math
from typing import Iterator, Optional

import numpy as np

from .evaluator import Bindings, EvaluatorAdapter
from .graph_types import DegenerateGeometryError, Point, Segment

Domain = tuple[float, float]


def _check_domain(domain: Domain, pixel_width: int) -> tuple[float, float, int]:
    x_min, x_max = float(domain[0]), float(domain[1])
    if not (math.isfinite(x_min) and math.isfinite(x_max) and x_min < x_max):
        raise DegenerateGeometryError(f"sampling domain must be increasing and finite, got {domain!r}")
    width = int(pixel_width)
    if width <= 0:
        raise DegenerateGeometryError(f"pixel_width must be > 0, got {pixel_width!r}")
    return x_min, x_max, width


def sample_arrays(
    adapter: EvaluatorAdapter,
    expression: str,
    domain: Domain,
    pixel_width: int,
    bindings: Optional[Bindings] = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(xs, ys)`` with ``pixel_width + 1`` samples, ``NaN`` at gaps.

    Sample ``i`` sits at ``x_min + i * step`` so the grid matches a point-wise
    walk exactly.
    """
    x_min, x_max, width = _check_domain(domain, pixel_width)
    step = (x_max - x_min) / width
    xs = x_min + np.arange(width + 1, dtype=float) * step
    ys = adapter.evaluate_many(expression, xs, bindings)
    return xs, ys


def sample(
    adapter: EvaluatorAdapter,
    expression: str,
    domain: Domain,
    pixel_width: int,
    bindings: Optional[Bindings] = None,
) -> Iterator[Segment]:
    """Yield the unbroken runs of defined samples from left to right.

    Raises
    ------
    DegenerateGeometryError
        If the domain is empty or ``pixel_width`` is not positive. The check
        happens on the call, before iteration starts.

    Examples
    --------
    >>> from funcgraph.evaluator import EvaluatorAdapter
    >>> segments = list(sample(EvaluatorAdapter(), "x", (-10, 10), 20))
    >>> len(segments), len(segments[0])
    (1, 21)
    """
    xs, ys = sample_arrays(adapter, expression, domain, pixel_width, bindings)
    return _iter_segments(xs, ys)


def _iter_segments(xs: np.ndarray, ys: np.ndarray) -> Iterator[Segment]:
    current: list[Point] = []
    for x, y in zip(xs.tolist(), ys.tolist()):
        if math.isnan(y):
            if current:
                yield tuple(current)
                current = []
            continue
        current.append(Point(x, y))
    if current:
        yield tuple(current)


__all__ = ["Domain", "sample", "sample_arrays"]
