"""Sign-change intersection search between pairs of curves.

The domain is cut into ``sample_count`` equal sub-intervals and the difference
``d(x) = f1(x) - f2(x)`` is checked at every boundary. A strict sign change
between two defined, non-zero samples brackets a crossing, which is then
narrowed by a fixed number of bisection steps.

Known limitations
-----------------
- Tangential contacts (``d`` touches zero without changing sign) are never
  reported, and neither are curves that coincide over an interval.
- A sample where ``d`` is exactly zero is skipped rather than reported: the
  bracket is formed between the non-zero samples on either side of it. An
  undefined sample on either curve breaks the bracket.
- Close detections from different curve pairs are not merged; every pair is
  an independent question.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .evaluator import EvaluatorAdapter, ExpressionFunction
from .graph_types import DegenerateGeometryError, Equation, Point

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Domain = tuple[float, float]


@dataclass(frozen=True)
class IntersectionSet:
    """Crossings found between two equations, ordered by increasing ``x``."""

    first_id: str
    second_id: str
    points: tuple[Point, ...]


def _difference(f1: ExpressionFunction, f2: ExpressionFunction, x: float) -> Optional[float]:
    y1 = f1(x)
    if y1 is None:
        return None
    y2 = f2(x)
    if y2 is None:
        return None
    d = y1 - y2
    return d if math.isfinite(d) else None


def _bisect(
    f1: ExpressionFunction,
    f2: ExpressionFunction,
    left: float,
    right: float,
    d_left: float,
    iterations: int,
) -> float:
    a, b = left, right
    left_positive = d_left > 0
    for _ in range(iterations):
        mid = 0.5 * (a + b)
        d_mid = _difference(f1, f2, mid)
        if d_mid is None:
            break
        if d_mid != 0 and (d_mid > 0) == left_positive:
            a = mid
        else:
            b = mid
    return 0.5 * (a + b)


def find_intersections(
    f1: ExpressionFunction,
    f2: ExpressionFunction,
    domain: Domain,
    sample_count: int = 200,
    iterations: int = 10,
) -> list[Point]:
    """Return crossings of ``f1`` and ``f2`` inside ``domain``.

    Parameters
    ----------
    f1, f2 : callable
        Total functions returning ``None`` where undefined (see
        :meth:`funcgraph.evaluator.EvaluatorAdapter.function`).
    domain : tuple[float, float]
        ``(x_min, x_max)`` scanned from left to right.
    sample_count : int, default=200
        Number of equal sub-intervals.
    iterations : int, default=10
        Bisection steps per bracketed crossing.

    Returns
    -------
    list[Point]
        One point per crossing with ``y = f1(root)``; candidates whose ``y``
        is undefined are dropped.

    Raises
    ------
    DegenerateGeometryError
        For an empty domain or ``sample_count < 1``.

    Examples
    --------
    >>> from funcgraph.evaluator import EvaluatorAdapter
    >>> ev = EvaluatorAdapter()
    >>> [round(p.x, 3) for p in find_intersections(ev.function("x"), ev.function("2-x"), (0, 4))]
    [1.0]
    """
    x_min, x_max = float(domain[0]), float(domain[1])
    if not (math.isfinite(x_min) and math.isfinite(x_max) and x_min < x_max):
        raise DegenerateGeometryError(f"intersection domain must be increasing and finite, got {domain!r}")
    if int(sample_count) < 1:
        raise DegenerateGeometryError(f"sample_count must be >= 1, got {sample_count!r}")

    count = int(sample_count)
    step = (x_max - x_min) / count
    points: list[Point] = []
    prev_x: Optional[float] = None
    prev_d: Optional[float] = None

    for i in range(count + 1):
        x = x_min + i * step
        d = _difference(f1, f2, x)
        if d is None:
            prev_x, prev_d = None, None
            continue
        if d == 0:
            continue
        if prev_d is not None and prev_x is not None and prev_d * d < 0:
            root = _bisect(f1, f2, prev_x, x, prev_d, iterations)
            y = f1(root)
            if y is not None and math.isfinite(y):
                points.append(Point(root, y))
            else:
                logger.debug("dropping crossing near x=%r: f1 undefined at the root", root)
        prev_x, prev_d = x, d
    return points


def find_all_intersections(
    adapter: EvaluatorAdapter,
    equations: Sequence[Equation],
    domain: Domain,
    sample_count: int = 200,
    iterations: int = 10,
) -> list[IntersectionSet]:
    """Scan every unordered pair of plottable equations in list order."""
    plottable = [eq for eq in equations if eq.is_plottable]
    results: list[IntersectionSet] = []
    for first, second in itertools.combinations(plottable, 2):
        points = find_intersections(
            adapter.function(first.expression),
            adapter.function(second.expression),
            domain,
            sample_count=sample_count,
            iterations=iterations,
        )
        results.append(IntersectionSet(first.id, second.id, tuple(points)))
    logger.debug(
        "intersections: %d pairs, %d points",
        len(results),
        sum(len(r.points) for r in results),
    )
    return results


__all__ = ["IntersectionSet", "find_all_intersections", "find_intersections"]
