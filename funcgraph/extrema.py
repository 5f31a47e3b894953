"""Local extrema of a single curve.

Purpose
-------
Find local maxima and minima with a dense sample grid, then refine each one by
fitting a parabola through three nearby samples. Analysis runs over a fixed,
viewport-independent domain so the catalogue of extrema stays stable while the
user pans and zooms; :class:`ExtremaCache` memoizes the result per
``(equation_id, expression)``.

Known limitations
-----------------
- Flat plateaus are not reported: an interior sample must be strictly greater
  (or strictly less) than both neighbours.
- Extrema narrower than the grid spacing, or outside the analysis domain, are
  missed.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .evaluator import ExpressionFunction
from .graph_types import DegenerateGeometryError, Extremum, ExtremumKind, Point

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Domain = tuple[float, float]
_TINY = 1e-300


def _grid(domain: Domain, sample_count: int) -> tuple[float, float, int]:
    x_min, x_max = float(domain[0]), float(domain[1])
    if not (math.isfinite(x_min) and math.isfinite(x_max) and x_min < x_max):
        raise DegenerateGeometryError(f"analysis domain must be increasing and finite, got {domain!r}")
    if int(sample_count) < 1:
        raise DegenerateGeometryError(f"sample_count must be >= 1, got {sample_count!r}")
    return x_min, (x_max - x_min) / int(sample_count), int(sample_count)


def _finite_samples(f: ExpressionFunction, domain: Domain, sample_count: int) -> list[Point]:
    x_min, step, count = _grid(domain, sample_count)
    points: list[Point] = []
    for i in range(count + 1):
        x = x_min + i * step
        y = f(x)
        if y is not None and math.isfinite(y):
            points.append(Point(x, y))
    return points


def find_extrema(f: ExpressionFunction, domain: Domain, sample_count: int = 1000) -> list[Extremum]:
    """Return unrefined extrema from ``sample_count + 1`` evenly spaced samples.

    Undefined samples are dropped before the neighbour comparison, so the
    neighbours of a sample are the closest *defined* samples.
    """
    points = _finite_samples(f, domain, sample_count)
    extrema: list[Extremum] = []
    for prev, curr, nxt in zip(points, points[1:], points[2:]):
        if curr.y > prev.y and curr.y > nxt.y:
            extrema.append(Extremum(curr.x, curr.y, ExtremumKind.MAX))
        elif curr.y < prev.y and curr.y < nxt.y:
            extrema.append(Extremum(curr.x, curr.y, ExtremumKind.MIN))
    return extrema


def parabola_vertex(
    x0: float, y0: float, x1: float, y1: float, x2: float, y2: float
) -> Optional[float]:
    """Return the vertex ``x`` of the parabola through three points.

    Returns ``None`` when the points are (numerically) collinear in ``x`` or
    the fitted curve is a line.
    """
    denom = (x0 - x1) * (x0 - x2) * (x1 - x2)
    if abs(denom) < _TINY:
        return None
    slope_term = y0 * (x1 - x2) + y1 * (x2 - x0) + y2 * (x0 - x1)
    if slope_term == 0:
        return None
    numerator = y0 * (x1 * x1 - x2 * x2) + y1 * (x2 * x2 - x0 * x0) + y2 * (x0 * x0 - x1 * x1)
    vertex = numerator / (2.0 * slope_term)
    return vertex if math.isfinite(vertex) else None


def refine_extremum(f: ExpressionFunction, extremum: Extremum, h: float = 1e-2) -> Extremum:
    """Refine ``extremum`` with a parabola through ``x - h``, ``x``, ``x + h``.

    Falls back to the raw ``x`` when a neighbour is undefined or the parabola
    is degenerate, and to the raw ``y`` when ``f`` is undefined at the vertex.
    """
    x0, x1, x2 = extremum.x - h, extremum.x, extremum.x + h
    y0, y2 = f(x0), f(x2)
    x_vertex: Optional[float] = None
    if y0 is not None and y2 is not None:
        x_vertex = parabola_vertex(x0, y0, x1, extremum.y, x2, y2)
    if x_vertex is None:
        x_vertex = extremum.x
    y_vertex = f(x_vertex)
    if y_vertex is None or not math.isfinite(y_vertex):
        y_vertex = extremum.y
    return Extremum(x_vertex, y_vertex, extremum.kind)


def analyze_extrema(
    f: ExpressionFunction,
    domain: Domain,
    sample_count: int = 1000,
    h: float = 1e-2,
) -> tuple[Extremum, ...]:
    """Run the raw scan followed by parabolic refinement."""
    raw = find_extrema(f, domain, sample_count)
    refined = tuple(refine_extremum(f, ext, h) for ext in raw)
    logger.debug("extrema over %r: %d found", domain, len(refined))
    return refined


def find_asymptotes(
    f: ExpressionFunction,
    domain: Domain,
    sample_count: int = 1000,
    jump: float = 1000.0,
) -> list[float]:
    """Return vertical-asymptote candidates.

    A candidate sits at the midpoint between consecutive finite samples whose
    values differ by more than ``jump``.
    """
    points = _finite_samples(f, domain, sample_count)
    return [
        0.5 * (prev.x + curr.x)
        for prev, curr in zip(points, points[1:])
        if abs(curr.y - prev.y) > jump
    ]


@dataclass(frozen=True)
class FunctionAnalysis:
    asymptotes: tuple[float, ...]
    extrema: tuple[Extremum, ...]


def analyze_function(
    f: ExpressionFunction,
    domain: Domain,
    sample_count: int = 1000,
    h: float = 1e-2,
    jump: float = 1000.0,
) -> FunctionAnalysis:
    """Return refined extrema and asymptote candidates for one curve."""
    return FunctionAnalysis(
        asymptotes=tuple(find_asymptotes(f, domain, sample_count, jump)),
        extrema=analyze_extrema(f, domain, sample_count, h),
    )


CacheKey = tuple[str, str]


class ExtremaCache:
    """Memoize extrema per ``(equation_id, expression)``.

    At most one entry is kept per equation id: looking up a new expression for
    an id removes the entry computed for its previous expression.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, tuple[Extremum, ...]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, equation_id: str, expression: str) -> Optional[tuple[Extremum, ...]]:
        with self._lock:
            return self._entries.get((equation_id, expression))

    def put(self, equation_id: str, expression: str, extrema: tuple[Extremum, ...]) -> None:
        with self._lock:
            self._drop_stale_locked(equation_id, expression)
            self._entries[(equation_id, expression)] = tuple(extrema)

    def get_or_compute(
        self,
        equation_id: str,
        expression: str,
        compute: Callable[[], tuple[Extremum, ...]],
    ) -> tuple[Extremum, ...]:
        """Return cached extrema, computing and storing them on a miss."""
        cached = self.get(equation_id, expression)
        if cached is not None:
            return cached
        with self._lock:
            self._drop_stale_locked(equation_id, expression)
        result = tuple(compute())
        self.put(equation_id, expression, result)
        return result

    def discard(self, equation_id: str) -> None:
        """Remove every entry for ``equation_id``."""
        with self._lock:
            for key in [k for k in self._entries if k[0] == equation_id]:
                del self._entries[key]

    def retain(self, current: Iterable[tuple[str, str]]) -> None:
        """Keep only entries matching the live ``(equation_id, expression)`` pairs.

        Entries for removed equations and for expressions that have since been
        edited are dropped.
        """
        live = set(current)
        with self._lock:
            for key in [k for k in self._entries if k not in live]:
                logger.debug("invalidating extrema cache entry %r", key)
                del self._entries[key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _drop_stale_locked(self, equation_id: str, expression: str) -> None:
        stale = [k for k in self._entries if k[0] == equation_id and k[1] != expression]
        for key in stale:
            logger.debug("invalidating extrema cache entry %r", key)
            del self._entries[key]


__all__ = [
    "ExtremaCache",
    "FunctionAnalysis",
    "analyze_extrema",
    "analyze_function",
    "find_asymptotes",
    "find_extrema",
    "parabola_vertex",
    "refine_extremum",
]
