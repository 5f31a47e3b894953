"""Engine defaults and tunables.

Every constant the engine relies on (sample counts, hit radii, zoom factors,
marker styling) lives on :class:`GraphConfig`. Components take a config
instance instead of reading module globals, so tests and embedding
applications can override any value without monkeypatching.

Examples
--------
>>> from funcgraph.config import GraphConfig
>>> cfg = GraphConfig().with_overrides(intersection_samples=400)
>>> cfg.intersection_samples
400
>>> round(cfg.effective_zoom_in_factor * cfg.zoom_out_factor, 12)
1.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Optional

from .graph_types import GraphBounds

DEFAULT_BOUNDS = GraphBounds(x_min=-10.0, x_max=10.0, y_min=-10.0, y_max=10.0)

# Options exposed to UI shells for documentation tooltips.
CONFIG_OPTIONS: dict[str, str] = {
    "tick_target": "Approximate number of grid lines per axis.",
    "intersection_samples": "Sub-intervals scanned for sign changes per curve pair.",
    "bisection_iterations": "Bisection steps applied to every bracketed crossing.",
    "extremum_samples": "Sub-intervals in the fixed extremum analysis grid.",
    "extremum_domain": "Viewport-independent x-range used for extremum analysis.",
    "refinement_step": "Half-width of the parabola used to refine extrema.",
    "zoom_out_factor": "Range multiplier applied by one zoom-out wheel notch.",
    "zoom_in_factor": "Range multiplier for zoom-in; None means 1 / zoom_out_factor.",
}


@dataclass(frozen=True)
class GraphConfig:
    """Immutable bundle of engine tunables.

    Parameters
    ----------
    default_bounds : GraphBounds
        Bounds restored by ``reset_view``.
    canvas_width, canvas_height : int
        Initial pixel size of the rendering surface.
    tick_target : float
        Target tick count passed to :func:`funcgraph.ticks.nice_step`.
    intersection_samples : int
        Default ``sample_count`` for intersection scans.
    bisection_iterations : int
        Number of halvings per bracketed crossing.
    extremum_samples : int
        Sample count for the fixed-domain extremum scan.
    extremum_domain : tuple[float, float]
        Fixed analysis domain for extrema.
    refinement_step : float
        ``h`` used by parabolic refinement.
    extremum_hit_radius, intersection_hit_radius : float
        Click radii in pixels for marker hits.
    curve_hit_box : float
        Half-size in pixels of the box used for curve proximity.
    zoom_out_factor : float
        Multiplier for zoom-out gestures (greater than 1).
    zoom_in_factor : float or None
        Multiplier for zoom-in gestures (less than 1). ``None`` uses the
        reciprocal of ``zoom_out_factor`` so one notch in and out cancels.
        A fixed ``0.9`` zoom-in is available as ``zoom_in_factor=0.9``; a notch
        in followed by a notch out then no longer restores the bounds.
    """

    default_bounds: GraphBounds = DEFAULT_BOUNDS
    canvas_width: int = 800
    canvas_height: int = 600
    tick_target: float = 10.0
    tick_half_length: float = 5.0
    intersection_samples: int = 200
    bisection_iterations: int = 10
    extremum_samples: int = 1000
    extremum_domain: tuple[float, float] = (-20.0, 20.0)
    refinement_step: float = 1e-2
    asymptote_jump: float = 1000.0
    extremum_hit_radius: float = 7.0
    intersection_hit_radius: float = 8.0
    curve_hit_box: float = 7.0
    zoom_out_factor: float = 1.1
    zoom_in_factor: Optional[float] = None
    intersection_marker_radius: float = 5.0
    intersection_marker_color: str = "#000"
    extremum_marker_radius: float = 4.0
    extremum_marker_color: str = "#888"
    label_offset: tuple[float, float] = (10.0, -10.0)
    show_intersections: bool = False

    def __post_init__(self) -> None:
        self.default_bounds.validate()
        if int(self.canvas_width) <= 0 or int(self.canvas_height) <= 0:
            raise ValueError("canvas_width and canvas_height must be > 0")
        if not self.tick_target > 0:
            raise ValueError("tick_target must be > 0")
        for name in ("intersection_samples", "extremum_samples"):
            if int(getattr(self, name)) < 1:
                raise ValueError(f"{name} must be >= 1")
        if int(self.bisection_iterations) < 0:
            raise ValueError("bisection_iterations must be >= 0")
        lo, hi = self.extremum_domain
        if not (math.isfinite(lo) and math.isfinite(hi) and lo < hi):
            raise ValueError(f"extremum_domain must be an increasing finite pair, got {self.extremum_domain!r}")
        if not self.refinement_step > 0:
            raise ValueError("refinement_step must be > 0")
        if not self.zoom_out_factor > 1.0:
            raise ValueError("zoom_out_factor must be > 1")
        if self.zoom_in_factor is not None and not 0.0 < self.zoom_in_factor < 1.0:
            raise ValueError("zoom_in_factor must lie strictly between 0 and 1")
        for name in ("extremum_hit_radius", "intersection_hit_radius", "curve_hit_box"):
            if not getattr(self, name) > 0:
                raise ValueError(f"{name} must be > 0")

    @property
    def effective_zoom_in_factor(self) -> float:
        """Return the zoom-in multiplier, defaulting to the zoom-out reciprocal."""
        if self.zoom_in_factor is None:
            return 1.0 / self.zoom_out_factor
        return self.zoom_in_factor

    def with_overrides(self, **changes: Any) -> "GraphConfig":
        """Return a copy with ``changes`` applied (validated again)."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise TypeError(f"Unknown GraphConfig option(s): {', '.join(unknown)}")
        return replace(self, **changes)


__all__ = ["CONFIG_OPTIONS", "DEFAULT_BOUNDS", "GraphConfig"]
