"""Top-level public API for the ``funcgraph`` package.

This module re-exports the numeric engine and the session surface so users can
import from a single namespace, for example:

>>> from funcgraph import Equation, GraphSession, find_intersections  # doctest: +SKIP

It intentionally exposes both the high-level :class:`GraphSession` and the
lower-level building blocks (transform, sampler, finders, gesture controller)
for integrations that bring their own state stores or rendering surface.
"""

from .config import GraphConfig
from .evaluator import EvaluatorAdapter, ExpressionEvaluator, SympyEvaluator
from .extrema import (
    ExtremaCache,
    FunctionAnalysis,
    analyze_extrema,
    analyze_function,
    find_asymptotes,
    find_extrema,
    refine_extremum,
)
from .frame import CurveDrawing, Marker, MarkerRole, PointLabel, RenderFrame, SelectedPoint
from .gestures import GestureController, GestureState, pan_bounds, zoom_bounds
from .graph_types import (
    CurveKind,
    DegenerateGeometryError,
    Equation,
    Extremum,
    ExtremumKind,
    GraphBounds,
    GraphStyle,
    Point,
    ScreenPoint,
    Segment,
)
from .hit_testing import CurveHit, ExtremumHit, IntersectionHit, NoHit, resolve_click
from .intersections import IntersectionSet, find_all_intersections, find_intersections
from .sampling import sample, sample_arrays
from .session import GraphSession
from .store import EquationStore, ViewportStore
from .ticks import format_coord, grid_lines, nice_step
from .viewport import ViewportTransform
from .workers import AnalysisKind, AnalysisRequest, AnalysisWorker

__all__ = [
    "AnalysisKind",
    "AnalysisRequest",
    "AnalysisWorker",
    "CurveDrawing",
    "CurveHit",
    "CurveKind",
    "DegenerateGeometryError",
    "Equation",
    "EquationStore",
    "EvaluatorAdapter",
    "ExpressionEvaluator",
    "ExtremaCache",
    "Extremum",
    "ExtremumHit",
    "ExtremumKind",
    "FunctionAnalysis",
    "GestureController",
    "GestureState",
    "GraphBounds",
    "GraphConfig",
    "GraphSession",
    "GraphStyle",
    "IntersectionHit",
    "IntersectionSet",
    "Marker",
    "MarkerRole",
    "NoHit",
    "Point",
    "PointLabel",
    "RenderFrame",
    "ScreenPoint",
    "Segment",
    "SelectedPoint",
    "SympyEvaluator",
    "ViewportStore",
    "ViewportTransform",
    "analyze_extrema",
    "analyze_function",
    "find_all_intersections",
    "find_asymptotes",
    "find_extrema",
    "find_intersections",
    "format_coord",
    "grid_lines",
    "nice_step",
    "pan_bounds",
    "refine_extremum",
    "resolve_click",
    "sample",
    "sample_arrays",
    "zoom_bounds",
]
