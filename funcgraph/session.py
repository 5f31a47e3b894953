"""Interactive graph session: explicit recomputation triggers and gestures.

Purpose
-------
``GraphSession`` wires the stores, the evaluator adapter and the numeric
components together and produces :class:`~funcgraph.frame.RenderFrame`
objects for a rendering surface.

Recomputation triggers
----------------------
Derived state is invalidated only by the events that can change it:

- sampled curves: equation-list change, bounds change, canvas resize;
- intersections: equation-list change, bounds change, ``show_intersections``
  toggle;
- extrema: a different selected equation, or a new expression for it
  (memoized in :class:`~funcgraph.extrema.ExtremaCache`).

Screen projections of markers and labels are never cached; every frame
re-projects them through the live transform.

Concurrency
-----------
With a ``worker``, intersection and extremum analysis run in the background
and frames are re-emitted when results arrive. With ``recompute_every_ms``,
bounds changes are coalesced through a
:class:`~funcgraph.debouncing.RelayoutDebouncer`, which delivers only the
newest bounds once per tick.

Logging
-------
This module uses the standard Python ``logging`` framework and installs a
``NullHandler``. Render summaries are logged at INFO at most once per second.

Examples
--------
>>> from funcgraph import Equation, GraphSession
>>> session = GraphSession()
>>> session.equations.add(Equation(id="f", expression="sin(x)"))
>>> frame = session.frame()
>>> [c.equation_id for c in frame.curves]
['f']
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from typing import Callable, Optional

from .config import GraphConfig
from .debouncing import RelayoutDebouncer
from .evaluator import EvaluatorAdapter, ExpressionEvaluator
from .extrema import ExtremaCache, analyze_extrema
from .frame import CurveDrawing, Marker, MarkerRole, PointLabel, RenderFrame, SelectedPoint
from .gestures import GestureController
from .graph_types import Equation, Extremum, GraphBounds, Segment
from .hit_testing import (
    NO_HIT,
    CurveHit,
    CurveTrace,
    ExtremumHit,
    ExtremumMarker,
    HitResult,
    IntersectionHit,
    IntersectionMarker,
    resolve_click,
)
from .intersections import IntersectionSet, find_all_intersections
from .sampling import sample
from .store import EquationStore, ViewportStore
from .ticks import axis_lines, format_coord, grid_lines
from .viewport import ViewportTransform
from .workers import AnalysisKind, AnalysisRequest, AnalysisWorker

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
# - Callers can enable logs via standard logging configuration.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

FrameListener = Callable[[RenderFrame], None]


class GraphSession:
    """Single-viewport interactive graph.

    Parameters
    ----------
    equations : EquationStore, optional
        Equation collaborator. A fresh empty store by default.
    viewport : ViewportStore, optional
        Bounds collaborator. Starts at ``config.default_bounds`` by default.
    config : GraphConfig, optional
        Engine tunables.
    evaluator : ExpressionEvaluator, optional
        Expression evaluator; SymPy-based by default.
    worker : AnalysisWorker, optional
        Run intersection and extremum analysis in the background.
    recompute_every_ms : int, optional
        Coalesce bounds-driven frame emission to this cadence.
    """

    def __init__(
        self,
        equations: Optional[EquationStore] = None,
        viewport: Optional[ViewportStore] = None,
        *,
        config: Optional[GraphConfig] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        worker: Optional[AnalysisWorker] = None,
        recompute_every_ms: Optional[int] = None,
    ) -> None:
        self._config = config or GraphConfig()
        self._adapter = EvaluatorAdapter(evaluator)
        self._equations = equations if equations is not None else EquationStore()
        self._viewport = viewport if viewport is not None else ViewportStore(self._config.default_bounds)
        self._width = int(self._config.canvas_width)
        self._height = int(self._config.canvas_height)
        self._gestures = GestureController(self._config)
        self._extrema_cache = ExtremaCache()
        self._worker = worker
        self._show_intersections = bool(self._config.show_intersections)

        self._lock = threading.RLock()
        self._curves: Optional[dict[str, tuple[Segment, ...]]] = None
        self._intersections: Optional[tuple[IntersectionSet, ...]] = None
        self._pending_intersections: Optional[AnalysisRequest] = None
        self._selected_equation_id: Optional[str] = None
        self._selected_expression: Optional[str] = None
        self._extrema: tuple[Extremum, ...] = ()
        self._selected_point: Optional[SelectedPoint] = None
        self._listeners: list[FrameListener] = []
        self.recompute_counts: Counter[str] = Counter()
        self._render_info_last_log_t = 0.0

        self._relayout_debouncer: Optional[RelayoutDebouncer] = None
        if recompute_every_ms is not None:
            self._relayout_debouncer = RelayoutDebouncer(
                self._on_relayout,
                execute_every_ms=int(recompute_every_ms),
            )

        self._unsubscribe = (
            self._equations.subscribe(self._on_equations_changed),
            self._viewport.subscribe(self._on_bounds_changed),
        )

    # ------------------------------------------------------------------
    # Collaborators and read-only state
    # ------------------------------------------------------------------

    @property
    def config(self) -> GraphConfig:
        return self._config

    @property
    def adapter(self) -> EvaluatorAdapter:
        return self._adapter

    @property
    def equations(self) -> EquationStore:
        return self._equations

    @property
    def viewport(self) -> ViewportStore:
        return self._viewport

    @property
    def bounds(self) -> GraphBounds:
        return self._viewport.bounds

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (self._width, self._height)

    @property
    def gestures(self) -> GestureController:
        return self._gestures

    @property
    def extrema_cache(self) -> ExtremaCache:
        return self._extrema_cache

    @property
    def selected_equation_id(self) -> Optional[str]:
        return self._selected_equation_id

    @property
    def selected_point(self) -> Optional[SelectedPoint]:
        return self._selected_point

    @property
    def extrema(self) -> tuple[Extremum, ...]:
        """Return the refined extrema of the selected equation (empty if none)."""
        return self._extrema

    @property
    def intersections(self) -> tuple[IntersectionSet, ...]:
        """Return intersection sets for the current bounds (empty when hidden)."""
        with self._lock:
            if not self._show_intersections:
                return ()
            self._ensure_intersections()
            return self._intersections or ()

    @property
    def show_intersections(self) -> bool:
        return self._show_intersections

    @show_intersections.setter
    def show_intersections(self, value: bool) -> None:
        with self._lock:
            value = bool(value)
            if value == self._show_intersections:
                return
            self._show_intersections = value
            self._intersections = None
            self._pending_intersections = None
            if not value and self._selected_point is not None and self._selected_point.role is MarkerRole.INTERSECTION:
                self._selected_point = None
        self._emit("toggle_intersections")

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: FrameListener) -> Callable[[], None]:
        """Call ``listener`` with a fresh frame after every state change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        """Detach from the stores and drop pending coalesced work."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        if self._relayout_debouncer is not None:
            self._relayout_debouncer.cancel()
        self._listeners.clear()

    def _emit(self, reason: str) -> None:
        if not self._listeners:
            return
        frame = self.frame(reason=reason)
        for listener in tuple(self._listeners):
            try:
                listener(frame)
            except Exception:
                logger.exception("frame listener %r failed", listener)

    # ------------------------------------------------------------------
    # Recomputation triggers
    # ------------------------------------------------------------------

    def _on_equations_changed(self, equations: tuple[Equation, ...]) -> None:
        with self._lock:
            self._curves = None
            self._intersections = None
            self._pending_intersections = None
            self._extrema_cache.retain((eq.id, eq.expression) for eq in equations)
            selected = self._selected_equation_id
            if selected is not None:
                equation = self._equations.get(selected)
                if equation is None or not equation.is_plottable:
                    self._clear_selection_locked()
                elif equation.expression != self._selected_expression:
                    self._refresh_extrema_locked(equation)
            if self._selected_point is not None and self._selected_point.role is MarkerRole.INTERSECTION:
                self._selected_point = None
        self._emit("equations")

    def _on_bounds_changed(self, bounds: GraphBounds) -> None:
        with self._lock:
            self._curves = None
            self._intersections = None
            self._pending_intersections = None
        if self._relayout_debouncer is not None:
            self._relayout_debouncer(bounds)
        else:
            self._emit("relayout")

    def _on_relayout(self, bounds: GraphBounds) -> None:
        if bounds != self._viewport.bounds:
            logger.debug("relayout for %s superseded by %s", bounds, self._viewport.bounds)
        self._emit("relayout")

    def resize(self, width: int, height: int) -> bool:
        """Change the canvas size; zero or negative sizes are refused."""
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            logger.warning("refusing canvas resize to %dx%d", width, height)
            return False
        with self._lock:
            if (width, height) == (self._width, self._height):
                return False
            self._width, self._height = width, height
            self._curves = None
        self._emit("resize")
        return True

    def reset_view(self) -> bool:
        """Restore ``config.default_bounds``."""
        return self._viewport.commit(self._config.default_bounds)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def _ensure_curves(self) -> dict[str, tuple[Segment, ...]]:
        if self._curves is None:
            bounds = self._viewport.bounds
            curves: dict[str, tuple[Segment, ...]] = {}
            for equation in self._equations.equations:
                if not equation.is_plottable:
                    continue
                curves[equation.id] = tuple(
                    sample(self._adapter, equation.expression, (bounds.x_min, bounds.x_max), self._width)
                )
            self._curves = curves
            self.recompute_counts["curves"] += 1
        return self._curves

    def _ensure_intersections(self) -> None:
        if self._intersections is not None or self._pending_intersections is not None:
            return
        bounds = self._viewport.bounds
        domain = (bounds.x_min, bounds.x_max)
        equations = tuple(eq for eq in self._equations.equations if eq.is_plottable)
        count = self._config.intersection_samples
        iterations = self._config.bisection_iterations

        def _compute() -> tuple[IntersectionSet, ...]:
            return tuple(find_all_intersections(self._adapter, equations, domain, count, iterations))

        self.recompute_counts["intersections"] += 1
        if self._worker is None:
            self._intersections = _compute()
            return

        request = AnalysisRequest(
            kind=AnalysisKind.INTERSECTIONS,
            equation_ids=("*",),
            expressions=tuple(eq.expression for eq in equations),
            domain=domain,
            sample_count=count,
        )
        self._pending_intersections = request
        self._worker.submit(request, _compute, self._on_intersections_ready)

    def _on_intersections_ready(self, request: AnalysisRequest, result: tuple[IntersectionSet, ...]) -> None:
        with self._lock:
            if request != self._pending_intersections:
                logger.debug("ignoring intersections for outdated request %r", request)
                return
            self._pending_intersections = None
            self._intersections = result
        self._emit("intersections_ready")

    def _refresh_extrema_locked(self, equation: Equation) -> None:
        self._selected_equation_id = equation.id
        self._selected_expression = equation.expression
        self._selected_point = None
        cached = self._extrema_cache.get(equation.id, equation.expression)
        if cached is not None:
            self._extrema = cached
            return

        f = self._adapter.function(equation.expression)
        domain = self._config.extremum_domain
        count = self._config.extremum_samples
        h = self._config.refinement_step

        def _compute() -> tuple[Extremum, ...]:
            return analyze_extrema(f, domain, count, h)

        self.recompute_counts["extrema"] += 1
        if self._worker is None:
            self._extrema = self._extrema_cache.get_or_compute(equation.id, equation.expression, _compute)
            return

        self._extrema = ()
        request = AnalysisRequest(
            kind=AnalysisKind.EXTREMA,
            equation_ids=(equation.id,),
            expressions=(equation.expression,),
            domain=domain,
            sample_count=count,
        )
        self._worker.submit(request, _compute, self._on_extrema_ready)

    def _on_extrema_ready(self, request: AnalysisRequest, result: tuple[Extremum, ...]) -> None:
        equation_id, expression = request.equation_ids[0], request.expressions[0]
        self._extrema_cache.put(equation_id, expression, result)
        with self._lock:
            if (self._selected_equation_id, self._selected_expression) != (equation_id, expression):
                return
            self._extrema = tuple(result)
        self._emit("extrema_ready")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_equation(self, equation_id: str) -> tuple[Extremum, ...]:
        """Select a plottable equation and analyse its extrema.

        Raises
        ------
        KeyError
            If ``equation_id`` is unknown.
        ValueError
            If the equation is hidden or not explicit.
        """
        equation = self._equations.require(equation_id)
        if not equation.is_plottable:
            raise ValueError(f"Equation '{equation_id}' is hidden or not explicit")
        with self._lock:
            if (self._selected_equation_id, self._selected_expression) != (equation.id, equation.expression):
                self._refresh_extrema_locked(equation)
            extrema = self._extrema
        self._emit("select")
        return extrema

    def clear_selection(self) -> None:
        with self._lock:
            self._clear_selection_locked()
        self._emit("clear_selection")

    def _clear_selection_locked(self) -> None:
        self._selected_equation_id = None
        self._selected_expression = None
        self._extrema = ()
        self._selected_point = None

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def pointer_down(self, sx: float, sy: float) -> None:
        with self._lock:
            self._gestures.pointer_down(sx, sy)
            had_point = self._selected_point is not None
            self._selected_point = None
        if had_point:
            self._emit("pointer_down")

    def pointer_move(self, sx: float, sy: float) -> bool:
        """Pan while dragging; returns True when the bounds changed."""
        with self._lock:
            new_bounds = self._gestures.pointer_move(sx, sy, self._viewport.bounds, self._width, self._height)
        return new_bounds is not None and self._viewport.commit(new_bounds)

    def pointer_up(self) -> None:
        self._gestures.pointer_up()

    def pointer_leave(self) -> None:
        self._gestures.pointer_leave()

    def wheel(self, sx: float, sy: float, delta_y: float) -> bool:
        """Zoom around the pointer; positive ``delta_y`` zooms out."""
        with self._lock:
            new_bounds = self._gestures.wheel(sx, sy, delta_y, self._viewport.bounds, self._width, self._height)
        return new_bounds is not None and self._viewport.commit(new_bounds)

    def pinch(self, sx: float, sy: float, scale: float) -> bool:
        with self._lock:
            new_bounds = self._gestures.pinch(sx, sy, scale, self._viewport.bounds, self._width, self._height)
        return new_bounds is not None and self._viewport.commit(new_bounds)

    def click(self, sx: float, sy: float) -> HitResult:
        """Resolve a click and update the selection accordingly.

        Clicks are ignored while a drag is in progress.
        """
        with self._lock:
            if self._gestures.is_dragging:
                return NO_HIT
            transform = self._transform()
            hit = resolve_click(
                sx,
                sy,
                extremum_markers=self._extremum_markers(transform),
                intersection_markers=self._intersection_markers(transform),
                curves=self._curve_traces(transform),
                show_intersections=self._show_intersections,
                config=self._config,
            )
            if isinstance(hit, ExtremumHit):
                self._selected_point = SelectedPoint(
                    point=hit.marker.extremum.point,
                    role=MarkerRole.EXTREMUM,
                    equation_ids=(self._selected_equation_id or "",),
                )
            elif isinstance(hit, IntersectionHit):
                self._selected_point = SelectedPoint(
                    point=hit.marker.screen.data_point,
                    role=MarkerRole.INTERSECTION,
                    equation_ids=hit.marker.equation_ids,
                )
            elif isinstance(hit, CurveHit):
                equation = self._equations.require(hit.equation_id)
                if (self._selected_equation_id, self._selected_expression) != (equation.id, equation.expression):
                    self._refresh_extrema_locked(equation)
                self._selected_point = None
            else:
                self._clear_selection_locked()
        logger.debug("click at (%.1f, %.1f) -> %r", sx, sy, hit)
        self._emit("click")
        return hit

    # ------------------------------------------------------------------
    # Frame construction
    # ------------------------------------------------------------------

    def _transform(self) -> ViewportTransform:
        return ViewportTransform(self._viewport.bounds, self._width, self._height)

    def _extremum_markers(self, transform: ViewportTransform) -> tuple[ExtremumMarker, ...]:
        if self._selected_equation_id is None:
            return ()
        return tuple(ExtremumMarker(ext, transform.project(ext.point)) for ext in self._extrema)

    def _intersection_markers(self, transform: ViewportTransform) -> tuple[IntersectionMarker, ...]:
        if not self._show_intersections:
            return ()
        self._ensure_intersections()
        markers: list[IntersectionMarker] = []
        for found in self._intersections or ():
            for point in found.points:
                markers.append(IntersectionMarker(transform.project(point), (found.first_id, found.second_id)))
        return tuple(markers)

    def _curve_traces(self, transform: ViewportTransform) -> tuple[CurveTrace, ...]:
        curves = self._ensure_curves()
        return tuple(
            CurveTrace(
                equation_id=equation_id,
                samples=tuple(transform.project(p) for segment in segments for p in segment),
            )
            for equation_id, segments in curves.items()
        )

    def frame(self, reason: str = "manual") -> RenderFrame:
        """Build the drawing instructions for the current state."""
        with self._lock:
            transform = self._transform()
            cfg = self._config
            curves = self._ensure_curves()
            styles = {eq.id: eq.style for eq in self._equations.equations}
            drawings = tuple(
                CurveDrawing(
                    equation_id=equation_id,
                    style=styles[equation_id],
                    segments=tuple(transform.project_segment(segment) for segment in segments),
                )
                for equation_id, segments in curves.items()
                if equation_id in styles
            )

            markers: list[Marker] = []
            for marker in self._intersection_markers(transform):
                markers.append(
                    Marker(
                        marker.screen.sx,
                        marker.screen.sy,
                        cfg.intersection_marker_radius,
                        cfg.intersection_marker_color,
                        MarkerRole.INTERSECTION,
                    )
                )
            for marker in self._extremum_markers(transform):
                markers.append(
                    Marker(
                        marker.screen.sx,
                        marker.screen.sy,
                        cfg.extremum_marker_radius,
                        cfg.extremum_marker_color,
                        MarkerRole.EXTREMUM,
                    )
                )

            label = None
            if self._selected_point is not None:
                screen = transform.project(self._selected_point.point)
                point = self._selected_point.point
                label = PointLabel(
                    text=f"({format_coord(point.x)}, {format_coord(point.y)})",
                    sx=screen.sx + cfg.label_offset[0],
                    sy=screen.sy + cfg.label_offset[1],
                )

            frame = RenderFrame(
                width=self._width,
                height=self._height,
                bounds=transform.bounds,
                grid=tuple(grid_lines(transform, cfg.tick_target, cfg.tick_half_length)),
                axes=tuple(axis_lines(transform)),
                curves=drawings,
                markers=tuple(markers),
                label=label,
            )

        now = time.monotonic()
        if logger.isEnabledFor(logging.INFO) and (now - self._render_info_last_log_t) > 1.0:
            self._render_info_last_log_t = now
            logger.info("frame(reason=%s) curves=%d markers=%d", reason, len(frame.curves), len(frame.markers))
        return frame


__all__ = ["GraphSession"]
