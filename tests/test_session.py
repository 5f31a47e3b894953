from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from funcgraph import (
    AnalysisWorker,
    CurveHit,
    Equation,
    EquationStore,
    ExtremumHit,
    ExtremumKind,
    GraphBounds,
    GraphConfig,
    GraphSession,
    IntersectionHit,
    MarkerRole,
    NoHit,
    RenderFrame,
)
from funcgraph.hit_testing import NO_HIT

from test_debouncing import _FakeThreadTimer
from test_workers import InlineExecutor


def _session(*equations: Equation, **kwargs) -> GraphSession:
    return GraphSession(EquationStore(equations), **kwargs)


def test_frame_contains_grid_axes_and_one_drawing_per_visible_curve() -> None:
    session = _session(
        Equation("f", "x"),
        Equation("g", "x^2", visible=False),
        Equation("h", "1/x"),
    )

    frame = session.frame()

    assert (frame.width, frame.height) == (800, 600)
    assert [c.equation_id for c in frame.curves] == ["f", "h"]
    assert len(frame.curves[0].segments) == 1
    assert len(frame.curves[1].segments) == 2
    assert len(frame.axes) == 2
    assert frame.markers == ()
    assert frame.label is None


def test_toggling_intersections_does_not_resample_curves() -> None:
    session = _session(Equation("a", "x"), Equation("b", "2-x"))

    session.frame()
    session.show_intersections = True
    frame = session.frame()

    assert session.recompute_counts["curves"] == 1
    assert session.recompute_counts["intersections"] == 1
    intersections = [m for m in frame.markers if m.role is MarkerRole.INTERSECTION]
    assert len(intersections) == 1
    assert intersections[0].sx == pytest.approx(440.0, abs=0.1)
    assert intersections[0].sy == pytest.approx(270.0, abs=0.1)
    assert intersections[0].radius == 5.0
    assert intersections[0].color == "#000"


def test_bounds_change_resamples_curves_and_intersections() -> None:
    session = _session(Equation("a", "x"), Equation("b", "2-x"))
    session.show_intersections = True
    session.frame()

    assert session.wheel(400.0, 300.0, 1.0)
    session.frame()

    assert session.recompute_counts["curves"] == 2
    assert session.recompute_counts["intersections"] == 2


def test_clicking_curve_then_extremum_selects_and_labels_point() -> None:
    session = _session(Equation("f", "-(x^2)"))
    frame = session.frame()
    assert frame.markers == ()

    first = session.click(400.0, 300.0)
    assert isinstance(first, CurveHit)
    assert first.equation_id == "f"
    assert session.selected_equation_id == "f"
    assert [e.kind for e in session.extrema] == [ExtremumKind.MAX]

    second = session.click(401.0, 301.0)
    assert isinstance(second, ExtremumHit)
    frame = session.frame()
    assert frame.label is not None
    assert frame.label.text == "(0, 0)"
    assert (frame.label.sx, frame.label.sy) == (410.0, 290.0)
    extremum_markers = [m for m in frame.markers if m.role is MarkerRole.EXTREMUM]
    assert [(m.radius, m.color) for m in extremum_markers] == [(4.0, "#888")]


def test_extrema_are_cached_per_expression_and_recomputed_after_edit() -> None:
    session = _session(Equation("f", "-(x^2)"))

    session.select_equation("f")
    session.clear_selection()
    session.select_equation("f")
    assert session.recompute_counts["extrema"] == 1

    session.equations.update(Equation("f", "x^2"))

    assert session.recompute_counts["extrema"] == 2
    assert [e.kind for e in session.extrema] == [ExtremumKind.MIN]


def test_select_equation_validates_target() -> None:
    session = _session(Equation("f", "x"), Equation("g", "x", visible=False))

    with pytest.raises(KeyError):
        session.select_equation("missing")
    with pytest.raises(ValueError):
        session.select_equation("g")


def test_hiding_selected_equation_clears_selection() -> None:
    session = _session(Equation("f", "sin(x)"))
    session.select_equation("f")

    session.equations.update(Equation("f", "sin(x)", visible=False))

    assert session.selected_equation_id is None
    assert session.extrema == ()


def test_intersection_click_sets_selected_point() -> None:
    session = _session(Equation("a", "x"), Equation("b", "2-x"))
    session.show_intersections = True

    hit = session.click(441.0, 271.0)

    assert isinstance(hit, IntersectionHit)
    point = session.selected_point
    assert point is not None
    assert point.role is MarkerRole.INTERSECTION
    assert point.equation_ids == ("a", "b")
    assert point.point.x == pytest.approx(1.0, abs=1e-3)

    session.show_intersections = False
    assert session.selected_point is None


def test_click_on_empty_space_clears_selection() -> None:
    session = _session(Equation("f", "-(x^2)"))
    session.select_equation("f")

    hit = session.click(10.0, 10.0)

    assert isinstance(hit, NoHit)
    assert session.selected_equation_id is None


def test_pointer_down_clears_selected_point_and_drag_pans() -> None:
    session = _session(Equation("f", "-(x^2)"))
    session.select_equation("f")
    session.click(400.0, 300.0)
    assert session.selected_point is not None

    session.pointer_down(400.0, 300.0)
    assert session.selected_point is None
    assert session.click(400.0, 300.0) is NO_HIT

    assert session.pointer_move(440.0, 330.0)
    session.pointer_up()
    assert session.bounds == GraphBounds(-11.0, 9.0, -9.0, 11.0)
    assert session.viewport.pan.x == pytest.approx(-1.0)

    assert session.reset_view()
    assert session.bounds == GraphBounds(-10.0, 10.0, -10.0, 10.0)


def test_resize_refuses_degenerate_canvas(caplog: pytest.LogCaptureFixture) -> None:
    session = _session(Equation("f", "x"))
    session.frame()

    with caplog.at_level(logging.WARNING, logger="funcgraph.session"):
        assert session.resize(0, 300) is False
    assert "refusing canvas resize" in caplog.text
    assert session.canvas_size == (800, 600)

    assert session.resize(400, 300) is True
    frame = session.frame()
    assert session.recompute_counts["curves"] == 2
    assert len(frame.curves[0].segments[0]) == 401


def test_listeners_receive_frames_and_failures_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    session = _session()
    frames: list[RenderFrame] = []

    def _bad(_frame: RenderFrame) -> None:
        raise RuntimeError("surface broke")

    session.subscribe(_bad)
    unsubscribe = session.subscribe(frames.append)
    with caplog.at_level(logging.ERROR, logger="funcgraph.session"):
        session.equations.add(Equation("f", "x"))

    assert [f.curves[0].equation_id for f in frames] == ["f"]
    assert "frame listener" in caplog.text

    unsubscribe()
    session.equations.remove("f")
    assert len(frames) == 1


def test_background_worker_delivers_analysis() -> None:
    worker = AnalysisWorker(executor=InlineExecutor())
    session = _session(Equation("a", "x^2"), Equation("b", "2-x"), worker=worker)
    marker_counts: list[int] = []
    session.subscribe(lambda frame: marker_counts.append(len(frame.markers)))

    session.show_intersections = True
    extrema = session.select_equation("a")

    (found,) = session.intersections
    assert sorted(round(p.x, 2) for p in found.points) == [-2.0, 1.0]
    assert [e.kind for e in extrema] == [ExtremumKind.MIN]
    assert marker_counts[-1] == 3
    worker.shutdown()


def test_debounced_session_coalesces_viewport_updates() -> None:
    frames: list[RenderFrame] = []
    _FakeThreadTimer.created.clear()

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        session = _session(Equation("f", "x"), recompute_every_ms=16)
        session.subscribe(frames.append)
        session.wheel(400.0, 300.0, 1.0)
        session.wheel(400.0, 300.0, 1.0)
        session.wheel(400.0, 300.0, 1.0)
        assert frames == []
        assert len(_FakeThreadTimer.created) == 1

        _FakeThreadTimer.created[0].callback()

    assert len(frames) == 1
    assert frames[0].bounds == session.bounds
    session.close()


def test_session_respects_config_overrides() -> None:
    cfg = GraphConfig(canvas_width=200, canvas_height=100, show_intersections=True)
    session = _session(Equation("a", "x"), Equation("b", "-x"), config=cfg)

    frame = session.frame()

    assert (frame.width, frame.height) == (200, 100)
    assert len(frame.curves[0].segments[0]) == 201
    assert any(m.role is MarkerRole.INTERSECTION for m in frame.markers)


def test_closing_debounced_session_drops_pending_relayout() -> None:
    frames: list[RenderFrame] = []

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        session = _session(Equation("f", "x"), recompute_every_ms=16)
        session.subscribe(frames.append)
        session.wheel(400.0, 300.0, 1.0)
        timer = _FakeThreadTimer.created[-1]

        session.close()
        timer.callback()

    assert timer.cancelled
    assert frames == []
