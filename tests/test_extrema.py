from __future__ import annotations

import math

import pytest

from funcgraph import EvaluatorAdapter, Extremum, ExtremumKind
from funcgraph.extrema import (
    ExtremaCache,
    analyze_extrema,
    analyze_function,
    find_asymptotes,
    find_extrema,
    parabola_vertex,
    refine_extremum,
)

ev = EvaluatorAdapter()
DOMAIN = (-20.0, 20.0)


def test_downward_parabola_has_single_maximum_at_origin() -> None:
    extrema = analyze_extrema(ev.function("-(x^2)"), DOMAIN, 1000)

    assert len(extrema) == 1
    (top,) = extrema
    assert top.kind is ExtremumKind.MAX
    assert abs(top.x) < 1e-9
    assert abs(top.y) < 1e-9


def test_sine_extrema_alternate_and_refine_close_to_exact() -> None:
    extrema = analyze_extrema(ev.function("sin(x)"), DOMAIN, 1000)

    assert len(extrema) == 12
    for ext in extrema:
        k = round((ext.x - math.pi / 2) / math.pi)
        assert abs(ext.x - (math.pi / 2 + k * math.pi)) < 1e-3
        assert abs(abs(ext.y) - 1.0) < 1e-3
        assert ext.kind is (ExtremumKind.MAX if ext.y > 0 else ExtremumKind.MIN)
    kinds = [ext.kind for ext in extrema]
    assert all(a is not b for a, b in zip(kinds, kinds[1:]))


def test_constant_and_monotone_functions_have_no_extrema() -> None:
    assert find_extrema(ev.function("3"), DOMAIN, 100) == []
    assert find_extrema(ev.function("x^3"), DOMAIN, 100) == []


def test_undefined_samples_are_skipped_before_comparison() -> None:
    extrema = find_extrema(ev.function("sqrt(4 - x^2)"), (-3.0, 3.0), 60)

    assert [e.kind for e in extrema] == [ExtremumKind.MAX]
    assert abs(extrema[0].x) < 1e-9


def test_parabola_vertex_exact_and_degenerate() -> None:
    assert parabola_vertex(-1.0, 1.0, 0.0, 0.0, 1.0, 1.0) == pytest.approx(0.0)
    assert parabola_vertex(1.0, 0.0, 2.0, 1.0, 3.0, 0.0) == pytest.approx(2.0)
    assert parabola_vertex(0.0, 0.0, 1.0, 1.0, 2.0, 2.0) is None
    assert parabola_vertex(1.0, 0.0, 1.0, 1.0, 2.0, 0.0) is None


def test_refine_falls_back_to_raw_values() -> None:
    raw = Extremum(0.0, 5.0, ExtremumKind.MAX)

    def _only_at_zero(x: float):
        return 5.0 if x == 0.0 else None

    assert refine_extremum(_only_at_zero, raw) == raw


def test_refine_moves_to_the_vertex() -> None:
    raw = Extremum(1.02, ev.evaluate("-((x-1)^2)", 1.02), ExtremumKind.MAX)

    refined = refine_extremum(ev.function("-((x-1)^2)"), raw, h=0.01)

    assert refined.x == pytest.approx(1.0, abs=1e-9)
    assert refined.y == pytest.approx(0.0, abs=1e-12)
    assert refined.kind is ExtremumKind.MAX


def test_asymptote_candidates_straddle_the_pole() -> None:
    candidates = find_asymptotes(ev.function("1/(x - 0.3333)"), (0.0, 1.0), 1000)

    assert candidates
    assert all(abs(c - 0.3333) < 0.01 for c in candidates)


def test_analyze_function_reports_both() -> None:
    smooth = analyze_function(ev.function("x^2"), (-1.0, 1.0), 100)
    pole = analyze_function(ev.function("1/(x - 0.3333)"), (0.0, 1.0), 1000)

    assert smooth.asymptotes == ()
    assert [e.kind for e in smooth.extrema] == [ExtremumKind.MIN]
    assert pole.asymptotes
    assert all(abs(a - 0.3333) < 0.01 for a in pole.asymptotes)


def test_cache_memoizes_per_expression() -> None:
    cache = ExtremaCache()
    calls: list[str] = []

    def _compute(expr: str):
        def _inner():
            calls.append(expr)
            return analyze_extrema(ev.function(expr), DOMAIN, 200)

        return _inner

    first = cache.get_or_compute("f", "-(x^2)", _compute("-(x^2)"))
    second = cache.get_or_compute("f", "-(x^2)", _compute("-(x^2)"))
    assert first is second
    assert calls == ["-(x^2)"]

    cache.get_or_compute("f", "x^2", _compute("x^2"))
    assert calls == ["-(x^2)", "x^2"]
    assert ("f", "-(x^2)") not in cache
    assert len(cache) == 1


def test_cache_retain_drops_removed_and_edited_entries() -> None:
    cache = ExtremaCache()
    cache.put("f", "sin(x)", ())
    cache.put("g", "x^2", ())
    cache.put("h", "x", ())

    cache.retain([("f", "sin(x)"), ("g", "x^3")])

    assert ("f", "sin(x)") in cache
    assert len(cache) == 1
    cache.discard("f")
    assert len(cache) == 0
