from __future__ import annotations

import math

import pytest

from funcgraph import DegenerateGeometryError, EvaluatorAdapter
from funcgraph.sampling import sample, sample_arrays


@pytest.fixture()
def adapter() -> EvaluatorAdapter:
    return EvaluatorAdapter()


def test_identity_is_one_segment_of_width_plus_one_points(adapter: EvaluatorAdapter) -> None:
    segments = list(sample(adapter, "x", (-10.0, 10.0), 20))

    assert len(segments) == 1
    assert len(segments[0]) == 21
    assert all(p.y == p.x for p in segments[0])
    assert segments[0][0].x == -10.0
    assert segments[0][-1].x == 10.0


def test_pole_splits_curve_into_segments(adapter: EvaluatorAdapter) -> None:
    segments = list(sample(adapter, "1/x", (-1.0, 1.0), 20))

    assert len(segments) == 2
    assert all(p.x < 0 for p in segments[0])
    assert all(p.x > 0 for p in segments[1])


def test_points_increase_in_x_across_segments(adapter: EvaluatorAdapter) -> None:
    xs = [p.x for seg in sample(adapter, "sqrt(x^2 - 1)", (-3.0, 3.0), 60) for p in seg]

    assert xs == sorted(xs)
    assert all(abs(x) >= 1.0 - 1e-12 for x in xs)


def test_fully_undefined_curve_yields_nothing(adapter: EvaluatorAdapter) -> None:
    assert list(sample(adapter, "sqrt(-1 - x^2)", (-1.0, 1.0), 10)) == []


def test_sample_arrays_marks_gaps(adapter: EvaluatorAdapter) -> None:
    xs, ys = sample_arrays(adapter, "log(x)", (-1.0, 1.0), 4)

    assert xs.tolist() == [-1.0, -0.5, 0.0, 0.5, 1.0]
    assert all(math.isnan(y) for y in ys[:3])
    assert ys[4] == 0.0


@pytest.mark.parametrize(
    ("domain", "width"),
    [((1.0, 1.0), 10), ((2.0, 1.0), 10), ((0.0, 1.0), 0)],
)
def test_degenerate_inputs_raise_before_iteration(
    adapter: EvaluatorAdapter, domain: tuple[float, float], width: int
) -> None:
    with pytest.raises(DegenerateGeometryError):
        sample(adapter, "x", domain, width)


def test_unsimplified_expression_keeps_its_domain(adapter: EvaluatorAdapter) -> None:
    segments = list(sample(adapter, "sqrt(x)^2", (-1.0, 1.0), 20))

    assert len(segments) == 1
    assert len(segments[0]) in (10, 11)
    assert all(p.x >= 0.0 for p in segments[0])
    assert all(p.y == pytest.approx(p.x) for p in segments[0])
