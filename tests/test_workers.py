from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future

import pytest

from funcgraph.workers import AnalysisKind, AnalysisRequest, AnalysisWorker


class InlineExecutor(Executor):
    """Run submitted callables immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


def _request(expr: str, ids: tuple[str, ...] = ("f",)) -> AnalysisRequest:
    return AnalysisRequest(AnalysisKind.EXTREMA, ids, (expr,), (-20.0, 20.0), 1000)


def test_newer_request_supersedes_older_one_in_the_same_slot() -> None:
    gate = threading.Event()
    delivered = threading.Event()
    results: list[tuple[str, str]] = []

    def _slow() -> str:
        gate.wait(5)
        return "old"

    def _collect(request: AnalysisRequest, value: str) -> None:
        results.append((request.expressions[0], value))
        if value == "new":
            delivered.set()

    with AnalysisWorker(max_workers=1) as worker:
        old = _request("x^2")
        new = _request("x^3")
        worker.submit(old, _slow, _collect)
        worker.submit(new, lambda: "new", _collect)
        assert worker.is_current(new)
        assert not worker.is_current(old)
        gate.set()
        assert delivered.wait(5)

    assert results == [("x^3", "new")]


def test_different_slots_do_not_interfere() -> None:
    worker = AnalysisWorker(executor=InlineExecutor())
    results: list[str] = []

    worker.submit(_request("a", ("f",)), lambda: "f", lambda _r, v: results.append(v))
    worker.submit(_request("b", ("g",)), lambda: "g", lambda _r, v: results.append(v))

    assert results == ["f", "g"]


def test_failed_analysis_is_logged_and_dropped(caplog: pytest.LogCaptureFixture) -> None:
    worker = AnalysisWorker(executor=InlineExecutor())
    results: list[object] = []

    def _boom() -> None:
        raise RuntimeError("analysis exploded")

    with caplog.at_level(logging.ERROR, logger="funcgraph.workers"):
        worker.submit(_request("x"), _boom, lambda _r, v: results.append(v))

    assert results == []
    assert "failed" in caplog.text


def test_failing_result_callback_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    worker = AnalysisWorker(executor=InlineExecutor())

    def _bad_callback(_request: AnalysisRequest, _value: object) -> None:
        raise ValueError("consumer broke")

    with caplog.at_level(logging.ERROR, logger="funcgraph.workers"):
        worker.submit(_request("x"), lambda: 1, _bad_callback)

    assert "result callback" in caplog.text


def test_submit_after_shutdown_is_refused() -> None:
    worker = AnalysisWorker(max_workers=1)
    worker.shutdown()

    assert worker.submit(_request("x"), lambda: 1, lambda _r, _v: None) is None


def test_invalid_pool_size_is_rejected() -> None:
    with pytest.raises(ValueError):
        AnalysisWorker(max_workers=0)


def test_only_background_analyses_have_kinds() -> None:
    assert [kind.value for kind in AnalysisKind] == ["intersections", "extrema"]
