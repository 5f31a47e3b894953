from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from funcgraph import GraphBounds
from funcgraph.debouncing import RelayoutDebouncer


def _bounds(shift: float) -> GraphBounds:
    return GraphBounds(-10.0 + shift, 10.0 + shift, -10.0, 10.0)


class _FakeThreadTimer:
    created: list["_FakeThreadTimer"] = []

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        _FakeThreadTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


class _FakeLoopHandle:
    def __init__(self, callback):
        self._callback = callback

    def fire(self) -> None:
        self._callback()

    def cancel(self) -> None:
        pass


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []

    def call_later(self, _delay: float, callback):
        handle = _FakeLoopHandle(callback)
        self.handles.append(handle)
        return handle


@pytest.fixture(autouse=True)
def _reset_fake_timers() -> None:
    _FakeThreadTimer.created.clear()


def test_burst_delivers_only_the_newest_bounds() -> None:
    delivered: list[GraphBounds] = []

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = RelayoutDebouncer(delivered.append, execute_every_ms=16)
        for shift in (1.0, 2.0, 3.0):
            debouncer(_bounds(shift))
        assert len(_FakeThreadTimer.created) == 1
        assert _FakeThreadTimer.created[0].delay == pytest.approx(0.016)
        assert _FakeThreadTimer.created[0].daemon
        assert debouncer.pending == _bounds(3.0)

        _FakeThreadTimer.created[0].callback()

    assert delivered == [_bounds(3.0)]
    assert debouncer.pending is None
    assert len(_FakeThreadTimer.created) == 1


def test_empty_tick_delivers_nothing() -> None:
    delivered: list[GraphBounds] = []

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = RelayoutDebouncer(delivered.append, execute_every_ms=16)
        debouncer(_bounds(1.0))
        debouncer.cancel()
        _FakeThreadTimer.created[0].callback()

    assert delivered == []


def test_flush_delivers_now_and_cancel_drops_pending() -> None:
    delivered: list[GraphBounds] = []

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = RelayoutDebouncer(delivered.append, execute_every_ms=50)
        debouncer(_bounds(1.0))
        debouncer(_bounds(2.0))
        debouncer.flush()
        assert delivered == [_bounds(2.0)]
        assert _FakeThreadTimer.created[0].cancelled

        debouncer(_bounds(3.0))
        debouncer.cancel()
        assert debouncer.pending is None
        assert _FakeThreadTimer.created[1].cancelled

    assert delivered == [_bounds(2.0)]


def test_callback_error_is_logged_and_next_tick_still_runs(caplog) -> None:
    delivered: list[GraphBounds] = []

    def _callback(bounds: GraphBounds) -> None:
        if not delivered:
            delivered.append(bounds)
            raise RuntimeError("boom")
        delivered.append(bounds)

    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = RelayoutDebouncer(_callback, execute_every_ms=1)
        with caplog.at_level(logging.ERROR, logger="funcgraph.debouncing"):
            debouncer(_bounds(1.0))
            _FakeThreadTimer.created[0].callback()
            debouncer(_bounds(2.0))
            assert len(_FakeThreadTimer.created) == 2
            _FakeThreadTimer.created[1].callback()

    assert delivered == [_bounds(1.0), _bounds(2.0)]
    assert "relayout callback failed" in caplog.text


def test_coalesced_count_is_logged_at_debug(caplog) -> None:
    with patch("funcgraph.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = RelayoutDebouncer(lambda _b: None, execute_every_ms=1)
        with caplog.at_level(logging.DEBUG, logger="funcgraph.debouncing"):
            debouncer(_bounds(1.0))
            debouncer(_bounds(2.0))
            _FakeThreadTimer.created[0].callback()

    assert "coalesced 1 bounds changes" in caplog.text


def test_debouncer_uses_running_event_loop_when_present() -> None:
    delivered: list[GraphBounds] = []
    fake_loop = _FakeAsyncLoop()

    with patch("funcgraph.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        debouncer = RelayoutDebouncer(delivered.append, execute_every_ms=1)
        debouncer(_bounds(1.0))
        debouncer(_bounds(2.0))
        assert len(fake_loop.handles) == 1
        fake_loop.handles[0].fire()

    assert delivered == [_bounds(2.0)]


def test_cadence_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RelayoutDebouncer(lambda _b: None, execute_every_ms=0)
