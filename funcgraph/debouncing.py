"""Coalesce bursts of viewport bounds changes into periodic recomputations.

A wheel spin or a drag emits many bounds changes per frame. Only the newest
bounds matter for the next frame, so :class:`RelayoutDebouncer` keeps that
one value and hands it to its callback once per tick. Ticks are scheduled on
the running :mod:`asyncio` loop when there is one, otherwise on a daemon
:class:`threading.Timer`.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from .graph_types import GraphBounds

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

BoundsCallback = Callable[[GraphBounds], None]


class RelayoutDebouncer:
    """Deliver the newest bounds at most once per ``execute_every_ms``.

    Parameters
    ----------
    callback:
        Called with the newest bounds on each tick that has work.
    execute_every_ms:
        Tick cadence in milliseconds.
    """

    def __init__(self, callback: BoundsCallback, *, execute_every_ms: int) -> None:
        if execute_every_ms <= 0:
            raise ValueError("execute_every_ms must be > 0")
        self._callback = callback
        self._execute_every_s = execute_every_ms / 1000.0

        self._pending: Optional[GraphBounds] = None
        self._coalesced = 0
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None

    @property
    def pending(self) -> Optional[GraphBounds]:
        """Bounds waiting for the next tick, or ``None``."""
        with self._lock:
            return self._pending

    def __call__(self, bounds: GraphBounds) -> None:
        with self._lock:
            if self._pending is not None:
                self._coalesced += 1
            self._pending = bounds
            if self._timer is None:
                self._schedule_locked()

    def _schedule_locked(self) -> None:
        delay_s = self._execute_every_s
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(delay_s, self._on_tick)
            timer.daemon = True
            self._timer = timer
            timer.start()
            return

        self._timer = loop.call_later(delay_s, self._on_tick)

    def _take_locked(self) -> Optional[GraphBounds]:
        bounds, self._pending = self._pending, None
        if bounds is not None and self._coalesced:
            logger.debug("coalesced %d bounds changes into %s", self._coalesced, bounds)
        self._coalesced = 0
        return bounds

    def _on_tick(self) -> None:
        with self._lock:
            self._timer = None
            bounds = self._take_locked()
        if bounds is not None:
            self._deliver(bounds)

    def _deliver(self, bounds: GraphBounds) -> None:
        try:
            self._callback(bounds)
        except Exception:
            logger.exception("relayout callback failed for %s", bounds)

    def flush(self) -> None:
        """Deliver the pending bounds now instead of on the next tick."""
        with self._lock:
            self._cancel_timer_locked()
            bounds = self._take_locked()
        if bounds is not None:
            self._deliver(bounds)

    def cancel(self) -> None:
        """Drop the pending bounds without delivering them."""
        with self._lock:
            self._cancel_timer_locked()
            self._pending = None
            self._coalesced = 0

    def _cancel_timer_locked(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()


__all__ = ["RelayoutDebouncer"]
