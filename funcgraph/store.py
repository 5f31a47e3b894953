"""In-memory equation and viewport stores.

These are reference implementations of the state collaborators the engine
talks to. A UI shell can replace them with its own stores as long as it keeps
the same contract:

- :class:`EquationStore` owns the ordered equation list keyed by unique id.
- :class:`ViewportStore` owns the current :class:`GraphBounds` and is the
  single serialized writer for them. Degenerate bounds are refused, the last
  commit wins, and listeners only ever see complete, valid bounds.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Iterable, Optional, TypeVar

from .graph_types import Equation, GraphBounds, Point

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

T = TypeVar("T")
Listener = Callable[[T], None]


class _Listeners(Generic[T]):
    """Ordered listener registry; a failing listener does not stop the rest."""

    def __init__(self) -> None:
        self._listeners: list[Listener[T]] = []

    def add(self, listener: Listener[T]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self, value: T) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("store listener %r failed", listener)


class EquationStore:
    """Ordered list of equations keyed by unique id."""

    def __init__(self, equations: Iterable[Equation] = ()) -> None:
        self._equations: list[Equation] = []
        self._listeners: _Listeners[tuple[Equation, ...]] = _Listeners()
        self._lock = threading.Lock()
        # Held across mutate-then-notify so listeners see changes in order.
        self._notify_lock = threading.RLock()
        for equation in equations:
            self.add(equation)

    @property
    def equations(self) -> tuple[Equation, ...]:
        with self._lock:
            return tuple(self._equations)

    def __len__(self) -> int:
        return len(self._equations)

    def get(self, equation_id: str) -> Optional[Equation]:
        with self._lock:
            for equation in self._equations:
                if equation.id == equation_id:
                    return equation
        return None

    def require(self, equation_id: str) -> Equation:
        """Return ``equation_id`` or raise ``KeyError``."""
        equation = self.get(equation_id)
        if equation is None:
            raise KeyError(f"Unknown equation: {equation_id}")
        return equation

    def add(self, equation: Equation) -> None:
        with self._notify_lock:
            with self._lock:
                if any(eq.id == equation.id for eq in self._equations):
                    raise ValueError(f"Equation '{equation.id}' already exists")
                self._equations.append(equation)
                snapshot = tuple(self._equations)
            self._listeners.notify(snapshot)

    def remove(self, equation_id: str) -> None:
        """Remove ``equation_id``; unknown ids are ignored."""
        with self._notify_lock:
            with self._lock:
                before = len(self._equations)
                self._equations = [eq for eq in self._equations if eq.id != equation_id]
                if len(self._equations) == before:
                    return
                snapshot = tuple(self._equations)
            self._listeners.notify(snapshot)

    def update(self, equation: Equation) -> None:
        """Replace the equation with the same id in place; unknown ids are ignored."""
        with self._notify_lock:
            with self._lock:
                for index, current in enumerate(self._equations):
                    if current.id == equation.id:
                        if current == equation:
                            return
                        self._equations[index] = equation
                        break
                else:
                    logger.debug("update ignored for unknown equation %r", equation.id)
                    return
                snapshot = tuple(self._equations)
            self._listeners.notify(snapshot)

    def subscribe(self, listener: Listener[tuple[Equation, ...]]) -> Callable[[], None]:
        """Register ``listener`` for list changes; returns an unsubscribe callable."""
        return self._listeners.add(listener)


class ViewportStore:
    """Serialized owner of the current viewport bounds.

    Parameters
    ----------
    bounds : GraphBounds
        Initial bounds; must not be degenerate.
    """

    def __init__(self, bounds: GraphBounds) -> None:
        self._bounds = bounds.validate()
        self._zoom = 1.0
        self._pan = Point(0.0, 0.0)
        self._lock = threading.Lock()
        # Re-entrant so listeners may commit; held across commit-then-notify.
        self._notify_lock = threading.RLock()
        self._listeners: _Listeners[GraphBounds] = _Listeners()

    @property
    def bounds(self) -> GraphBounds:
        return self._bounds

    @property
    def zoom(self) -> float:
        """Return the cumulative zoom factor relative to the initial bounds."""
        return self._zoom

    @property
    def pan(self) -> Point:
        """Return the cumulative data-space offset of the view centre."""
        return self._pan

    def commit(self, bounds: GraphBounds) -> bool:
        """Replace the bounds; refuse degenerate ones.

        Returns
        -------
        bool
            ``True`` when the bounds changed and listeners were notified.
        """
        if bounds.is_degenerate:
            logger.warning("refusing degenerate viewport bounds %r", bounds.as_tuple())
            return False
        with self._notify_lock:
            with self._lock:
                current = self._bounds
                if bounds == current:
                    return False
                self._zoom *= bounds.x_range / current.x_range
                self._pan = Point(
                    self._pan.x + (bounds.x_min + bounds.x_max - current.x_min - current.x_max) / 2.0,
                    self._pan.y + (bounds.y_min + bounds.y_max - current.y_min - current.y_max) / 2.0,
                )
                self._bounds = bounds
            self._listeners.notify(bounds)
        return True

    def subscribe(self, listener: Listener[GraphBounds]) -> Callable[[], None]:
        """Register ``listener`` for committed bounds; returns an unsubscribe callable."""
        return self._listeners.add(listener)


__all__ = ["EquationStore", "ViewportStore"]
