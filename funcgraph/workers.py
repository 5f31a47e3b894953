"""Background analysis with supersedable requests.

Heavy scans (all-pairs intersections, extremum analysis) can run off the
interactive thread. Each request belongs to a *slot*, ``(kind, equation_ids)``.
Submitting a new request to a slot supersedes the previous one: the older
future is cancelled if it has not started, and its result is discarded if it
arrives anyway. Failures are logged and dropped; nothing is retried and
nothing is raised to the submitter.

Examples
--------
>>> worker = AnalysisWorker(max_workers=1)  # doctest: +SKIP
>>> req = AnalysisRequest(AnalysisKind.EXTREMA, ("f1",), ("sin(x)",), (-20.0, 20.0), 1000)  # doctest: +SKIP
>>> worker.submit(req, compute, on_result)  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

R = TypeVar("R")


class AnalysisKind(str, Enum):
    INTERSECTIONS = "intersections"
    EXTREMA = "extrema"


@dataclass(frozen=True)
class AnalysisRequest:
    """Full identity of one analysis job."""

    kind: AnalysisKind
    equation_ids: tuple[str, ...]
    expressions: tuple[str, ...]
    domain: tuple[float, float]
    sample_count: int

    @property
    def slot(self) -> tuple[AnalysisKind, tuple[str, ...]]:
        """Return the key under which newer requests supersede older ones."""
        return (self.kind, self.equation_ids)


class AnalysisWorker:
    """Run analysis callables on a thread pool, keeping only the newest per slot.

    Parameters
    ----------
    max_workers : int, default=2
        Pool size when no ``executor`` is given.
    executor : concurrent.futures.Executor, optional
        Externally owned executor. It is not shut down by :meth:`shutdown`.
    """

    def __init__(self, max_workers: int = 2, executor: Optional[Executor] = None) -> None:
        if executor is None:
            if max_workers < 1:
                raise ValueError("max_workers must be >= 1")
            executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="funcgraph")
            self._owns_executor = True
        else:
            self._owns_executor = False
        self._executor = executor
        self._lock = threading.Lock()
        self._generation: dict[tuple[AnalysisKind, tuple[str, ...]], int] = {}
        self._current: dict[tuple[AnalysisKind, tuple[str, ...]], tuple[AnalysisRequest, Future]] = {}
        self._closed = False

    def __enter__(self) -> "AnalysisWorker":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()

    def submit(
        self,
        request: AnalysisRequest,
        compute: Callable[[], R],
        on_result: Callable[[AnalysisRequest, R], None],
    ) -> Optional[Future]:
        """Schedule ``compute`` for ``request``, superseding the slot's previous job.

        ``on_result`` runs on the worker thread, and only if ``request`` is
        still the newest for its slot when the result arrives. Returns ``None``
        once the worker has been shut down.
        """
        slot = request.slot
        with self._lock:
            if self._closed:
                logger.debug("worker closed; dropping %r", request)
                return None
            generation = self._generation.get(slot, 0) + 1
            self._generation[slot] = generation
            previous = self._current.get(slot)
            if previous is not None and previous[1].cancel():
                logger.debug("cancelled superseded request %r", previous[0])
            future = self._executor.submit(compute)
            self._current[slot] = (request, future)

        future.add_done_callback(
            lambda fut: self._deliver(request, generation, fut, on_result)
        )
        return future

    def is_current(self, request: AnalysisRequest) -> bool:
        """Return whether ``request`` is the newest request in flight for its slot."""
        with self._lock:
            current = self._current.get(request.slot)
            return current is not None and current[0] == request

    def cancel(self, kind: AnalysisKind, equation_ids: tuple[str, ...]) -> None:
        """Obsolete whatever is in flight for the slot."""
        slot = (kind, tuple(equation_ids))
        with self._lock:
            self._generation[slot] = self._generation.get(slot, 0) + 1
            current = self._current.pop(slot, None)
        if current is not None:
            current[1].cancel()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            pending = list(self._current.values())
            self._current.clear()
        for _, future in pending:
            future.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _deliver(
        self,
        request: AnalysisRequest,
        generation: int,
        future: Future,
        on_result: Callable[[AnalysisRequest, Any], None],
    ) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("analysis %r failed", request, exc_info=exc)
            return
        with self._lock:
            if self._generation.get(request.slot) != generation:
                logger.debug("discarding stale result for %r", request)
                return
            current = self._current.get(request.slot)
            if current is not None and current[1] is future:
                del self._current[request.slot]
        try:
            on_result(request, future.result())
        except Exception:
            logger.exception("result callback for %r failed", request)


__all__ = ["AnalysisKind", "AnalysisRequest", "AnalysisWorker"]
