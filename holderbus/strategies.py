"""
holderbus — Execution Strategies
==================================
An execution strategy decides when and where scheduled work runs.

Contract: submit(work) accepts a zero-argument callable. That is all the
bus requires. Built-in strategies:

    synchronous    runs work inline on the caller's thread
    single_worker  runs work FIFO on one background thread, no overlap
    queued         holds work until run_pending() is called

Custom strategies (e.g. handing work to a UI loop) are any object with
a submit(work) method.
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from threading import Lock
from typing import Callable, Optional, Protocol, runtime_checkable

from holderbus.errors import UnknownStrategyError

logger = logging.getLogger("holderbus.strategies")

Work = Callable[[], None]


@runtime_checkable
class ExecutionStrategy(Protocol):
    """Accepts a unit of work and decides when/where it runs."""

    def submit(self, work: Work) -> None:
        ...


def _run_isolated(work: Work) -> None:
    try:
        work()
    except Exception as exc:
        logger.error(
            f"Scheduled work {getattr(work, '__qualname__', work)!s} "
            f"failed: {exc}",
            exc_info=True,
        )


# ══════════════════════════════════════════════════════════════
# BUILT-IN STRATEGIES
# ══════════════════════════════════════════════════════════════

class SynchronousStrategy:
    """Runs work immediately on the submitting thread."""

    name = "synchronous"

    def submit(self, work: Work) -> None:
        _run_isolated(work)

    def __repr__(self) -> str:
        return "SynchronousStrategy()"


class SingleWorkerStrategy:
    """
    Serializes all submitted work on one background thread.

    Work submitted earlier starts before work submitted later, and two
    units never overlap. join() must not be called from the worker
    thread itself.
    """

    name = "single_worker"

    def __init__(self, thread_name_prefix: str = "holderbus-worker") -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=thread_name_prefix
        )

    def submit(self, work: Work) -> None:
        self._executor.submit(_run_isolated, work)

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until all work submitted before this call has run.

        Returns:
            False if the timeout expired first, True otherwise.
        """
        marker = self._executor.submit(lambda: None)
        try:
            marker.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __repr__(self) -> str:
        return "SingleWorkerStrategy()"


class QueuedStrategy:
    """
    Defers work until the owner drains the queue.

    run_pending() executes queued work in submission order, including
    work that gets queued while draining.
    """

    name = "queued"

    def __init__(self) -> None:
        self._queue: deque[Work] = deque()
        self._lock = Lock()

    def submit(self, work: Work) -> None:
        with self._lock:
            self._queue.append(work)

    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def run_pending(self) -> int:
        """Run queued work until the queue is empty. Returns units run."""
        count = 0
        while True:
            with self._lock:
                if not self._queue:
                    return count
                work = self._queue.popleft()
            _run_isolated(work)
            count += 1

    def __repr__(self) -> str:
        return f"QueuedStrategy(pending={self.pending()})"


# ══════════════════════════════════════════════════════════════
# LOOKUP
# ══════════════════════════════════════════════════════════════

BUILTIN_STRATEGIES: dict[str, type] = {
    SynchronousStrategy.name: SynchronousStrategy,
    SingleWorkerStrategy.name: SingleWorkerStrategy,
    QueuedStrategy.name: QueuedStrategy,
}


def strategy_from_name(name: str) -> ExecutionStrategy:
    """
    Build a new built-in strategy by name.

    Raises:
        UnknownStrategyError: name is not a built-in strategy.
    """
    factory = BUILTIN_STRATEGIES.get(name)
    if factory is None:
        raise UnknownStrategyError(name, tuple(BUILTIN_STRATEGIES))
    return factory()
