"""Single-flight coalescing of concurrent async work.

Concurrent callers asking for the same key while a computation is running
attach to the same shared task instead of starting their own. Each caller
is an observer of that task:

- a caller that is cancelled only detaches itself
- when the last observer detaches before completion, the shared task is
  cancelled
- once the task finishes, the key is forgotten so the next call starts a
  fresh computation

The flight table is the only shared mutable state; it is guarded by a lock
that is held only around check-and-insert and bookkeeping, never across an
await.
"""

import asyncio
import threading
from typing import Any, Awaitable, Callable, Dict, Hashable

from repo_icons.logging import get_logger

logger = get_logger(__name__, component="singleflight")


class _Flight:
    __slots__ = ("task", "observers")

    def __init__(self, task: "asyncio.Task[Any]") -> None:
        self.task = task
        self.observers = 0


class SingleFlight:
    """Group of keyed in-flight computations."""

    def __init__(self, name: str = "singleflight") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._flights: Dict[Hashable, _Flight] = {}

    def in_flight(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._flights

    def observers(self, key: Hashable) -> int:
        with self._lock:
            flight = self._flights.get(key)
            return flight.observers if flight else 0

    async def do(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``factory()`` for ``key`` or join the run already in progress.

        Args:
            key: Identity of the computation
            factory: Zero-argument callable returning an awaitable; only
                called when no flight for ``key`` exists

        Returns:
            The shared computation's result; its exception propagates to
            every observer.
        """
        with self._lock:
            flight = self._flights.get(key)
            joined = flight is not None
            if flight is None:
                task = asyncio.ensure_future(factory())
                flight = _Flight(task)
                self._flights[key] = flight
                task.add_done_callback(lambda t, k=key, f=flight: self._forget(k, f))
            flight.observers += 1

        if joined:
            logger.debug(
                "Joined in-flight computation",
                extra={"event": f"{self.name}.joined", "key": str(key)},
            )

        try:
            return await asyncio.shield(flight.task)
        finally:
            with self._lock:
                flight.observers -= 1
                abandoned = flight.observers == 0 and not flight.task.done()
            if abandoned:
                logger.debug(
                    "Last observer detached, cancelling shared computation",
                    extra={"event": f"{self.name}.abandoned", "key": str(key)},
                )
                flight.task.cancel()

    def _forget(self, key: Hashable, flight: _Flight) -> None:
        with self._lock:
            if self._flights.get(key) is flight:
                del self._flights[key]
        # Mark the exception as retrieved when every observer has already left.
        if not flight.task.cancelled():
            flight.task.exception()


__all__ = ["SingleFlight"]
