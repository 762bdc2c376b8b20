"""
RequestDeduplicator - Shares one in-flight computation among concurrent callers.

When several requests miss the cache for the same region and key at the
same time, only the first runs the upstream computation; the others await
its result (or its exception).
"""

import asyncio
from typing import Any, Awaitable, Callable, Hashable, TypeVar

from loguru import logger

T = TypeVar("T")


class RequestDeduplicator:
    """
    Deduplicates concurrent async computations by key.

    Usage:
        dedup = RequestDeduplicator()

        employees = await dedup.dedupe(
            key=("employees", ""),
            request_fn=fetch_all_employees,
        )
    """

    def __init__(self, debug: bool = False):
        self._in_flight: dict[Hashable, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()
        self._debug = debug

    async def dedupe(
        self,
        key: Hashable,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute request_fn unless an identical request is already in flight.

        Args:
            key: Identifier for the computation
            request_fn: Async function to execute if no duplicate exists

        Returns:
            Result from request_fn (either fresh or from the in-flight request)
        """
        async with self._lock:
            if key in self._in_flight:
                self._log(f"DEDUPE: Waiting for in-flight request: {key}")
                task = self._in_flight[key]
            else:
                self._log(f"NEW: Starting request: {key}")
                task = asyncio.create_task(self._execute_and_cleanup(key, request_fn))
                self._in_flight[key] = task

        # Shield so one waiter being cancelled does not cancel the shared task
        return await asyncio.shield(task)

    async def _execute_and_cleanup(
        self,
        key: Hashable,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """Execute request and clean up when done."""
        try:
            return await request_fn()
        finally:
            async with self._lock:
                self._in_flight.pop(key, None)
                self._log(f"DONE: Request completed: {key}")

    async def cancel_all(self) -> int:
        """Cancel all in-flight requests."""
        async with self._lock:
            count = len(self._in_flight)
            for task in self._in_flight.values():
                task.cancel()
            self._in_flight.clear()
            if count:
                self._log(f"CANCEL_ALL: {count} requests cancelled")
            return count

    def get_in_flight_count(self) -> int:
        """Get number of in-flight requests."""
        return len(self._in_flight)

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[Deduplicator] {message}")
