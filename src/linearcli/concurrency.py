"""Concurrent fan-out of independent lookups.

Resolutions that only depend on the batch result (cycle and state both need
the resolved team) are run side by side in a thread pool and awaited
together. The first failure cancels whatever has not started yet and is
re-raised; partial results are discarded.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from .logging import get_logger

T = TypeVar('T')


class ConcurrencyConfig:
    """Configuration for concurrency settings."""

    def __init__(self, enabled: bool = True, max_workers: int = 4):
        self.enabled = enabled
        self.max_workers = max(1, max_workers)


class FanOut:
    """Runs named zero-argument callables concurrently."""

    def __init__(self, config: ConcurrencyConfig | None = None):
        self.config = config or ConcurrencyConfig()
        self.logger = get_logger()

    def run(self, tasks: Mapping[str, Callable[[], T]]) -> dict[str, T]:
        if not tasks:
            return {}
        if not self.config.enabled or len(tasks) <= 1:
            # Fallback to sequential processing
            return {name: task() for name, task in tasks.items()}

        start_time = time.perf_counter()
        results = asyncio.run(self._run_async(tasks))
        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.log_performance("fan_out", duration_ms, task_count=len(tasks))
        return results

    async def _run_async(self, tasks: Mapping[str, Callable[[], T]]) -> dict[str, T]:
        loop = asyncio.get_running_loop()
        workers = min(self.config.max_workers, len(tasks))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: dict[asyncio.Future[Any], str] = {
                loop.run_in_executor(executor, task): name for name, task in tasks.items()
            }
            pending: set[asyncio.Future[Any]] = set(futures)
            finished: dict[str, T] = {}
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_EXCEPTION
                )
                for future in done:
                    error = future.exception()
                    if error is not None:
                        for other in pending:
                            other.cancel()
                        self.logger.debug(
                            f"fan-out task {futures[future]!r} failed, cancelled {len(pending)}",
                            operation="fan_out",
                        )
                        raise error
                    finished[futures[future]] = future.result()
        return {name: finished[name] for name in tasks}


def fan_out(
    tasks: Mapping[str, Callable[[], T]], config: ConcurrencyConfig | None = None
) -> dict[str, T]:
    """Convenience wrapper around :class:`FanOut`."""
    return FanOut(config).run(tasks)


__all__ = ['ConcurrencyConfig', 'FanOut', 'fan_out']
