"""A thread pool accepting jobs with any arguments."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

_log = logging.getLogger(__name__)


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        _log.error("Background job failed: %s", exc, exc_info=exc)


class VariadicThreadPool:
    """Runs submitted callables on a fixed number of worker threads."""

    def __init__(self, n_threads: int) -> None:
        if n_threads < 1:
            raise ValueError("A thread pool needs at least one thread")
        self._executor = ThreadPoolExecutor(max_workers=n_threads)

    def post(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Submit a job and return a future for its result."""
        return self._executor.submit(func, *args, **kwargs)

    def post_no_future(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """Submit a job whose result is not wanted; failures are logged."""
        self._executor.submit(func, *args, **kwargs).add_done_callback(_log_failure)

    def join(self) -> None:
        """Wait for all submitted jobs; the pool accepts no jobs afterwards."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> VariadicThreadPool:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.join()