"""Timing helpers, per-call timeouts and logging setup."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, TypeVar

from docqa_agent.errors import ToolFailure

T = TypeVar("T")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install a root handler once; later calls only adjust the level."""
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger().setLevel(level)


class Timer:
    """Simple context timer used around tool calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def run_with_timeout(
    name: str,
    func: Callable[..., T],
    timeout_seconds: float,
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run a blocking external call with a deadline.

    Any error, including the deadline passing, is raised as `ToolFailure`.
    A call that overruns is abandoned: the worker thread is left to finish
    on its own and its result is discarded.
    """

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"docqa-{name}")
    try:
        future = executor.submit(func, *args, **kwargs)
        done, _ = wait([future], timeout=timeout_seconds)
        if future not in done:
            future.cancel()
            raise ToolFailure(name, f"timed out after {timeout_seconds:g}s")
        try:
            return future.result()
        except ToolFailure:
            raise
        except Exception as exc:
            raise ToolFailure(name, f"{type(exc).__name__}: {exc}") from exc
    finally:
        executor.shutdown(wait=False)
