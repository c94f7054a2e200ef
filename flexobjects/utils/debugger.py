"""Render debugger: named timers and collected exceptions.

Rendering keeps going when a cache entry is broken or a layout is missing;
those problems are recorded here and logged instead of being raised.
"""

from __future__ import annotations

import logging
import time
from typing import Any

logger = logging.getLogger(__name__)


class Debugger:
    """Collects timings and recoverable exceptions for one application."""

    def __init__(self, enabled: bool = False) -> None:
        self._enabled = enabled
        self._running: dict[str, tuple[str, float]] = {}
        self._timers: list[dict[str, Any]] = []
        self._exceptions: list[BaseException] = []

    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def start_timer(self, name: str, description: str | None = None) -> None:
        """Start a named timer. Restarting a running timer resets it."""
        self._running[name] = (description or name, time.perf_counter())

    def stop_timer(self, name: str) -> float | None:
        """Stop a named timer and return the elapsed seconds.

        Returns:
            Elapsed time in seconds, or ``None`` if the timer was never started.
        """
        started = self._running.pop(name, None)
        if started is None:
            logger.debug("Timer %s stopped without being started", name)
            return None

        description, start = started
        elapsed = time.perf_counter() - start
        self._timers.append({"name": name, "description": description, "elapsed": elapsed})
        logger.debug("%s took %.2f ms", description, elapsed * 1000)
        return elapsed

    def add_exception(self, exc: BaseException) -> None:
        self._exceptions.append(exc)
        logger.warning("Recovered from %s: %s", type(exc).__name__, exc)

    def get_exceptions(self) -> list[BaseException]:
        return list(self._exceptions)

    def get_timers(self) -> list[dict[str, Any]]:
        return list(self._timers)

    def reset(self) -> None:
        self._running.clear()
        self._timers.clear()
        self._exceptions.clear()


__all__ = ["Debugger"]
