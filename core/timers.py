from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Anything that can run a callback periodically; textual.App fits."""

    def set_interval(self, interval: float, callback: Callable[[], Any]) -> Any:
        ...


class PeriodicTask:
    """A restartable periodic callback.

    start() never creates a second interval; stop() is safe to repeat.
    """

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], Any], name: str = ""):
        self.scheduler = scheduler
        self.interval = interval
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "task")
        self._handle: Optional[Any] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        self._handle = self.scheduler.set_interval(self.interval, self.callback)
        logger.debug(f"Started {self.name} every {self.interval}s")

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.stop()
            self._handle = None
            logger.debug(f"Stopped {self.name}")
