"""Simulated progress for a running generation stage."""

import asyncio
import contextlib
import random
from collections.abc import Callable
from types import TracebackType

from examgen_core.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TICK_INTERVAL = 0.5  # seconds
DEFAULT_MAX_INCREMENT = 10.0
DEFAULT_CAP = 95.0  # stays below 100 until the stage completes


class ProgressTicker:
    """Periodic task that nudges a progress estimate upwards.

    The estimate starts at 0 and grows by a random amount in
    ``[0, max_increment)`` every ``interval`` seconds, never passing ``cap``.
    The owner must call ``stop`` (or use ``async with``) when the stage
    ends; after ``stop`` returns no further updates are emitted.
    """

    def __init__(
        self,
        on_update: Callable[[float], None],
        interval: float = DEFAULT_TICK_INTERVAL,
        max_increment: float = DEFAULT_MAX_INCREMENT,
        cap: float = DEFAULT_CAP,
        rng: Callable[[], float] = random.random,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._on_update = on_update
        self.interval = interval
        self.max_increment = max_increment
        self.cap = cap
        self._rng = rng
        self.value = 0.0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Reset to 0 and begin ticking. Must be called inside an event loop."""
        if self.running:
            raise RuntimeError("Progress ticker already running")
        self.value = 0.0
        self._on_update(self.value)
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.value = min(self.cap, self.value + self._rng() * self.max_increment)
            self._on_update(self.value)

    async def stop(self) -> None:
        """Cancel the periodic task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> "ProgressTicker":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()
