"""Fixed-interval polling for views that must also see changes made by the
other party (a different process in a real deployment)."""

import asyncio
import contextlib

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class Poller:
    def __init__(self, callback, interval: float = DEFAULT_POLL_INTERVAL):
        self.callback = callback
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.callback()
            except Exception:
                logger.exception("Poll refresh failed", callback=getattr(self.callback, "__qualname__", None))
