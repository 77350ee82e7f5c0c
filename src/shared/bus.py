"""In-process publish/subscribe event bus.

Handlers run synchronously, in subscription order, on the publisher's call
stack. A handler that has to wait on I/O returns an awaitable; the bus
schedules it on the running loop and moves on, so ``publish`` never blocks
on downstream work. Failures are isolated per handler and logged; nothing a
handler does can reach the publisher.

Delivery is at-most-once per currently registered handler. There is no
persistence, no replay and no cross-process fan-out.
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Handler = Callable[[Any], Any]


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


@dataclass(frozen=True)
class Subscription:
    """Handle returned by ``EventBus.subscribe``."""

    bus: "EventBus"
    topic: str
    handler: Handler

    def unsubscribe(self) -> None:
        self.bus.unsubscribe(self.topic, self.handler)


class EventBus:
    """Named-topic pub/sub registry. Construct one per process (or per test)."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._pending: set[asyncio.Future] = set()

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        handlers = self._handlers.setdefault(topic, [])
        if handler not in handlers:
            handlers.append(handler)
        return Subscription(self, topic, handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        handlers = self._handlers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handlers_for(self, topic: str) -> list[Handler]:
        return list(self._handlers.get(topic, ()))

    def publish(self, topic: str, payload: Any = None) -> None:
        # Snapshot: handlers (un)subscribing during delivery affect the next publish only
        for handler in self.handlers_for(topic):
            try:
                result = handler(payload)
            except Exception:
                logger.exception("Event handler failed", topic=topic, handler=_handler_name(handler))
                continue

            if inspect.isawaitable(result):
                self._schedule(topic, handler, result)

    @property
    def pending(self) -> int:
        """Number of handler coroutines still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every scheduled handler coroutine has finished.

        Handlers may publish again while running, so loop until nothing is left.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _schedule(self, topic: str, handler: Handler, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop: the coroutine can never run
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.error(
                "Async event handler dropped, no running event loop",
                topic=topic,
                handler=_handler_name(handler),
            )
            return

        future = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(future)
        future.add_done_callback(partial(self._on_handler_done, topic, handler))

    def _on_handler_done(self, topic: str, handler: Handler, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            logger.warning("Async event handler cancelled", topic=topic, handler=_handler_name(handler))
            return

        exc = future.exception()
        if exc is not None:
            logger.error(
                "Async event handler failed",
                topic=topic,
                handler=_handler_name(handler),
                exc_info=exc,
            )
