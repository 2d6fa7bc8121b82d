"""
Notification service

Events go out to whatever display layer subscribed. Delivery is best-effort:
a listener that raises is logged and skipped, and async listeners are
scheduled rather than awaited so the engine never waits on a display.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Callable, List, Set

from lockedin.models import NotificationKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationKind
    message: str

    def to_dict(self) -> dict:
        return {'kind': self.kind.value, 'message': self.message}


Listener = Callable[[NotificationEvent], object]


class NotificationService:
    """Fan-out of engine events to subscribed listeners"""

    def __init__(self):
        self._listeners: List[Listener] = []
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, kind: NotificationKind, message: str) -> NotificationEvent:
        event = NotificationEvent(kind, message)
        logger.info(f"🔔 [{kind.value}] {message}")

        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception as e:
                logger.error(f"❌ Notification listener failed: {e}")

        return event

    def _schedule(self, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("⚠️ No running event loop, async notification dropped")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        async def deliver():
            try:
                await awaitable
            except Exception as e:
                logger.error(f"❌ Notification listener failed: {e}")

        task = loop.create_task(deliver())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for scheduled async deliveries"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
