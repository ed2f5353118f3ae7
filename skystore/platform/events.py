import asyncio
import logging
from skystore.platform.ports.event_bus import EventBusPort

log = logging.getLogger("event.dispatch")

class EventDispatcher:
    """Fire-and-forget publishing on top of an event bus.

    ``dispatch`` schedules the publish as a background task and returns at
    once. A failed publish is logged and dropped, it never reaches the
    caller. Pending tasks are kept referenced until they finish so they can
    be awaited with ``drain`` (shutdown, tests).
    """
    def __init__(self, bus: EventBusPort):
        self.bus = bus
        self._pending: set[asyncio.Task] = set()

    def dispatch(self, topic: str, key: str, value: dict, headers: dict | None = None) -> asyncio.Task:
        task = asyncio.create_task(self._publish(topic, key, value, headers))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _publish(self, topic: str, key: str, value: dict, headers: dict | None) -> bool:
        try:
            await self.bus.publish(topic=topic, key=key, value=value, headers=headers)
            return True
        except Exception:
            log.exception("Publish failed topic=%s key=%s", topic, key)
            return False

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
