import json
import logging
from redis.asyncio import from_url as redis_from_url
from skystore.platform.ports.event_bus import EventBusPort
from skystore.core.config import Settings, settings as default_settings

log = logging.getLogger("bus.redis")

class RedisEventBus(EventBusPort):
    """Publishes events on a Redis pub/sub channel named after the topic.

    Delivery is at-most-once: subscribers that are not connected when the
    message is published never see it.
    """
    def __init__(self, settings: Settings | None = None, client=None):
        settings = settings or default_settings
        if client is None:
            if not settings.REDIS_URL:
                raise RuntimeError("REDIS_URL not configured")
            client = redis_from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            )
        self.redis = client

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        receivers = await self.redis.publish(topic, json.dumps(value, default=str))
        log.debug(f"[REDIS BUS] PUBLISH channel={topic} key={key} receivers={receivers}")

    async def close(self) -> None:
        await self.redis.aclose()
