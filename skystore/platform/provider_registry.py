import logging
from skystore.core.config import Settings
from skystore.platform.ports.object_storage import ObjectStoragePort
from skystore.platform.adapters.storage_local import LocalFilesystemStorage
from skystore.platform.adapters.storage_s3 import S3Storage
from skystore.platform.ports.event_bus import EventBusPort
from skystore.platform.adapters.bus_noop import NoopEventBus
from skystore.platform.adapters.bus_redis import RedisEventBus
from skystore.platform.events import EventDispatcher

log = logging.getLogger("providers")

class ProviderRegistry:
    """Holds the one instance of each gateway for the process.

    Built once at startup and handed to request handlers through
    ``app.state``; tests build one from fakes.
    """
    def __init__(
        self,
        settings: Settings,
        *,
        object_storage: ObjectStoragePort | None = None,
        event_bus: EventBusPort | None = None,
    ):
        self.settings = settings
        self._object_storage = object_storage
        self._event_bus = event_bus
        self._events: EventDispatcher | None = None

    def object_storage(self) -> ObjectStoragePort:
        if self._object_storage is None:
            if self.settings.OBJECT_STORAGE_PROVIDER == "s3":
                self._object_storage = S3Storage(self.settings)
            else:
                self._object_storage = LocalFilesystemStorage(self.settings.LOCAL_STORAGE_ROOT)
        return self._object_storage

    def event_bus(self) -> EventBusPort:
        if self._event_bus is None:
            prov = (self.settings.EVENT_BUS_PROVIDER or "noop").lower()
            if prov == "redis":
                self._event_bus = RedisEventBus(self.settings)
            else:
                self._event_bus = NoopEventBus()
        return self._event_bus

    def events(self) -> EventDispatcher:
        if self._events is None:
            self._events = EventDispatcher(self.event_bus())
        return self._events

    def startup(self) -> None:
        storage = self.object_storage()
        storage.ensure_bucket()
        log.info("Providers ready storage=%s bus=%s", storage.__class__.__name__, self.event_bus().__class__.__name__)

    async def shutdown(self) -> None:
        if self._events is not None:
            await self._events.drain()
        if self._event_bus is not None:
            await self._event_bus.close()
