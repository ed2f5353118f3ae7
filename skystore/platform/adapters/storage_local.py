import os
from urllib.parse import quote
from skystore.platform.ports.object_storage import ObjectStoragePort
from skystore.core.config import settings
from skystore.core.errors import ObjectNotFoundError

class LocalFilesystemStorage(ObjectStoragePort):
    def __init__(self, root: str | None = None):
        self.root = os.path.abspath(root or settings.LOCAL_STORAGE_ROOT)

    def _path(self, key: str) -> str:
        safe = key.replace("..", "").strip("/")
        return os.path.join(self.root, safe)

    def ensure_bucket(self) -> None:
        os.makedirs(self.root, exist_ok=True)

    def presign_download(self, key: str, expires_seconds: int = 86400) -> str:
        # For local dev, expose a static-like path; in real setups, serve via nginx or an API proxy.
        path = self._path(key)
        return f"file://{quote(path)}"

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    def get_bytes(self, key: str) -> bytes:
        path = self._path(key)
        if not os.path.exists(path):
            raise ObjectNotFoundError(f"Object not found: {key}", details={"key": key})
        with open(path, "rb") as f:
            return f.read()

    def exists(self, key: str) -> bool:
        return os.path.isfile(self._path(key))

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
