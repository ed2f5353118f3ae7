from typing import Protocol, runtime_checkable

@runtime_checkable
class ObjectStoragePort(Protocol):
    def ensure_bucket(self) -> None: ...
    def put_bytes(self, key: str, data: bytes, content_type: str) -> None: ...
    def get_bytes(self, key: str) -> bytes: ...
    def exists(self, key: str) -> bool: ...
    def delete(self, key: str) -> None: ...
    def presign_download(self, key: str, expires_seconds: int = 86400) -> str: ...
