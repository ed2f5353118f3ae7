"""
Error family shared by the workflow, the gateways and the HTTP layer.

Every failure that leaves the service is one of a fixed set of kinds, each
with an HTTP status and a structured ``details`` payload. The HTTP layer
renders them as ``{success: false, error, message}`` envelopes.
"""
from typing import Any


class AssetError(Exception):
    kind: str = "unknown"
    default_status: int = 500

    def __init__(self, message: str, status_code: int | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status
        self.details = details or {}

    def to_response(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status_code}, message={self.message!r})"


class ValidationError(AssetError):
    kind = "validation"
    default_status = 400


class NotFoundError(AssetError):
    kind = "not_found"
    default_status = 404


class StorageError(AssetError):
    kind = "storage"
    default_status = 500


class ObjectNotFoundError(StorageError):
    default_status = 404


class UnknownError(AssetError):
    kind = "unknown"
    default_status = 500


def wrap_error(exc: BaseException, message: str, **details: Any) -> AssetError:
    """Return ``exc`` untouched if it is already typed, otherwise wrap it.

    Store-level exceptions (object store, database, broker) become a
    ``StorageError``; anything else is an ``UnknownError``.
    """
    if isinstance(exc, AssetError):
        return exc
    # imported here to keep this module free of driver imports at load time
    from botocore.exceptions import BotoCoreError, ClientError
    from sqlalchemy.exc import SQLAlchemyError
    from redis.exceptions import RedisError

    details.setdefault("cause", exc.__class__.__name__)
    if isinstance(exc, (BotoCoreError, ClientError, SQLAlchemyError, RedisError, OSError)):
        return StorageError(message, details=details)
    return UnknownError(message, details=details)
