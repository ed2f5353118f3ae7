import hashlib
import logging
import uuid
from typing import Mapping
from sqlalchemy.ext.asyncio import AsyncSession
from skystore.core.errors import NotFoundError, ValidationError, wrap_error
from skystore.platform.events import EventDispatcher
from skystore.platform.ports.object_storage import ObjectStoragePort
from skystore.modules.assets import paths
from skystore.modules.assets.models import Asset
from skystore.modules.assets.repository import AssetRepository
from skystore.modules.assets.schemas import AssetIngestedEvent, AssetMetadataOut, IngestedAssetRef

log = logging.getLogger("assets.ingest")

ASSET_INGESTED = "asset_ingested"
DEFAULT_MIME_TYPE = "application/octet-stream"

MetadataInput = Mapping[str, str | None]

def accepted_metadata(metadata: MetadataInput | None) -> dict[str, str] | None:
    """All five fields or nothing: incomplete metadata is dropped, not rejected."""
    if not paths.metadata_is_complete(metadata):
        return None
    return {k: metadata[k] for k in paths.META_FIELDS}

def storage_path_for(asset_id: str, file_name: str, metadata: MetadataInput | None) -> str:
    return paths.derive_storage_path(asset_id, paths.split_extension(file_name), accepted_metadata(metadata))

class AssetService:
    def __init__(
        self,
        session: AsyncSession,
        storage: ObjectStoragePort,
        events: EventDispatcher,
        *,
        presign_expires_seconds: int = 86400,
    ):
        self.repo = AssetRepository(session)
        self.session = session
        self.storage = storage
        self.events = events
        self.presign_expires_seconds = presign_expires_seconds

    async def ingest(
        self,
        file_bytes: bytes,
        file_name: str,
        mime_type: str | None = None,
        metadata: MetadataInput | None = None,
    ) -> Asset:
        """Upload ``file_bytes``, record the asset and announce it.

        The object upload is the only side effect that needs undoing: if
        anything fails before the commit, the object is deleted again from a key
        recomputed from the call's inputs, and the first error is raised.
        """
        asset_id = str(uuid.uuid4())
        extension = paths.split_extension(file_name)
        filename = paths.display_basename(file_name)
        meta = accepted_metadata(metadata)
        if meta is None and metadata:
            missing = paths.missing_metadata_fields(metadata)
            if len(missing) < len(paths.META_FIELDS):
                # TODO: decide with API consumers whether partial metadata should be a 400 instead
                log.warning("Discarding partial metadata for %s, missing fields: %s", asset_id, ", ".join(missing))
        stored_path = paths.derive_storage_path(asset_id, extension, meta)
        content_type = mime_type or DEFAULT_MIME_TYPE

        log.info(
            "Starting asset ingestion: %s filename=%s size=%d type=%s classified=%s",
            asset_id, filename, len(file_bytes), content_type, meta is not None,
        )

        try:
            self.storage.put_bytes(stored_path, file_bytes, content_type)
        except Exception as e:
            log.error("Upload failed for %s at %s: %s", asset_id, stored_path, e)
            err = wrap_error(e, "Failed to upload asset", asset_id=asset_id)
            if err is e:
                raise
            raise err from e

        try:
            stored_url = self.storage.presign_download(stored_path, expires_seconds=self.presign_expires_seconds)
            content_hash = hashlib.sha256(file_bytes).hexdigest()
            await self.repo.create(
                id=asset_id,
                imported_path=file_name,
                imported_filename=filename,
                stored_path=stored_path,
                stored_url=stored_url,
                size_bytes=len(file_bytes),
                stored_filename=stored_path.rsplit("/", 1)[-1],
                extension=extension.lstrip(".").lower(),
                mime_type=content_type,
                content_hash=content_hash,
                meta=meta,
            )
            await self.session.commit()
        except Exception as e:
            log.error("Asset ingestion failed: %s filename=%s error=%s", asset_id, filename, e)
            await self._rollback()
            self._remove_upload(asset_id, file_name, metadata)
            err = wrap_error(e, "Failed to ingest asset", asset_id=asset_id)
            if err is e:
                raise
            raise err from e

        # committed from here on: the row references the object, so it stays
        try:
            asset = await self.repo.get(asset_id)
        except Exception as e:
            log.error("Reading back ingested asset failed: %s error=%s", asset_id, e)
            err = wrap_error(e, "Failed to load ingested asset", asset_id=asset_id)
            if err is e:
                raise
            raise err from e

        self._announce(asset)
        log.info("Asset ingestion completed successfully: %s", asset_id)
        return asset

    async def upsert_metadata(self, asset_id: str, metadata: MetadataInput) -> Asset:
        missing = paths.missing_metadata_fields(metadata)
        if missing:
            raise ValidationError(
                f"Missing required metadata fields: {', '.join(missing)}",
                details={"missing_fields": missing},
            )

        log.info("Upserting metadata for asset: %s", asset_id)
        try:
            if not await self.repo.exists(asset_id):
                raise NotFoundError("Asset not found", details={"asset_id": asset_id})
            await self.repo.upsert_meta(asset_id, {k: metadata[k] for k in paths.META_FIELDS})
            await self.session.commit()
            asset = await self.repo.get(asset_id)
        except Exception as e:
            await self._rollback()
            log.error("Metadata upsert failed: %s error=%s", asset_id, e)
            err = wrap_error(e, "Failed to upsert metadata", asset_id=asset_id)
            if err is e:
                raise
            raise err from e

        log.info("Metadata upserted successfully for asset: %s", asset_id)
        return asset

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except Exception:
            log.exception("Session rollback failed")

    def _remove_upload(self, asset_id: str, file_name: str, metadata: MetadataInput | None) -> None:
        # recomputed from the inputs, so a drift between the write path and
        # this one shows up as a leftover object instead of being hidden
        stored_path = storage_path_for(asset_id, file_name, metadata)
        try:
            self.storage.delete(stored_path)
            log.info("Cleaned up failed upload: %s", stored_path)
        except Exception:
            log.exception("Failed to clean up after failed asset ingestion: %s", stored_path)

    def _announce(self, asset: Asset) -> None:
        try:
            event = AssetIngestedEvent(
                asset=IngestedAssetRef(
                    id=asset.id,
                    filename=asset.imported_filename,
                    url=asset.stored_url,
                    extension=asset.extension,
                    size=asset.size_bytes,
                ),
                meta=AssetMetadataOut.model_validate(asset.meta) if asset.meta else None,
            )
            self.events.dispatch(ASSET_INGESTED, key=asset.id, value=event.model_dump(mode="json"))
        except Exception:
            log.exception("Emitting %s failed for %s", ASSET_INGESTED, asset.id)
