from datetime import datetime
from pydantic import BaseModel

class AssetMetadataIn(BaseModel):
    # All five are required by the upsert; they are optional here so that the
    # service can report every missing field at once instead of the first one.
    asset_type: str | None = None
    asset_class: str | None = None
    asset_location_name: str | None = None
    asset_camera: str | None = None
    asset_date_label: str | None = None

class AssetMetadataOut(BaseModel):
    id: str
    asset_id: str
    asset_type: str
    asset_class: str
    asset_location_name: str
    asset_camera: str
    asset_date_label: str

    class Config:
        from_attributes = True

class AssetOut(BaseModel):
    id: str
    imported_path: str
    imported_filename: str
    stored_path: str
    stored_url: str
    size_bytes: int
    stored_filename: str
    extension: str
    mime_type: str
    content_hash: str | None
    uploaded_at: datetime
    meta: AssetMetadataOut | None = None

    class Config:
        from_attributes = True

class AssetAccessIn(BaseModel):
    user_id: str

class IngestedAssetRef(BaseModel):
    id: str
    filename: str
    url: str
    extension: str
    size: int

class AssetIngestedEvent(BaseModel):
    asset: IngestedAssetRef
    meta: AssetMetadataOut | None = None
