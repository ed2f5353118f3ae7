from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from skystore.core.errors import ValidationError
from skystore.core.responses import ok, fail, not_implemented
from skystore.modules.assets.schemas import AssetMetadataIn, AssetOut, AssetAccessIn
from skystore.modules.assets.service import AssetService

router = APIRouter()

async def get_session(request: Request):
    async with request.app.state.session_factory() as session:
        yield session

def svc(request: Request, session: AsyncSession = Depends(get_session)) -> AssetService:
    providers = request.app.state.providers
    return AssetService(
        session,
        providers.object_storage(),
        providers.events(),
        presign_expires_seconds=providers.settings.PRESIGN_EXPIRES_SECONDS,
    )

@router.post("/ingest")
async def ingest_asset(
    request: Request,
    file: UploadFile | None = File(default=None),
    asset_type: str | None = Form(default=None),
    asset_class: str | None = Form(default=None),
    asset_location_name: str | None = Form(default=None),
    asset_camera: str | None = Form(default=None),
    asset_date_label: str | None = Form(default=None),
    service: AssetService = Depends(svc),
):
    if file is None or not file.filename:
        return fail("No file provided or invalid file", status_code=400)

    max_bytes = request.app.state.providers.settings.MAX_UPLOAD_BYTES
    if file.size is not None and file.size > max_bytes:
        raise ValidationError("File too large", status_code=413, details={"max_bytes": max_bytes})
    data = await file.read()
    if len(data) > max_bytes:
        raise ValidationError("File too large", status_code=413, details={"max_bytes": max_bytes})

    metadata = {
        "asset_type": asset_type,
        "asset_class": asset_class,
        "asset_location_name": asset_location_name,
        "asset_camera": asset_camera,
        "asset_date_label": asset_date_label,
    }
    asset = await service.ingest(data, file.filename, file.content_type, metadata)
    return ok(AssetOut.model_validate(asset).model_dump(mode="json"), "Asset ingested")

@router.post("/{asset_id}/metadata")
async def upsert_metadata(
    asset_id: str,
    payload: AssetMetadataIn,
    service: AssetService = Depends(svc),
):
    asset = await service.upsert_metadata(asset_id, payload.model_dump())
    return ok(AssetOut.model_validate(asset).model_dump(mode="json"), "Metadata upserted")

# ---- Declared, not implemented ----

@router.get("/{asset_id}")
async def get_asset(asset_id: str):
    return not_implemented("Asset retrieval endpoint - Not yet implemented")

@router.get("")
async def list_assets():
    return not_implemented("Asset listing endpoint - Not yet implemented")

@router.delete("/{asset_id}")
async def delete_asset(asset_id: str):
    return not_implemented("Asset deletion endpoint - Not yet implemented")

@router.post("/{asset_id}/access")
async def grant_access(asset_id: str, payload: AssetAccessIn | None = None):
    return not_implemented("Asset access grant endpoint - Not yet implemented")

@router.delete("/{asset_id}/access/{user_id}")
async def revoke_access(asset_id: str, user_id: str):
    return not_implemented("Asset access revocation endpoint - Not yet implemented")
