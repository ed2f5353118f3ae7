from typing import Mapping
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession
from skystore.modules.assets.models import Asset, AssetMetaBase
from skystore.modules.assets.paths import META_FIELDS

class AssetRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, *, meta: Mapping[str, str] | None = None, **data) -> Asset:
        obj = Asset(**data)
        # metadata rides along in the same flush as the asset row
        obj.meta = AssetMetaBase(**{k: meta[k] for k in META_FIELDS}) if meta else None
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, asset_id: str) -> Asset | None:
        q = (
            select(Asset)
            .where(Asset.id == asset_id)
            .options(selectinload(Asset.meta))
            .execution_options(populate_existing=True)
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def exists(self, asset_id: str) -> bool:
        res = await self.session.execute(select(Asset.id).where(Asset.id == asset_id))
        return res.scalar_one_or_none() is not None

    async def get_meta(self, asset_id: str) -> AssetMetaBase | None:
        res = await self.session.execute(select(AssetMetaBase).where(AssetMetaBase.asset_id == asset_id))
        return res.scalar_one_or_none()

    async def upsert_meta(self, asset_id: str, meta: Mapping[str, str]) -> AssetMetaBase:
        obj = await self.get_meta(asset_id)
        if obj is None:
            obj = AssetMetaBase(asset_id=asset_id)
            self.session.add(obj)
        # full replacement, every field is rewritten
        for k in META_FIELDS:
            setattr(obj, k, meta[k])
        await self.session.flush()
        return obj
