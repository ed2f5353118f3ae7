from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from .config import settings
from .base import Base

def build_engine(dsn: str | None = None) -> AsyncEngine:
    return create_async_engine(dsn or settings.POSTGRES_DSN, pool_pre_ping=True)

def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def init_models(engine: AsyncEngine, manage: str | None = None) -> bool:
    ## In dev-only "create_all" mode the ORM owns the schema; otherwise, migrations own it.
    manage = manage if manage is not None else settings.DB_MANAGE
    if manage.lower() != "create_all":
        return False
    # registers the asset tables on Base.metadata
    import skystore.modules.assets.models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return True
