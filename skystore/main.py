import time
import logging
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from skystore.core.config import Settings, settings as default_settings
from skystore.core.logging import setup_logging, request_id_ctx
from skystore.core.db import build_engine, build_sessionmaker, init_models
from skystore.core.errors import AssetError
from skystore.core.responses import fail
from skystore.api.router import api_router
from skystore.platform.provider_registry import ProviderRegistry

logger = logging.getLogger(__name__)

def create_app(
    settings: Settings | None = None,
    *,
    providers: ProviderRegistry | None = None,
    engine: AsyncEngine | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging()
    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings

    engine = engine or build_engine(settings.POSTGRES_DSN)
    app.state.engine = engine
    app.state.session_factory = session_factory or build_sessionmaker(engine)
    app.state.providers = providers or ProviderRegistry(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        formatted_process_time = f"{process_time:.2f}ms"

        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {formatted_process_time}"
        )

        return response

    # registered last so it runs first and the access log line carries the id
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        rid = request.headers.get("x-request-id", "-")
        request_id_ctx.set(rid)
        response = await call_next(request)
        return response

    @app.exception_handler(AssetError)
    async def asset_error_handler(request: Request, exc: AssetError):
        logger.error(f"{exc.kind} error for request {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
        message = "Invalid request: " + ", ".join(f for f in fields if f) if fields else "Validation failed"
        logger.warning(f"Validation error for request {request.method} {request.url.path}: {message}")
        return fail(message, status_code=400, details={"invalid_fields": fields})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
        return fail("An internal server error occurred.", status_code=500)

    @app.on_event("startup")
    async def on_startup():
        await init_models(app.state.engine, app.state.settings.DB_MANAGE)
        app.state.providers.startup()

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.providers.shutdown()
        await app.state.engine.dispose()

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app

app = create_app()
