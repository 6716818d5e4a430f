"""FastAPI application factory for the metric catalog."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from metric_catalog.common.config import get_settings
from metric_catalog.common.exceptions import CatalogError
from metric_catalog.common.logging import get_logger, setup_logging
from metric_catalog.common.schemas import ErrorResponse, HealthResponse

logger = get_logger("app")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from metric_catalog.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.code, exc.message)
        body = ErrorResponse(**exc.to_dict())
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from metric_catalog.metrics.router import router as metrics_router
    from metric_catalog.usage.router import router as usage_router
    from metric_catalog.audit.router import router as audit_router
    from metric_catalog.catalog.router import router as catalog_router

    prefix = settings.api_prefix
    app.include_router(metrics_router, prefix=prefix, tags=["metrics"])
    app.include_router(usage_router, prefix=prefix, tags=["usage"])
    app.include_router(audit_router, prefix=prefix, tags=["audit"])
    app.include_router(catalog_router, prefix=prefix, tags=["catalog"])

    return app
