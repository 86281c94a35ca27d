import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict, cast

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from pythonjsonlogger.json import JsonFormatter
from starlette.middleware.cors import CORSMiddleware

from eventreg.core.database_manager import db_manager
from eventreg.core.exceptions import DomainError
from eventreg.core.settings import get_settings
from eventreg.middleware.monitoring import (
    MonitoringMiddleware,
    get_health_status,
    metrics,
    render_metrics,
)

from .api.api import api_router
from .api.openapi_tags import security_schemes, tags_metadata

settings = get_settings()

# Configure structured logging
log_handler = logging.StreamHandler()
formatter = JsonFormatter(
    "%(levelname)s %(asctime)s %(message)s %(name)s %(processName)s "
    "%(filename)s %(lineno)d",
    rename_fields={"levelname": "level", "asctime": "time", "name": "loggerName"},
)
log_handler.setFormatter(formatter)
logging.basicConfig(handlers=[log_handler], level=settings.monitoring.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: verify the database on startup, dispose on shutdown."""
    logger.info("Starting event registration service")

    if settings.database.DB_CREATE_TABLES:
        await db_manager.create_all()
        logger.info("Database tables created")

    db_health = await db_manager.health_check()
    if db_health.get("status") == "healthy":
        logger.info("Database connection verified")
    else:
        logger.warning("Database health check failed")

    try:
        yield
    finally:
        await db_manager.close()
        logger.info("Application shutdown completed")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} - Event Registration Service",
    description="""
    Register accounts, create events, sign up for them and read attendance
    statistics.

    ## Authentication

    Most endpoints require a JWT bearer token:

    ```
    Authorization: Bearer <your_jwt_token>
    ```

    Get your token from the `/login` endpoint; `/logout` revokes it.
    """,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url=f"{settings.API_V1_PREFIX}/docs",
    redoc_url=f"{settings.API_V1_PREFIX}/redoc",
    lifespan=lifespan,
)

app.add_middleware(MonitoringMiddleware)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.exception_handler(DomainError)  # type: ignore[misc]
async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "Request rejected: %s",
        exc.code.value,
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    metrics.domain_errors.labels(code=exc.code.value).inc()
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code.value},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)  # type: ignore[misc]
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors()), "code": "VALIDATION_ERROR"},
    )


@app.exception_handler(HTTPException)  # type: ignore[misc]
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.error(
        "HTTPException occurred: %s",
        exc.detail,
        extra={"status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(Exception)  # type: ignore[misc]
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception occurred: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Server Error"},
    )


def custom_openapi() -> Dict[str, Any]:
    """OpenAPI schema with tag descriptions and the bearer security scheme"""
    if app.openapi_schema:
        return cast(Dict[str, Any], app.openapi_schema)

    from fastapi.openapi.utils import get_openapi

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
        tags=tags_metadata,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = security_schemes

    public_paths = {
        f"{settings.API_V1_PREFIX}/register",
        f"{settings.API_V1_PREFIX}/login",
    }
    for path, path_item in openapi_schema["paths"].items():
        for method_item in path_item.values():
            if isinstance(method_item, dict) and "tags" in method_item:
                if path not in public_paths and not any(
                    tag in ["Root", "Health", "Monitoring"]
                    for tag in method_item.get("tags", [])
                ):
                    method_item["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return cast(Dict[str, Any], app.openapi_schema)


app.openapi = custom_openapi  # type: ignore[method-assign]


@app.get("/", tags=["Root"], summary="API Welcome Message")  # type: ignore[misc]
async def root() -> dict[str, Any]:
    """Basic API information and links to documentation."""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs",
        "openapi": f"{settings.API_V1_PREFIX}/openapi.json",
        "status": "operational",
    }


@app.get("/health", tags=["Health"], summary="Health Check")  # type: ignore[misc]
async def health_check() -> dict[str, Any]:
    """Operational status of the service and its database."""
    return await get_health_status()


@app.get("/metrics", tags=["Monitoring"], summary="Prometheus Metrics")  # type: ignore[misc]
async def prometheus_metrics() -> Response:
    """Metrics in Prometheus exposition format."""
    if not settings.monitoring.ENABLE_PROMETHEUS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Metrics endpoint is disabled"
        )

    return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)
