"""IDS Migas Portal — FastAPI application factory."""


import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.core.config import settings
from portal.core.exceptions import register_exception_handlers
from portal.db.base import create_schema, engine
from portal.middleware.audit import AuditMiddleware
from portal.schemas.common import HealthResponse

# v1 routers
from portal.routers.v1.audit_trail import router as audit_trail_router
from portal.routers.v1.brokers import router as brokers_router
from portal.routers.v1.clearing_house import router as clearing_house_router
from portal.routers.v1.compliance import router as compliance_router
from portal.routers.v1.configs import router as configs_router
from portal.routers.v1.containers import router as containers_router
from portal.routers.v1.contracts import router as contracts_router
from portal.routers.v1.data_sources import router as data_sources_router
from portal.routers.v1.external_services import router as external_services_router
from portal.routers.v1.license import router as license_router
from portal.routers.v1.mdm import router as mdm_router
from portal.routers.v1.network_settings import router as network_settings_router
from portal.routers.v1.participants import router as participants_router
from portal.routers.v1.requests import router as requests_router
from portal.routers.v1.resources import router as resources_router
from portal.routers.v1.routes import router as routes_router
from portal.routers.v1.service_applications import router as service_applications_router

logger = logging.getLogger(__name__)

V1_ROUTERS = (
    participants_router,
    resources_router,
    requests_router,
    brokers_router,
    routes_router,
    containers_router,
    service_applications_router,
    contracts_router,
    external_services_router,
    clearing_house_router,
    license_router,
    mdm_router,
    data_sources_router,
    configs_router,
    network_settings_router,
    audit_trail_router,
    compliance_router,
)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.auto_create_schema:
        await create_schema()
        logger.info("Database schema ensured on %s", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Audit middleware ---
    app.add_middleware(AuditMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    for router in V1_ROUTERS:
        app.include_router(router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()
