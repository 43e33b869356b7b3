# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes.v1 import (
    attendance as attendance_v1,
    availability as availability_v1,
    bookings as bookings_v1,
    health as health_v1,
    packages as packages_v1,
    prometheus as prometheus_v1,
    slots as slots_v1,
    students as students_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: log startup configuration and shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if settings.calendar_fake:
        logger.info("Calendar integration: in-memory fake")
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=app_lifespan,
    )
    app.add_middleware(PrometheusMiddleware)
    register_error_handlers(app)

    # API v1 - all application routes
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(slots_v1.router, prefix="/slots")
    api_v1.include_router(availability_v1.router, prefix="/availability")
    api_v1.include_router(bookings_v1.router, prefix="/bookings")
    api_v1.include_router(attendance_v1.router, prefix="/attendance")
    api_v1.include_router(packages_v1.router, prefix="/packages")
    api_v1.include_router(students_v1.router, prefix="/students")
    api_v1.include_router(health_v1.router)
    api_v1.include_router(prometheus_v1.router)
    app.include_router(api_v1)

    return app


app = create_app()
