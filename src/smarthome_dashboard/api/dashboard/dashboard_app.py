"""Dashboard FastAPI application."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from smarthome_dashboard import __version__
from smarthome_dashboard.api.base import add_health_endpoints
from smarthome_dashboard.api.config import ConfigService
from smarthome_dashboard.api.dashboard.dashboard_router import router
from smarthome_dashboard.api.dashboard.dashboard_service import DashboardService
from smarthome_dashboard.api.messaging.mqtt_client import ClientFactory

API_PREFIX = "/api/dashboard"


def create_app(
    service: Optional[DashboardService] = None,
    config_service: Optional[ConfigService] = None,
    client_factory: Optional[ClientFactory] = None
) -> FastAPI:
    """Create the dashboard application.

    Args:
        service: Prebuilt dashboard service, built from the other arguments if omitted
        config_service: Configuration source for a new service
        client_factory: MQTT client factory for a new service

    Returns:
        FastAPI: Application instance
    """
    if service is None:
        service = DashboardService(config_service or ConfigService(), client_factory=client_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting dashboard service...")
        await service.start()
        logger.info("Dashboard service started successfully")

        yield

        logger.info("Stopping dashboard service...")
        if service.is_running:
            await service.stop()
        logger.info("Dashboard service stopped successfully")

    app = FastAPI(
        title="Smart Home Dashboard",
        description="Real-time device state and control over MQTT",
        version=__version__,
        lifespan=lifespan
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    health_router = APIRouter(tags=["health"])
    add_health_endpoints(health_router, service)
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(router, prefix=API_PREFIX)

    return app
