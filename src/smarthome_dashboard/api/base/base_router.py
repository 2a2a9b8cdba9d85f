"""Base router functionality."""

import os
from typing import Dict, Any

import psutil
from fastapi import APIRouter, HTTPException
from loguru import logger

from smarthome_dashboard.api.base.base_errors import create_error, SERVICE_ERROR
from smarthome_dashboard.api.base.base_service import BaseService


def add_health_endpoints(router: APIRouter, service: BaseService) -> None:
    """Add health check endpoint to router."""

    @router.get("/health", tags=["health"])
    async def health_check() -> Dict[str, Any]:
        """Get service health status."""
        try:
            health_info = await service.check_health()

            process = psutil.Process(os.getpid())
            health_info["process_info"] = {
                "pid": process.pid,
                "memory": process.memory_info().rss / 1024 / 1024,  # MB
                "cpu_percent": process.cpu_percent()
            }
            health_info["service_info"] = {
                "name": service.name,
                "version": service.version,
                "uptime": str(service.uptime) if service.is_running else None,
                "running": service.is_running
            }
            return health_info

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            raise create_error(
                message=f"Health check failed for {service.name} service",
                status_code=SERVICE_ERROR,
                context={"service": service.name},
                cause=e
            )
