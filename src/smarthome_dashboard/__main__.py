"""Dashboard service startup script."""

import os
import sys

import uvicorn
from loguru import logger

from smarthome_dashboard.api.dashboard import create_app

LOG_LEVELS = ["debug", "info", "warning", "error", "critical"]


def setup_logging():
    """Setup logging configuration.

    Console handler uses colored output while the file handler rotates
    daily under logs/dashboard.
    """
    log_dir = os.path.join("logs", "dashboard")
    os.makedirs(log_dir, exist_ok=True)

    # Remove default handler
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )
    logger.add(sys.stderr, format=log_format, level="INFO", enqueue=True)

    file_format = (
        "{time:YYYY-MM-DD HH:mm:ss} | "
        "{level: <8} | "
        "{name}:{function}:{line} - "
        "{message}"
    )
    logger.add(
        os.path.join(log_dir, "dashboard.log"),
        rotation="1 day",
        retention="30 days",
        format=file_format,
        level="DEBUG",
        enqueue=True,
        compression="zip"
    )


def main():
    """Run the dashboard service.

    Environment variables:
        DASHBOARD_HOST: Host to bind to (default: 0.0.0.0)
        DASHBOARD_PORT: Port to listen on (default: 8000)
        DASHBOARD_LOG_LEVEL: Logging level (default: info)
    """
    try:
        setup_logging()
        logger.info("Starting dashboard service...")

        host = os.getenv("DASHBOARD_HOST", "0.0.0.0")
        port = int(os.getenv("DASHBOARD_PORT", "8000"))
        log_level = os.getenv("DASHBOARD_LOG_LEVEL", "info").lower()

        if port < 1 or port > 65535:
            raise ValueError(f"Invalid port number: {port}")
        if log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {log_level}")

        logger.info("Dashboard service configuration:")
        logger.info(f"  Host: {host}")
        logger.info(f"  Port: {port}")
        logger.info(f"  Log level: {log_level}")

        app = create_app()
        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=log_level,
            access_log=True
        )

    except Exception:
        logger.exception("Failed to start dashboard service")
        sys.exit(1)


if __name__ == "__main__":
    main()
