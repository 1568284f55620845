"""Logging setup and the HTTP audit middleware."""
import logging
from time import time
from typing import Optional

from fastapi import FastAPI, Request

from booking_service.config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _build_audit_logger(log_file: Optional[str]) -> logging.Logger:
    logger = logging.getLogger("audit")
    logger.setLevel(logging.INFO)
    if log_file and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
    return logger


def add_audit_middleware(app: FastAPI, log_file: Optional[str] = None) -> None:
    logger = _build_audit_logger(log_file)

    @app.middleware("http")
    async def audit_logger(request: Request, call_next):
        start = time()
        response = await call_next(request)
        duration_ms = (time() - start) * 1000
        client_ip = request.client.host if request.client else "unknown"
        logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip,
            duration_ms,
        )
        return response
