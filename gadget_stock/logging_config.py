"""Logging setup and the HTTP access log middleware."""
import logging
from time import time
from typing import Optional

from fastapi import FastAPI, Request

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

access_logger = logging.getLogger("gadget_stock.access")


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger("gadget_stock")
    root.setLevel(level.upper())
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)


def add_access_log(app: FastAPI) -> None:
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time()
        response = await call_next(request)
        duration_ms = (time() - start) * 1000
        client_ip: Optional[str] = None
        if request.client:
            client_ip = request.client.host
        access_logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response
