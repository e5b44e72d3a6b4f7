"""HTTP audit logging middleware shared by services."""
from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter
from typing import Optional

from fastapi import FastAPI, Request

from .config import get_settings

_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def build_logger(service_name: str, *attached: str) -> logging.Logger:
    """Return the ``audit.<service>`` logger, attaching a file handler once.

    Loggers named in ``attached`` share the same file so that domain events end
    up next to the requests that caused them.
    """

    logger = logging.getLogger(f"audit.{service_name}")
    if logger.handlers:
        return logger

    log_dir = Path(get_settings().log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_dir / f"{service_name}.log")
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    for target in (logger, *(logging.getLogger(name) for name in attached)):
        target.setLevel(logging.INFO)
        target.addHandler(handler)
    return logger


def add_audit_middleware(app: FastAPI, service_name: str, *attached: str) -> logging.Logger:
    logger = build_logger(service_name, *attached)

    @app.middleware("http")
    async def audit_logger(request: Request, call_next):  # type: ignore[override]
        start = perf_counter()
        response = await call_next(request)
        duration_ms = (perf_counter() - start) * 1000
        client_ip: Optional[str] = None
        if request.client:
            client_ip = request.client.host
        logger.info(
            "%s %s | status=%s | client=%s | duration=%.2fms",
            request.method,
            request.url.path,
            response.status_code,
            client_ip or "unknown",
            duration_ms,
        )
        return response

    return logger
