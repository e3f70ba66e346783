"""Hegel — FastAPI metadata application.

Provisioned hosts ask for their own metadata. The caller is identified by
source IP, its record is fetched from the inventory service and the
configured part of it is returned.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from hegel import metrics
from hegel.config import HegelConfig, load_config
from hegel.endpoints import parse_custom_endpoints, register_custom_endpoints
from hegel.errors import (
    CallerUnresolvedError,
    EncodingError,
    HegelError,
    NotFoundError,
    UpstreamError,
)
from hegel.hardware.client import HardwareClient, new_client
from hegel.routes import ec2, meta
from hegel.xff import TrustedProxies

logger = logging.getLogger("hegel")
audit_logger = logging.getLogger("hegel.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: connect to the inventory service. Shutdown: close the channel."""
    owned = app.state.hardware_client is None
    if owned:
        app.state.hardware_client = await new_client(app.state.config)
    logger.info("Hegel ready (%s backend)", app.state.hardware_client.backend.value)
    yield
    if owned:
        await app.state.hardware_client.close()
    logger.info("Hegel shut down")


def create_app(
    config: HegelConfig | None = None,
    hardware_client: HardwareClient | None = None,
) -> FastAPI:
    """Application factory.

    Raises ConfigurationError for a malformed endpoint map or trusted proxy
    list. hardware_client is built during startup unless one is passed in.
    """
    if config is None:
        config = load_config()

    trusted_proxies = TrustedProxies.parse(config.trusted_proxies)
    bindings = parse_custom_endpoints(config.custom_endpoints)

    app = FastAPI(
        title="Hegel",
        description="Instance metadata service for provisioned hardware",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.hardware_client = hardware_client
    app.state.trusted_proxies = trusted_proxies
    app.state.endpoints = bindings
    app.state.started_at = time.monotonic()

    # ── Exception handlers ────────────────────────────────────

    @app.exception_handler(CallerUnresolvedError)
    async def caller_unresolved_handler(request: Request, exc: CallerUnresolvedError):
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return PlainTextResponse(str(exc), status_code=404)

    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: UpstreamError):
        logger.error("upstream lookup failed for %s: %s", request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(EncodingError)
    async def encoding_handler(request: Request, exc: EncodingError):
        logger.error("could not encode hardware for %s: %s", request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(HegelError)
    async def hegel_handler(request: Request, exc: HegelError):
        logger.error("request to %s failed: %s", request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=500)

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        route = request.scope.get("route")
        route_path = getattr(route, "path", "unmatched")
        metrics.http_requests.labels(route_path, str(response.status_code)).inc()
        metrics.http_request_duration.labels(route_path).observe(elapsed)
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(meta.router)
    app.include_router(ec2.router)
    register_custom_endpoints(app, bindings)

    return app
