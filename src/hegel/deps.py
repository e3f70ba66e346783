"""FastAPI dependencies for Hegel routes."""

from __future__ import annotations

import json
from typing import Any

from fastapi import Depends, Request

from hegel import metrics
from hegel.errors import EncodingError, NotFoundError
from hegel.hardware.client import HardwareClient
from hegel.xff import TrustedProxies, resolve_caller_ip


def get_hardware_client(request: Request) -> HardwareClient:
    """Get the hardware client from app state."""
    return request.app.state.hardware_client


def get_trusted_proxies(request: Request) -> TrustedProxies:
    """Get the trusted proxy set from app state."""
    return request.app.state.trusted_proxies


def get_caller_ip(
    request: Request,
    trusted: TrustedProxies = Depends(get_trusted_proxies),
) -> str:
    """Resolve the IP of the host asking for its metadata."""
    peer = request.client.host if request.client else None
    return resolve_caller_ip(peer, request.headers.getlist("x-forwarded-for"), trusted)


async def get_exported_hardware(
    ip: str = Depends(get_caller_ip),
    client: HardwareClient = Depends(get_hardware_client),
) -> Any:
    """Look up the caller's record and return its export as parsed JSON."""
    backend = client.backend.value
    try:
        hw = await client.by_ip(ip)
    except NotFoundError:
        metrics.hardware_lookups.labels(backend, "not_found").inc()
        raise
    except Exception:
        metrics.hardware_lookups.labels(backend, "error").inc()
        raise
    metrics.hardware_lookups.labels(backend, "found").inc()

    exported = hw.export()
    try:
        return json.loads(exported)
    except ValueError as exc:
        raise EncodingError(f"exported hardware is not valid JSON: {exc}") from exc
