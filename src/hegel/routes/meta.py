"""Meta endpoints — health, version, metrics."""

from __future__ import annotations

import threading
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from hegel.deps import get_hardware_client
from hegel.hardware.client import HardwareClient

router = APIRouter(tags=["meta"])


@router.get("/metrics")
def prometheus_metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/_packet/healthcheck")
def healthcheck(
    request: Request,
    client: HardwareClient = Depends(get_hardware_client),
):
    state = request.app.state
    return {
        "git_rev": state.config.git_rev,
        "uptime_seconds": time.monotonic() - state.started_at,
        "goroutines": threading.active_count(),
        "cacher_available": client.connected(),
    }


@router.get("/_packet/version")
def version(request: Request):
    return {"git_rev": request.app.state.config.git_rev}
