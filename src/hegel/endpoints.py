"""Custom metadata endpoints.

CUSTOM_ENDPOINTS maps URL paths to selectors, e.g.
{"/metadata": ".metadata", "/userdata": ".metadata.instance.userdata"}.
Every entry becomes a GET route serving the selected part of the caller's
record. Bound once at startup.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.responses import Response

from hegel.deps import get_exported_hardware, get_hardware_client
from hegel.errors import ConfigurationError
from hegel.hardware.client import Backend, HardwareClient
from hegel.selector import Selector, render_selection

RESERVED_PATHS = ("/metrics", "/_packet/healthcheck", "/_packet/version")
EC2_PREFIX = "/2009-04-04"


@dataclass(frozen=True)
class EndpointBinding:
    path: str
    selector: Selector


def _reject_duplicates(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    seen: dict[str, Any] = {}
    for key, value in pairs:
        if key in seen:
            raise ConfigurationError(f"duplicate custom endpoint {key!r}")
        seen[key] = value
    return seen


def parse_custom_endpoints(raw: str) -> tuple[EndpointBinding, ...]:
    """Parse and validate the endpoint map. Raises ConfigurationError."""
    try:
        endpoints = json.loads(raw, object_pairs_hook=_reject_duplicates)
    except ValueError as exc:
        raise ConfigurationError(f"error in parsing custom endpoints: {exc}") from exc
    if not isinstance(endpoints, dict):
        raise ConfigurationError("custom endpoints must be a JSON object")

    bindings = []
    for path, expression in endpoints.items():
        if not path.startswith("/"):
            raise ConfigurationError(f"custom endpoint {path!r} must start with '/'")
        if path in RESERVED_PATHS or path == EC2_PREFIX or path.startswith(EC2_PREFIX + "/"):
            raise ConfigurationError(f"custom endpoint {path!r} collides with a built-in route")
        if not isinstance(expression, str):
            raise ConfigurationError(f"selector for {path!r} must be a string")
        bindings.append(EndpointBinding(path, Selector.parse(expression)))
    return tuple(bindings)


def make_metadata_handler(selector: Selector):
    """Return a route handler serving the part of the record selector picks.

    Legacy records are the host's metadata document itself, so on that
    backend a leading "metadata" key resolves against the record root.
    """
    legacy_selector = selector.relative_to("metadata")

    async def get_metadata(
        document: Any = Depends(get_exported_hardware),
        client: HardwareClient = Depends(get_hardware_client),
    ) -> Response:
        active = legacy_selector if client.backend is Backend.LEGACY else selector
        value = active.apply(document)
        return Response(content=render_selection(value), media_type="application/json")

    return get_metadata


def register_custom_endpoints(app: FastAPI, bindings: tuple[EndpointBinding, ...]) -> None:
    for binding in bindings:
        app.add_api_route(
            binding.path,
            make_metadata_handler(binding.selector),
            methods=["GET"],
            name=f"custom:{binding.path}",
            tags=["metadata"],
        )
