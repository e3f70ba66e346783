"""EC2-style hierarchical view — /2009-04-04.

The whole exported record, one path segment per level. Objects list their
keys one per line, containers marked with a trailing "/"; leaves come back
as plain text.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from hegel.deps import get_exported_hardware
from hegel.errors import NotFoundError

router = APIRouter(prefix="/2009-04-04", tags=["ec2"])


def _child_name(name: str, value: Any) -> str:
    return f"{name}/" if isinstance(value, (dict, list)) else name


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def walk(document: Any, path: str) -> Any:
    """Follow the "/"-separated segments of path into document."""
    value = document
    for segment in (s for s in path.split("/") if s):
        if isinstance(value, dict) and segment in value:
            value = value[segment]
        elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
            value = value[int(segment)]
        else:
            raise NotFoundError("")
    return value


def render(value: Any) -> str:
    if isinstance(value, dict):
        return "\n".join(_child_name(k, v) for k, v in value.items())
    if isinstance(value, list):
        if any(isinstance(item, (dict, list)) for item in value):
            return "\n".join(_child_name(str(i), item) for i, item in enumerate(value))
        return "\n".join(_scalar(item) for item in value)
    return _scalar(value)


@router.get("")
@router.get("/")
@router.get("/{path:path}")
async def ec2_view(request: Request, document: Any = Depends(get_exported_hardware)):
    path = request.path_params.get("path", "")
    return PlainTextResponse(render(walk(document, path)))
