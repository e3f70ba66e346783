"""gRPC channels to the inventory services.

The upstream publishes its certificate over HTTPS next to the gRPC endpoint.
Without a certificate URL the channel is plaintext, which is only meant for
local development.
"""

from __future__ import annotations

import logging

import grpc
import httpx

from hegel.errors import ConfigurationError

logger = logging.getLogger("hegel.hardware")

_CERT_FETCH_TIMEOUT = 10.0


async def fetch_certificate(url: str, http: httpx.AsyncClient | None = None) -> bytes:
    """Download the PEM certificate of an upstream."""
    try:
        if http is None:
            async with httpx.AsyncClient(timeout=_CERT_FETCH_TIMEOUT) as client:
                resp = await client.get(url)
        else:
            resp = await http.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        raise ConfigurationError(f"failed to fetch certificate from {url}: {exc}") from exc
    return resp.content


async def open_channel(
    authority: str,
    cert_url: str = "",
    http: httpx.AsyncClient | None = None,
) -> grpc.aio.Channel:
    """Open a channel to authority, secured with the certificate at cert_url."""
    if not cert_url:
        logger.warning("No certificate URL for %s, using a plaintext channel", authority)
        return grpc.aio.insecure_channel(authority)

    pem = await fetch_certificate(cert_url, http)
    credentials = grpc.ssl_channel_credentials(root_certificates=pem)
    return grpc.aio.secure_channel(authority, credentials)
