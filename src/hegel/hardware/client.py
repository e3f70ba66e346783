"""Hardware client interfaces and backend selection.

Hegel talks to one of two inventory services: the legacy one (cacher), which
hands out opaque JSON documents, or the current one (tink), which hands out
typed records. Both sit behind the same narrow contract so request handling
never needs to know which one is running.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from hegel.config import HegelConfig
from hegel.errors import ConfigurationError
from hegel.hardware.channel import open_channel

logger = logging.getLogger("hegel.hardware")


class Backend(str, Enum):
    LEGACY = "legacy"
    CURRENT = "current"


@runtime_checkable
class Hardware(Protocol):
    """One inventory record, as delivered by either backend."""

    def id(self) -> str:
        """Return the hardware ID."""

    def export(self) -> bytes:
        """Return the record as the JSON document served to clients."""


@runtime_checkable
class Watcher(Protocol):
    """Server-streamed updates for a single hardware ID."""

    async def recv(self) -> Hardware:
        """Return the next record; raise StreamClosedError when the stream ends."""

    def cancel(self) -> None:
        """Stop the stream. Pending and later recv() calls raise StreamClosedError."""


@runtime_checkable
class HardwareClient(Protocol):
    """The messenger between Hegel and the inventory service."""

    backend: Backend

    async def by_ip(self, ip: str) -> Hardware:
        """Return the record of the hardware holding ip."""

    async def watch(self, hardware_id: str) -> Watcher:
        """Open a watch stream on the hardware with the given ID."""

    def connected(self) -> bool:
        """Report whether the upstream channel is ready."""

    async def close(self) -> None:
        """Release the upstream channel."""


async def new_client(config: HegelConfig) -> HardwareClient:
    """Build the hardware client for the configured data model version.

    DATA_MODEL_VERSION=1 selects the current backend, anything else the
    legacy one. Raises ConfigurationError when the client cannot be built.
    """
    from hegel.hardware.current import CurrentClient
    from hegel.hardware.legacy import LegacyClient

    if config.use_current_backend:
        if not config.tink_grpc_authority:
            raise ConfigurationError(
                "failed to create the tink client: TINKERBELL_GRPC_AUTHORITY is not set"
            )
        channel = await open_channel(config.tink_grpc_authority, config.tink_cert_url)
        logger.info("Using current backend at %s", config.tink_grpc_authority)
        return CurrentClient(channel)

    channel = await open_channel(config.cacher_authority, config.cacher_certificate_url)
    logger.info(
        "Using legacy backend at %s (facility: %s)",
        config.cacher_authority,
        config.facility,
    )
    return LegacyClient(channel)
