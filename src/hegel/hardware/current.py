"""Current inventory adapter (tink).

Tink records are typed messages. The metadata field is itself a JSON
document held in a string; exports inline it as an object.
"""

from __future__ import annotations

import json
from typing import Any

from google.protobuf import json_format
from pydantic import BaseModel, ValidationError

from hegel.errors import EncodingError, NotFoundError
from hegel.hardware.client import Backend
from hegel.hardware.protos import TINK_SERVICE, TinkGetRequest, TinkHardware
from hegel.hardware.rpc import StreamWatcher, call_unary, connectivity_ready


class ExportedCurrentHardware(BaseModel):
    """Canonical wrapper around a tink record."""

    id: str = ""
    version: int = 0
    network: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class CurrentHardware:
    """A tink record."""

    def __init__(self, hardware: Any) -> None:
        self.hardware = hardware

    def id(self) -> str:
        return self.hardware.id

    def _metadata(self) -> dict[str, Any] | None:
        raw = self.hardware.metadata
        if not raw:
            return None
        try:
            metadata = json.loads(raw)
        except ValueError as exc:
            raise EncodingError(f"hardware {self.hardware.id} has invalid metadata: {exc}") from exc
        if not isinstance(metadata, dict):
            raise EncodingError(f"hardware {self.hardware.id} metadata is not a JSON object")
        return metadata

    def export(self) -> bytes:
        fields = json_format.MessageToDict(self.hardware, preserving_proto_field_name=True)
        fields["metadata"] = self._metadata()
        try:
            exported = ExportedCurrentHardware.model_validate(fields)
        except ValidationError as exc:
            raise EncodingError(f"hardware {self.hardware.id} cannot be exported: {exc}") from exc
        return exported.model_dump_json(exclude_none=True).encode()


class CurrentClient:
    """Hardware client speaking the tink dialect."""

    backend = Backend.CURRENT

    def __init__(self, channel: Any) -> None:
        self._channel = channel
        self._by_ip = channel.unary_unary(
            f"{TINK_SERVICE}/ByIP",
            request_serializer=TinkGetRequest.SerializeToString,
            response_deserializer=TinkHardware.FromString,
        )
        self._watch = channel.unary_stream(
            f"{TINK_SERVICE}/Watch",
            request_serializer=TinkGetRequest.SerializeToString,
            response_deserializer=TinkHardware.FromString,
        )

    async def by_ip(self, ip: str) -> CurrentHardware:
        hw = await call_unary(self.backend, self._by_ip, TinkGetRequest(ip=ip))
        if not hw.id:
            raise NotFoundError(f"{self.backend.value}: no hardware with ip {ip}")
        return CurrentHardware(hw)

    async def watch(self, hardware_id: str) -> StreamWatcher:
        call = self._watch(TinkGetRequest(id=hardware_id))
        return StreamWatcher(self.backend, call, CurrentHardware)

    def connected(self) -> bool:
        return connectivity_ready(self._channel)

    async def close(self) -> None:
        await self._channel.close()
