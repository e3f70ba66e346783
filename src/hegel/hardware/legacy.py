"""Legacy inventory adapter (cacher).

Cacher stores each record as an opaque JSON document. Exports go through
ExportedLegacyHardware, which keeps the fields clients are allowed to see
and drops everything else.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from hegel.errors import EncodingError, NotFoundError
from hegel.hardware.client import Backend
from hegel.hardware.protos import CACHER_SERVICE, CacherGetRequest, CacherHardware
from hegel.hardware.rpc import StreamWatcher, call_unary, connectivity_ready


class _Projection(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OperatingSystem(_Projection):
    slug: str | None = None
    distro: str | None = None
    version: str | None = None
    image_tag: str | None = None
    os_slug: str | None = None


class IPAddress(_Projection):
    address: str | None = None
    netmask: str | None = None
    gateway: str | None = None
    address_family: int | None = None
    public: bool | None = None
    management: bool | None = None


class Instance(_Projection):
    id: str | None = None
    state: str | None = None
    hostname: str | None = None
    allow_pxe: bool | None = None
    rescue: bool | None = None
    always_pxe: bool | None = None
    ipxe_script_url: str | None = None
    userdata: str | None = None
    crypted_root_password: str | None = None
    tags: list[str] | None = None
    ssh_keys: list[str] | None = None
    network_ready: bool | None = None
    operating_system_version: OperatingSystem | None = None
    ip_addresses: list[IPAddress] | None = None


class ExportedLegacyHardware(_Projection):
    """The subset of a cacher record served to clients."""

    id: str
    arch: str | None = None
    state: str | None = None
    efi_boot: bool | None = None
    allow_pxe: bool | None = None
    facility_code: str | None = None
    plan_slug: str | None = None
    plan_version_slug: str | None = None
    hostname: str | None = None
    bonding_mode: int | None = None
    userdata: str | None = None
    instance: Instance | None = None
    preinstalled_operating_system_version: Any = None
    network_ports: list[dict[str, Any]] | None = None


class LegacyHardware:
    """A cacher record: an opaque JSON document."""

    def __init__(self, hardware: Any) -> None:
        self.hardware = hardware

    def _document(self) -> dict[str, Any]:
        try:
            doc = json.loads(self.hardware.JSON)
        except ValueError as exc:
            raise EncodingError(f"legacy record is not valid JSON: {exc}") from exc
        if not isinstance(doc, dict):
            raise EncodingError("legacy record is not a JSON object")
        return doc

    def id(self) -> str:
        hw_id = self._document().get("id")
        if not isinstance(hw_id, str):
            raise EncodingError("legacy record has no string id")
        return hw_id

    def export(self) -> bytes:
        try:
            exported = ExportedLegacyHardware.model_validate(self._document())
        except ValidationError as exc:
            raise EncodingError(f"legacy record does not match the export schema: {exc}") from exc
        return exported.model_dump_json(exclude_unset=True).encode()


def _is_empty(payload: str) -> bool:
    return payload.strip() in ("", "{}")


class LegacyClient:
    """Hardware client speaking the cacher dialect."""

    backend = Backend.LEGACY

    def __init__(self, channel: Any) -> None:
        self._channel = channel
        self._by_ip = channel.unary_unary(
            f"{CACHER_SERVICE}/ByIP",
            request_serializer=CacherGetRequest.SerializeToString,
            response_deserializer=CacherHardware.FromString,
        )
        self._watch = channel.unary_stream(
            f"{CACHER_SERVICE}/Watch",
            request_serializer=CacherGetRequest.SerializeToString,
            response_deserializer=CacherHardware.FromString,
        )

    async def by_ip(self, ip: str) -> LegacyHardware:
        hw = await call_unary(self.backend, self._by_ip, CacherGetRequest(IP=ip))
        if _is_empty(hw.JSON):
            raise NotFoundError(f"{self.backend.value}: no hardware with ip {ip}")
        return LegacyHardware(hw)

    async def watch(self, hardware_id: str) -> StreamWatcher:
        call = self._watch(CacherGetRequest(ID=hardware_id))
        return StreamWatcher(self.backend, call, LegacyHardware)

    def connected(self) -> bool:
        return connectivity_ready(self._channel)

    async def close(self) -> None:
        await self._channel.close()
