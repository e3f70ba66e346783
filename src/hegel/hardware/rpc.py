"""RPC plumbing shared by both inventory adapters."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import grpc

from hegel.errors import NotFoundError, StreamClosedError, StreamError, UpstreamError
from hegel.hardware.client import Backend, Hardware


def describe_rpc_error(exc: grpc.aio.AioRpcError) -> str:
    return f"{exc.code().name}: {exc.details()}"


async def call_unary(backend: Backend, method: Callable[..., Any], request: Any) -> Any:
    """Run a unary RPC, mapping failures onto the Hegel error taxonomy."""
    try:
        return await method(request)
    except grpc.aio.AioRpcError as exc:
        if exc.code() == grpc.StatusCode.NOT_FOUND:
            raise NotFoundError(f"{backend.value}: {exc.details() or 'hardware not found'}") from exc
        raise UpstreamError(backend.value, describe_rpc_error(exc)) from exc


def connectivity_ready(channel: Any) -> bool:
    return channel.get_state(try_to_connect=False) == grpc.ChannelConnectivity.READY


class StreamWatcher:
    """A server stream of records for one hardware ID.

    wrap turns each upstream message into a Hardware record. Records are
    handed out in the order the upstream sends them.
    """

    def __init__(self, backend: Backend, call: Any, wrap: Callable[[Any], Hardware]) -> None:
        self.backend = backend
        self._call = call
        self._wrap = wrap
        self._cancelled = False

    async def recv(self) -> Hardware:
        if self._cancelled:
            raise StreamClosedError(f"{self.backend.value}: watch cancelled")
        try:
            message = await self._call.read()
        except grpc.aio.AioRpcError as exc:
            if exc.code() == grpc.StatusCode.CANCELLED and self._cancelled:
                raise StreamClosedError(f"{self.backend.value}: watch cancelled") from exc
            raise StreamError(f"{self.backend.value}: {describe_rpc_error(exc)}") from exc
        except asyncio.CancelledError:
            if self._cancelled:
                raise StreamClosedError(f"{self.backend.value}: watch cancelled") from None
            raise
        if message is grpc.aio.EOF:
            raise StreamClosedError(f"{self.backend.value}: watch stream ended")
        return self._wrap(message)

    def cancel(self) -> None:
        self._cancelled = True
        self._call.cancel()

    def __aiter__(self):
        return self

    async def __anext__(self) -> Hardware:
        try:
            return await self.recv()
        except StreamClosedError:
            raise StopAsyncIteration from None
