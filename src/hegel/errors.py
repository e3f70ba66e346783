"""Error taxonomy.

Startup errors (ConfigurationError) are never caught; they abort the process.
Per-request errors are mapped to HTTP status codes by the handlers in
hegel.app. Stream errors only ever reach the consumer of a watcher.
"""

from __future__ import annotations


class HegelError(Exception):
    """Base class for all Hegel exceptions."""


class ConfigurationError(HegelError):
    """Malformed endpoint map, trusted-proxy list, or an unconstructable backend."""


class CallerUnresolvedError(HegelError):
    """No usable source IP on the request. Surfaced as HTTP 400."""


class NotFoundError(HegelError):
    """No record for the caller, or the selected path is absent. HTTP 404."""


class UpstreamError(HegelError):
    """The inventory RPC failed. HTTP 500."""

    def __init__(self, backend: str, message: str) -> None:
        super().__init__(f"{backend}: {message}")
        self.backend = backend


class EncodingError(HegelError):
    """A record could not be parsed or re-serialized. HTTP 500."""


class StreamError(HegelError):
    """A watch stream failed."""


class StreamClosedError(StreamError):
    """The watch stream ended or was cancelled."""
