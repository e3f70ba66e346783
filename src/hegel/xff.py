"""Caller identification behind trusted proxies.

A request coming straight from a host is attributed to its peer address.
When the peer is one of our trusted proxies, X-Forwarded-For is walked from
the closest hop backwards and the first address we do not trust is the
caller.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Iterable
from dataclasses import dataclass

from hegel.errors import CallerUnresolvedError, ConfigurationError

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@dataclass(frozen=True)
class TrustedProxies:
    networks: tuple[IPNetwork, ...] = ()

    @classmethod
    def parse(cls, raw: str) -> TrustedProxies:
        """Parse a comma separated list of CIDRs or bare IPs.

        Bare IPs become single-host networks. Raises ConfigurationError on
        the first entry that is neither.
        """
        networks = []
        for entry in raw.split(","):
            entry = entry.strip()
            if not entry:
                continue
            try:
                networks.append(ipaddress.ip_network(entry, strict=False))
            except ValueError as exc:
                raise ConfigurationError(f"invalid trusted proxy {entry!r}: {exc}") from exc
        return cls(tuple(networks))

    def __bool__(self) -> bool:
        return bool(self.networks)

    def __contains__(self, ip: IPAddress) -> bool:
        return any(ip in net for net in self.networks if net.version == ip.version)


def _parse_ip(value: str) -> IPAddress | None:
    value = value.strip()
    # [::1] and [::1]:port forms from some proxies
    if value.startswith("["):
        value = value[1:].split("]", 1)[0]
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        return ip.ipv4_mapped
    return ip


def resolve_caller_ip(
    peer: str | None,
    forwarded_for: Iterable[str],
    trusted: TrustedProxies,
) -> str:
    """Return the effective client IP for a request.

    peer is the direct peer host, forwarded_for the X-Forwarded-For header
    values in the order they were received.
    """
    peer_ip = _parse_ip(peer) if peer else None
    if peer_ip is None:
        raise CallerUnresolvedError(f"cannot determine caller from peer address {peer!r}")
    if peer_ip not in trusted:
        return str(peer_ip)

    hops = [hop for header in forwarded_for for hop in header.split(",") if hop.strip()]
    for hop in reversed(hops):
        ip = _parse_ip(hop)
        if ip is None:
            break
        if ip not in trusted:
            return str(ip)
    return str(peer_ip)
