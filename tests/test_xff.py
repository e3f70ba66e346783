"""Tests for trusted proxy parsing and caller resolution."""

from __future__ import annotations

import ipaddress

import pytest

from hegel.errors import CallerUnresolvedError, ConfigurationError
from hegel.xff import TrustedProxies, resolve_caller_ip


class TestTrustedProxies:
    def test_parse_cidrs(self):
        trusted = TrustedProxies.parse("10.0.0.0/8, 192.168.0.0/16")
        assert len(trusted.networks) == 2
        assert ipaddress.ip_address("10.1.2.3") in trusted
        assert ipaddress.ip_address("192.168.7.7") in trusted
        assert ipaddress.ip_address("172.16.0.1") not in trusted

    def test_bare_ip_is_single_host(self):
        trusted = TrustedProxies.parse("172.16.0.1")
        assert ipaddress.ip_address("172.16.0.1") in trusted
        assert ipaddress.ip_address("172.16.0.2") not in trusted

    def test_host_bits_allowed(self):
        trusted = TrustedProxies.parse("10.0.0.1/8")
        assert ipaddress.ip_address("10.200.0.1") in trusted

    def test_ipv6(self):
        trusted = TrustedProxies.parse("fd00::/8")
        assert ipaddress.ip_address("fd00::1") in trusted
        assert ipaddress.ip_address("10.0.0.1") not in trusted

    def test_blank_entries_ignored(self):
        assert not TrustedProxies.parse("")
        assert len(TrustedProxies.parse(" , 10.0.0.0/8 ,").networks) == 1

    @pytest.mark.parametrize("raw", ["not-a-cidr", "10.0.0.0/33", "10.0.0.0/8,300.1.1.1"])
    def test_invalid_entry(self, raw):
        with pytest.raises(ConfigurationError):
            TrustedProxies.parse(raw)


class TestResolveCallerIP:
    trusted = TrustedProxies.parse("10.0.0.0/8")

    def test_untrusted_peer_is_caller(self):
        ip = resolve_caller_ip("192.168.1.5", ["203.0.113.9"], self.trusted)
        assert ip == "192.168.1.5"

    def test_trusted_proxy_rewrite(self):
        ip = resolve_caller_ip("10.0.0.1", ["203.0.113.9, 10.0.0.2"], self.trusted)
        assert ip == "203.0.113.9"

    def test_closest_untrusted_hop_wins(self):
        ip = resolve_caller_ip("10.0.0.1", ["198.51.100.1, 203.0.113.9, 10.0.0.2"], self.trusted)
        assert ip == "203.0.113.9"

    def test_multiple_headers_are_one_chain(self):
        ip = resolve_caller_ip("10.0.0.1", ["198.51.100.1", "10.0.0.3"], self.trusted)
        assert ip == "198.51.100.1"

    def test_all_hops_trusted_falls_back_to_peer(self):
        ip = resolve_caller_ip("10.0.0.1", ["10.0.0.2, 10.0.0.3"], self.trusted)
        assert ip == "10.0.0.1"

    def test_no_header_falls_back_to_peer(self):
        assert resolve_caller_ip("10.0.0.1", [], self.trusted) == "10.0.0.1"

    def test_garbage_hop_stops_the_walk(self):
        ip = resolve_caller_ip("10.0.0.1", ["203.0.113.9, garbage"], self.trusted)
        assert ip == "10.0.0.1"

    def test_no_trusted_proxies_ignores_header(self):
        ip = resolve_caller_ip("10.0.0.1", ["203.0.113.9"], TrustedProxies())
        assert ip == "10.0.0.1"

    def test_ipv4_mapped_peer(self):
        assert resolve_caller_ip("::ffff:192.168.1.5", [], self.trusted) == "192.168.1.5"

    @pytest.mark.parametrize("peer", [None, "", "testclient"])
    def test_unusable_peer(self, peer):
        with pytest.raises(CallerUnresolvedError):
            resolve_caller_ip(peer, [], self.trusted)


MIXED_TRUSTED = "10.0.0.0/8, fd00::/8, 192.168.0.1"

MIXED_CHAINS = [
    [],
    ["203.0.113.9"],
    ["10.1.1.1"],
    ["10.1.1.1, 203.0.113.9, 10.2.2.2"],
    ["203.0.113.9, 10.2.2.2, 10.3.3.3"],
    ["2001:db8::1, 10.9.9.9"],
    ["fd00::5, fd00::6"],
    ["2001:db8::7, fd00::6"],
    ["192.168.0.1, 192.168.0.1"],
    ["192.168.0.2, 192.168.0.1"],
    ["garbage, 10.1.1.1"],
    ["203.0.113.9, garbage, 10.1.1.1"],
    ["203.0.113.9, , 10.1.1.1"],
    ["[2001:db8::9], 10.1.1.1"],
    ["::ffff:10.4.4.4, 10.1.1.1"],
    ["::ffff:203.0.113.4"],
    ["203.0.113.9", "10.1.1.1, 10.2.2.2"],
    ["10.1.1.1", "198.51.100.3"],
    ["10.1.1.1", "", "fd00::9"],
]


@pytest.mark.parametrize("chain", MIXED_CHAINS)
@pytest.mark.parametrize("peer", ["10.0.0.1", "fd00::1", "192.168.0.1", "198.51.100.7"])
def test_result_is_never_trusted_unless_peer(peer, chain):
    trusted = TrustedProxies.parse(MIXED_TRUSTED)

    ip = ipaddress.ip_address(resolve_caller_ip(peer, chain, trusted))

    assert ip == ipaddress.ip_address(peer) or ip not in trusted
