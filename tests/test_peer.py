"""Tests for peerstore.network.peer."""

from __future__ import annotations

import ipaddress
import time

import pytest

from peerstore.errors import IpAddressFormatError, PeerStoreError
from peerstore.network.peer import DEFAULT_PORT, Peer, PeerState, parse_ip


# ── parse_ip ─────────────────────────────────────────────────────

class TestParseIp:
    def test_ipv4(self):
        assert parse_ip("192.168.1.1") == ipaddress.IPv4Address("192.168.1.1")

    def test_ipv6(self):
        assert parse_ip("2001:db8::1") == ipaddress.IPv6Address("2001:db8::1")

    @pytest.mark.parametrize("text", [" 10.0.0.2", "10.0.0.2\n", " ::1 "])
    def test_rejects_surrounding_whitespace(self, text):
        with pytest.raises(IpAddressFormatError):
            parse_ip(text)

    def test_rejects_ipv6_scope(self):
        with pytest.raises(IpAddressFormatError):
            parse_ip("fe80::1%eth0")

    def test_rejects_non_string(self):
        with pytest.raises(IpAddressFormatError):
            parse_ip(167772161)

    @pytest.mark.parametrize("text", ["192.168.4322.2", "", "localhost", "10.0.0.1:8470"])
    def test_invalid(self, text):
        with pytest.raises(IpAddressFormatError) as exc:
            parse_ip(text)
        assert exc.value.value == text

    def test_error_is_value_error_and_store_error(self):
        with pytest.raises(ValueError):
            parse_ip("nope")
        with pytest.raises(PeerStoreError):
            parse_ip("nope")


# ── Peer ─────────────────────────────────────────────────────────

class TestPeer:
    def test_defaults(self):
        peer = Peer("10.0.0.1")
        assert peer.address == "10.0.0.1"
        assert peer.port == DEFAULT_PORT
        assert peer.state == PeerState.DISCOVERED

    def test_ip(self):
        assert Peer("10.0.0.1").ip == ipaddress.ip_address("10.0.0.1")

    def test_keeps_original_text(self):
        peer = Peer("2001:0db8:0000::0001")
        assert peer.address == "2001:0db8:0000::0001"
        assert str(peer.ip) == "2001:db8::1"

    def test_invalid_address_raises(self):
        with pytest.raises(IpAddressFormatError):
            Peer("192.168.4322.2")

    def test_endpoint_ipv4(self):
        assert Peer("10.0.0.1", port=9000).endpoint == "10.0.0.1:9000"

    def test_endpoint_ipv6_bracketed(self):
        assert Peer("::1").endpoint == f"[::1]:{DEFAULT_PORT}"

    def test_equality_by_fields(self):
        assert Peer("10.0.0.1", last_seen=1.0) == Peer("10.0.0.1", last_seen=1.0)
        assert Peer("10.0.0.1", last_seen=1.0) != Peer("10.0.0.2", last_seen=1.0)


# ── Freshness ────────────────────────────────────────────────────

class TestFreshness:
    def test_mark_seen(self):
        peer = Peer("10.0.0.1", last_seen=0.0)
        peer.mark_seen()
        assert peer.last_seen > 0.0

    def test_is_stale(self):
        peer = Peer("10.0.0.1", last_seen=time.time() - 301)
        assert peer.is_stale()
        assert not peer.is_stale(timeout_seconds=600)

    def test_fresh_peer_not_stale(self):
        assert not Peer("10.0.0.1").is_stale()
