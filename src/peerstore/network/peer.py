"""Peer model — a known neighbor identified by its IP address."""

from __future__ import annotations

import ipaddress
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from peerstore.errors import IpAddressFormatError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

DEFAULT_PORT = 8470


def parse_ip(text: str) -> IPAddress:
    """Parse an IPv4 or IPv6 address in textual form.

    The text must be a bare address: no surrounding whitespace and no
    IPv6 scope (``fe80::1%eth0``).

    Raises:
        IpAddressFormatError: If ``text`` is not an IP address.
    """
    if not isinstance(text, str):
        raise IpAddressFormatError(text)
    try:
        ip = ipaddress.ip_address(text)
    except ValueError:
        raise IpAddressFormatError(text) from None
    if text != text.strip() or getattr(ip, "scope_id", None):
        raise IpAddressFormatError(text)
    return ip


class PeerState(str, Enum):
    """Connection state of a peer."""

    DISCOVERED = "discovered"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass
class Peer:
    """Represents a known peer in the network.

    Only ``address`` survives a restart; the rest is runtime state.
    """

    address: str
    port: int = DEFAULT_PORT
    state: PeerState = PeerState.DISCOVERED
    last_seen: float = field(default_factory=time.time)
    _ip: IPAddress = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._ip = parse_ip(self.address)

    @property
    def ip(self) -> IPAddress:
        """Parsed IP address of this peer."""
        return self._ip

    @property
    def endpoint(self) -> str:
        """Full endpoint address."""
        if self._ip.version == 6:
            return f"[{self._ip}]:{self.port}"
        return f"{self._ip}:{self.port}"

    def mark_seen(self) -> None:
        """Update last seen timestamp."""
        self.last_seen = time.time()

    def is_stale(self, timeout_seconds: float = 300.0) -> bool:
        """Check if peer hasn't been seen recently."""
        return (time.time() - self.last_seen) > timeout_seconds
