"""Errors raised by the peer store."""

from __future__ import annotations


class PeerStoreError(Exception):
    """Base class for peer store failures."""


class PeerStoreIOError(PeerStoreError):
    """Raised when the peers file cannot be read or written."""


class PeerStoreSerializationError(PeerStoreError):
    """Raised when the peers file is not a JSON array of strings."""


class IpAddressFormatError(PeerStoreError, ValueError):
    """Raised when a string is not a valid IPv4 or IPv6 address."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid IP address: {value!r}")
        self.value = value
