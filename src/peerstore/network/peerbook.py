"""Peer book — the node's in-memory address → peer mapping.

The book owns the mapping that the storage layer persists. Every
mutation is announced to the registered listeners, which is how the
file controller learns that it has something to write.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Mapping

from peerstore.network.peer import IPAddress, Peer, PeerState, parse_ip

logger = logging.getLogger(__name__)


class PeerBook:
    """Known peers, unique by parsed IP address."""

    def __init__(
        self,
        peers: Mapping[IPAddress, Peer] | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._peers: dict[IPAddress, Peer] = dict(peers or {})
        self._listeners: list[Callable[[], None]] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def __len__(self) -> int:
        return len(self._peers)

    def __iter__(self) -> Iterator[IPAddress]:
        return iter(self._peers)

    def __contains__(self, address: object) -> bool:
        if isinstance(address, str):
            try:
                address = parse_ip(address)
            except ValueError:
                return False
        return address in self._peers

    def on_change(self, callback: Callable[[], None]) -> None:
        """Register a listener called after every mutation."""
        self._listeners.append(callback)

    def get(self, address: str | IPAddress) -> Peer | None:
        return self._peers.get(self._key(address))

    def as_dict(self) -> dict[IPAddress, Peer]:
        """Copy of the mapping, suitable for persisting."""
        return dict(self._peers)

    def add(self, peer: Peer) -> bool:
        """Add a peer.

        Returns:
            True if the address was new. A known address only has its
            ``last_seen`` refreshed.
        """
        existing = self._peers.get(peer.ip)
        if existing is not None:
            existing.last_seen = max(existing.last_seen, peer.last_seen)
            return False
        self._peers[peer.ip] = peer
        logger.debug("Peer added: %s", peer.ip)
        self._notify()
        return True

    def add_address(self, address: str) -> Peer:
        """Parse ``address`` and add it, returning the stored peer."""
        peer = Peer(address)
        self.add(peer)
        return self._peers[peer.ip]

    def remove(self, address: str | IPAddress) -> Peer | None:
        """Remove a peer by address. Returns the removed peer, if any."""
        peer = self._peers.pop(self._key(address), None)
        if peer is not None:
            logger.debug("Peer removed: %s", peer.ip)
            self._notify()
        return peer

    def cleanup(self, timeout_seconds: float = 300.0) -> int:
        """Remove stale peers that are not currently connected."""
        to_remove = [
            ip for ip, peer in self._peers.items()
            if peer.state != PeerState.CONNECTED
            and peer.is_stale(timeout_seconds)
        ]
        for ip in to_remove:
            del self._peers[ip]
        if to_remove:
            logger.info("Removed %d stale peers", len(to_remove))
            self._notify()
        return len(to_remove)

    @staticmethod
    def _key(address: str | IPAddress) -> IPAddress:
        if isinstance(address, str):
            return parse_ip(address)
        return address

    def _notify(self) -> None:
        for callback in self._listeners:
            callback()
