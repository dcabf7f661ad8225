"""Peers file — persist the known peer set as a flat JSON array.

File format (UTF-8)::

    ["192.168.1.1","10.0.0.2","2001:db8::7"]

Loading is lenient per entry: an address that does not parse is logged
and dropped, and addresses that parse to the same IP collapse to the
first occurrence. Loading is strict about structure: a file that cannot
be read, or that is not a JSON array of strings, raises.

Saving only touches the disk when something changed since the last
successful load or save. The owner of the mapping announces mutations
with ``mark_dirty()``; independently, a mapping whose address set no
longer matches what was last loaded or written also counts as changed.
The write is a plain overwrite, not an atomic replace.
"""

from __future__ import annotations

import ipaddress
import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from peerstore.errors import (
    IpAddressFormatError,
    PeerStoreIOError,
    PeerStoreSerializationError,
)
from peerstore.network.peer import IPAddress, Peer

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of reading a peers file."""

    peers: dict[IPAddress, Peer] = field(default_factory=dict)
    rejected: list[str] = field(default_factory=list)  # unparsable, file order
    duplicates: list[str] = field(default_factory=list)  # same IP seen earlier


def parse_entries(entries: Iterable[str]) -> LoadResult:
    """Build the address → peer mapping from raw address strings.

    The first string that parses to a given address wins.
    """
    result = LoadResult()
    for entry in entries:
        try:
            peer = Peer(entry)
        except IpAddressFormatError:
            result.rejected.append(entry)
            continue
        if peer.ip in result.peers:
            result.duplicates.append(entry)
            continue
        result.peers[peer.ip] = peer
    return result


class PeersFileController:
    """Reads and writes the peers file at a fixed path.

    Thread-safe for change notification: ``mark_dirty()`` may be called
    from any thread while a save is in progress without the notification
    being lost. Reads and writes of the file itself are not serialized.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        # Mutation notifications bump _generation; a save marks the
        # generation it observed before writing as saved.
        self._generation = 0
        self._saved_generation = 0
        self._snapshot: frozenset[Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dirty(self) -> bool:
        """True if a mutation was announced since the last save."""
        with self._lock:
            return self._generation != self._saved_generation

    def mark_dirty(self) -> None:
        """Announce that the in-memory peer mapping changed."""
        with self._lock:
            self._generation += 1

    def has_changes(self, peers: Mapping[IPAddress, Peer]) -> bool:
        """Whether ``save(peers)`` would write to disk."""
        if self.dirty:
            return True
        return self._snapshot is not None and frozenset(peers) != self._snapshot

    # ── Load ─────────────────────────────────────────────────────

    def load(self) -> dict[IPAddress, Peer]:
        """Load the peer mapping from disk.

        Raises:
            PeerStoreIOError: If the file cannot be read.
            PeerStoreSerializationError: If the file is not a JSON
                array of strings.
        """
        return self.read().peers

    def read(self) -> LoadResult:
        """Load the peers file and report dropped entries as well."""
        entries = self._decode(self._read_text())
        result = parse_entries(entries)

        for entry in result.rejected:
            logger.warning("Dropping invalid peer address %r from %s", entry, self._path)
        for entry in result.duplicates:
            logger.debug("Dropping duplicate peer address %r from %s", entry, self._path)

        self._snapshot = frozenset(result.peers)
        logger.info(
            "Loaded %d peers from %s (%d rejected, %d duplicates)",
            len(result.peers), self._path,
            len(result.rejected), len(result.duplicates),
        )
        return result

    def _read_text(self) -> str:
        try:
            return self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise PeerStoreSerializationError(
                f"Peers file {self._path} is not valid UTF-8: {e}"
            ) from e
        except OSError as e:
            raise PeerStoreIOError(f"Unable to read peers file {self._path}: {e}") from e

    def _decode(self, text: str) -> list[str]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PeerStoreSerializationError(
                f"Peers file {self._path} is not valid JSON: {e}"
            ) from e
        if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
            raise PeerStoreSerializationError(
                f"Peers file {self._path} must contain a JSON array of strings"
            )
        return data

    # ── Save ─────────────────────────────────────────────────────

    def save(self, peers: Mapping[IPAddress, Peer]) -> None:
        """Write the peer addresses to disk if anything changed.

        A change is either a pending ``mark_dirty()`` notification or,
        once the file has been loaded or saved, a key set that differs
        from the one last loaded or written. The key-set comparison
        applies even when the dirty flag is clear, so a mapping mutated
        without notification is still written. Before the first load or
        save only the flag counts.

        Raises:
            PeerStoreSerializationError: If a key is not an unscoped IP
                address.
            PeerStoreIOError: If the file cannot be written. The pending
                change stays recorded so the save can be retried.
        """
        with self._lock:
            generation = self._generation
            pending = generation != self._saved_generation

        addresses = list(peers)
        if not pending and (
            self._snapshot is None or frozenset(addresses) == self._snapshot
        ):
            logger.debug("No peer changes since last save, skipping %s", self._path)
            return

        data = self._encode(addresses)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(data, encoding="utf-8")
        except OSError as e:
            raise PeerStoreIOError(f"Unable to write peers file {self._path}: {e}") from e

        with self._lock:
            self._saved_generation = max(self._saved_generation, generation)
        self._snapshot = frozenset(addresses)
        logger.info("Saved %d peers to %s", len(addresses), self._path)

    @staticmethod
    def _encode(addresses: list[Any]) -> str:
        texts = []
        for address in addresses:
            if not isinstance(address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
                raise PeerStoreSerializationError(
                    f"Cannot encode peer key {address!r}: not an IP address"
                )
            if getattr(address, "scope_id", None):
                raise PeerStoreSerializationError(
                    f"Cannot encode peer key {address!r}: scoped IPv6 address"
                )
            texts.append(str(address))
        return json.dumps(texts, separators=(",", ":"))
