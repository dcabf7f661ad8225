"""peerstore — file-backed persistence for a node's known peers."""

from peerstore.errors import (
    IpAddressFormatError,
    PeerStoreError,
    PeerStoreIOError,
    PeerStoreSerializationError,
)
from peerstore.network.peer import Peer, PeerState
from peerstore.network.peerbook import PeerBook
from peerstore.storage.peerfile import LoadResult, PeersFileController

__version__ = "0.1.0"

__all__ = [
    "IpAddressFormatError",
    "LoadResult",
    "Peer",
    "PeerBook",
    "PeerState",
    "PeerStoreError",
    "PeerStoreIOError",
    "PeerStoreSerializationError",
    "PeersFileController",
]
