"""Networking layer — peer model and the in-memory peer book."""

from peerstore.network.peer import Peer, PeerState
from peerstore.network.peerbook import PeerBook

__all__ = ["Peer", "PeerState", "PeerBook"]
