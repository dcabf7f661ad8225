"""Storage layer — JSON persistence of known peers."""

from peerstore.storage.peerfile import LoadResult, PeersFileController

__all__ = ["LoadResult", "PeersFileController"]
