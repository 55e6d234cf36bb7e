"""
Data Models Layer.

This package contains the models that define the core data structures
used throughout the application: configuration, Real-Debrid payloads and
aria2 transfer status.
"""

from .config import AppConfig
from .realdebrid import AddTorrentResponse, TorrentFile, TorrentInfo, UnrestrictedLink
from .status import DownloadState, DownloadStatus, TransferFile

__all__ = [
    "AddTorrentResponse",
    "AppConfig",
    "DownloadState",
    "DownloadStatus",
    "TorrentFile",
    "TorrentInfo",
    "TransferFile",
    "UnrestrictedLink",
]
