"""
Snapshot of an aria2 transfer as reported by ``aria2.tellStatus``.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

STATUS_KEYS = (
    "gid",
    "status",
    "totalLength",
    "completedLength",
    "downloadSpeed",
    "uploadSpeed",
    "connections",
    "numPieces",
    "pieceLength",
    "dir",
    "files",
    "errorMessage",
)


class DownloadState(str, Enum):
    """Transfer states reported verbatim by the daemon."""

    ACTIVE = "active"
    WAITING = "waiting"
    PAUSED = "paused"
    COMPLETE = "complete"
    ERROR = "error"
    REMOVED = "removed"


@dataclass(frozen=True)
class TransferFile:
    """One file of a transfer: its local path and the URIs it is fetched from."""

    path: str = ""
    uris: tuple[str, ...] = ()


@dataclass(frozen=True)
class DownloadStatus:
    """Immutable status sample for one GID."""

    gid: str = ""
    status: str = ""
    total_length: int = 0
    completed_length: int = 0
    download_speed: int = 0
    upload_speed: int = 0
    connections: int = 0
    num_pieces: int = 0
    piece_length: int = 0
    dir: str = ""
    files: tuple[TransferFile, ...] = field(default_factory=tuple)
    error_message: str = ""

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> "DownloadStatus":
        """Builds a status from a ``tellStatus`` result (numbers arrive as strings)."""

        def _int(key: str) -> int:
            try:
                return int(payload.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        files = tuple(
            TransferFile(
                path=f.get("path", ""),
                uris=tuple(u.get("uri", "") for u in f.get("uris", [])),
            )
            for f in payload.get("files", [])
        )
        return cls(
            gid=payload.get("gid", ""),
            status=payload.get("status", ""),
            total_length=_int("totalLength"),
            completed_length=_int("completedLength"),
            download_speed=_int("downloadSpeed"),
            upload_speed=_int("uploadSpeed"),
            connections=_int("connections"),
            num_pieces=_int("numPieces"),
            piece_length=_int("pieceLength"),
            dir=payload.get("dir", ""),
            files=files,
            error_message=payload.get("errorMessage", ""),
        )

    @property
    def progress(self) -> float:
        return progress_percent(self.total_length, self.completed_length)

    @property
    def eta(self) -> int | None:
        return estimate_eta(
            self.total_length, self.completed_length, self.download_speed
        )

    @property
    def remaining(self) -> int:
        return max(0, self.total_length - self.completed_length)

    @property
    def is_complete(self) -> bool:
        return self.status == DownloadState.COMPLETE

    @property
    def is_error(self) -> bool:
        return self.status == DownloadState.ERROR

    @property
    def is_active(self) -> bool:
        return self.status == DownloadState.ACTIVE

    @property
    def file_path(self) -> str:
        """
        Path of the main (first) file, falling back to its first source URI
        when aria2 has not assigned a path yet.
        """
        if not self.files:
            return ""
        first = self.files[0]
        if first.path:
            return first.path
        return first.uris[0] if first.uris else ""

    @property
    def file_directory(self) -> str:
        if self.dir:
            return self.dir
        if path := self.file_path:
            return os.path.dirname(path)
        return ""


def progress_percent(total_length: int, completed_length: int) -> float:
    """Completion percentage; 0 when the total size is still unknown."""
    if total_length == 0:
        return 0.0
    return completed_length / total_length * 100


def estimate_eta(
    total_length: int, completed_length: int, download_speed: int
) -> int | None:
    """
    Seconds until completion at the current speed.

    Returns None when the ETA is indeterminate (no speed or unknown size).
    """
    if download_speed == 0 or total_length == 0:
        return None
    remaining = total_length - completed_length
    if remaining <= 0:
        return 0
    return remaining // download_speed
