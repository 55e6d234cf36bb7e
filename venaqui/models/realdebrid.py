"""
Pydantic models for the Real-Debrid REST API payloads used by the resolver.
"""

from pydantic import BaseModel, Field


class _APIModel(BaseModel):
    class Config:
        """Tolerate fields the resolver does not use."""

        extra = "ignore"
        populate_by_name = True


class UnrestrictedLink(_APIModel):
    """Response of ``POST /unrestrict/link``."""

    id: str = ""
    filename: str = ""
    mime_type: str = Field("", alias="mimeType")
    filesize: int = 0
    link: str = ""
    host: str = ""
    chunks: int = 0
    download: str = ""

    @property
    def direct_url(self) -> str:
        """The generated download URL; older answers only carry ``link``."""
        return self.download or self.link


class TorrentFile(_APIModel):
    """A single file inside a Real-Debrid torrent."""

    id: int
    path: str = ""
    bytes: int = 0
    selected: int = 0


class TorrentInfo(_APIModel):
    """Response of ``GET /torrents/info/{id}``."""

    id: str
    filename: str = ""
    # magnet_conversion, waiting_files_selection, queued, downloading,
    # downloaded, error, virus, compressing, uploading, dead
    status: str = ""
    files: list[TorrentFile] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    progress: float = 0.0


class AddTorrentResponse(_APIModel):
    """Response of ``PUT /torrents/addTorrent`` and ``POST /torrents/addMagnet``."""

    id: str
    uri: str = ""
