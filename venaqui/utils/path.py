"""
Utilities for validating links and download directories.
"""

import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from pathvalidate import sanitize_filename

from venaqui.exceptions import InvalidLinkError, InvalidPathError


def validate_url(url: str) -> None:
    """
    Checks that a link is an absolute URL.

    Raises:
        InvalidLinkError: If the URL is empty or lacks a scheme or host.
    """
    if not url:
        raise InvalidLinkError("URL cannot be empty")
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidLinkError(f"invalid URL: {e}") from e
    if not parsed.scheme:
        raise InvalidLinkError("URL must have a scheme (http:// or https://)")
    if not parsed.netloc:
        raise InvalidLinkError("URL must have a host")


def is_magnet_link(link: str) -> bool:
    return link.strip().lower().startswith("magnet:?")


def is_torrent_link(link: str) -> bool:
    """True for remote or local paths pointing at a .torrent file."""
    path = urlparse(link).path if "://" in link else link
    return path.lower().endswith(".torrent")


def validate_link(link: str) -> None:
    """Accepts magnets, local .torrent files, or absolute URLs."""
    if is_magnet_link(link):
        return
    if is_torrent_link(link) and "://" not in link:
        if not Path(normalize_path(link)).is_file():
            raise InvalidLinkError(f"torrent file does not exist: {link}")
        return
    validate_url(link)


def normalize_path(path: str) -> str:
    """Expands a leading '~' and collapses redundant separators and '..'."""
    return os.path.normpath(os.path.expanduser(path))


def default_download_dir() -> str:
    """The user's Downloads folder, on every platform."""
    return str(Path.home() / "Downloads")


def _is_writable_dir(path: Path) -> bool:
    return os.access(path, os.W_OK)


def validate_path(path: str) -> None:
    """
    Checks that a download directory is usable.

    The path must be absolute. If it exists it must be a writable directory,
    otherwise its parent must be a writable directory so it can be created.

    Raises:
        InvalidPathError: Describing the first problem found.
    """
    if not path:
        raise InvalidPathError("path cannot be empty")

    clean = Path(os.path.normpath(path))
    if not clean.is_absolute():
        raise InvalidPathError(f"path must be absolute: {clean}")

    if clean.exists():
        if not clean.is_dir():
            raise InvalidPathError(f"path exists but is not a directory: {clean}")
        if not _is_writable_dir(clean):
            raise InvalidPathError(f"directory exists but is not writable: {clean}")
        return

    parent = clean.parent
    if not parent.exists():
        raise InvalidPathError(f"parent directory does not exist: {parent}")
    if not parent.is_dir():
        raise InvalidPathError(f"parent path is not a directory: {parent}")
    if not _is_writable_dir(parent):
        raise InvalidPathError(f"parent directory is not writable: {parent}")


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    try:
        directory_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InvalidPathError(
            f"failed to create download directory {directory_path}: {e}"
        ) from e


def filename_from_url(url: str) -> str:
    """Derives a safe display filename from the last path segment of a URL."""
    name = unquote(os.path.basename(urlparse(url).path))
    return sanitize_filename(name) or "download"
