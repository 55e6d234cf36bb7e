import os
from pathlib import Path

import pytest

from venaqui.exceptions import InvalidLinkError, InvalidPathError
from venaqui.utils.path import (
    create_dir,
    default_download_dir,
    filename_from_url,
    is_magnet_link,
    is_torrent_link,
    normalize_path,
    validate_link,
    validate_path,
    validate_url,
)


class TestValidateUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "http://example.com/file.zip",
            "https://example.com/file.zip",
            "https://example.com/path/to/file.zip",
            "https://example.com/file.zip?token=abc123",
        ],
    )
    def test_valid(self, url):
        validate_url(url)

    @pytest.mark.parametrize(
        "url, message",
        [
            ("", "URL cannot be empty"),
            ("example.com/file.zip", "URL must have a scheme"),
            ("http:///file.zip", "URL must have a host"),
            ("not a url", "URL must have a scheme"),
        ],
    )
    def test_invalid(self, url, message):
        with pytest.raises(InvalidLinkError, match=message):
            validate_url(url)


class TestLinkKinds:
    def test_magnet(self):
        assert is_magnet_link("magnet:?xt=urn:btih:abcdef")
        assert is_magnet_link("  MAGNET:?xt=urn:btih:abcdef")
        assert not is_magnet_link("https://example.com/magnet")

    @pytest.mark.parametrize(
        "link, expected",
        [
            ("https://example.com/file.torrent", True),
            ("https://example.com/file.torrent?x=1", True),
            ("https://example.com/file.zip", False),
            ("/home/me/file.TORRENT", True),
            ("file.zip", False),
        ],
    )
    def test_torrent(self, link, expected):
        assert is_torrent_link(link) is expected

    def test_validate_link_accepts_magnet(self):
        validate_link("magnet:?xt=urn:btih:abcdef")

    def test_validate_link_local_torrent(self, tmp_path):
        torrent = tmp_path / "linux.torrent"
        torrent.write_bytes(b"d8:announce0:e")
        validate_link(str(torrent))
        with pytest.raises(InvalidLinkError, match="torrent file does not exist"):
            validate_link(str(tmp_path / "missing.torrent"))

    def test_validate_link_rejects_bare_words(self):
        with pytest.raises(InvalidLinkError):
            validate_link("not a url")


class TestNormalizePath:
    def test_tilde_expansion(self):
        home = os.path.expanduser("~")
        assert normalize_path("~/Downloads/test") == os.path.join(
            home, "Downloads", "test"
        )

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/tmp/test", "/tmp/test"),
            ("/tmp/../tmp/test", "/tmp/test"),
            ("/tmp//test", "/tmp/test"),
        ],
    )
    @pytest.mark.skipif(os.name == "nt", reason="POSIX paths")
    def test_cleanup(self, raw, expected):
        assert normalize_path(raw) == expected


class TestValidatePath:
    def test_empty(self):
        with pytest.raises(InvalidPathError, match="empty"):
            validate_path("")

    def test_relative(self):
        with pytest.raises(InvalidPathError, match="absolute"):
            validate_path("relative/path")

    def test_existing_writable_directory(self, tmp_path):
        validate_path(str(tmp_path))

    def test_new_directory_under_writable_parent(self, tmp_path):
        validate_path(str(tmp_path / "new"))

    def test_parent_missing(self, tmp_path):
        with pytest.raises(InvalidPathError, match="parent directory does not exist"):
            validate_path(str(tmp_path / "missing" / "child"))

    def test_existing_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(InvalidPathError, match="not a directory"):
            validate_path(str(target))

    @pytest.mark.skipif(
        os.name == "nt" or os.geteuid() == 0, reason="permissions are not enforced"
    )
    def test_non_writable_directory(self, tmp_path):
        locked = tmp_path / "locked"
        locked.mkdir(mode=0o555)
        try:
            with pytest.raises(InvalidPathError, match="not writable"):
                validate_path(str(locked))
        finally:
            locked.chmod(0o755)


def test_create_dir(tmp_path):
    target = tmp_path / "a" / "b"
    create_dir(target)
    assert target.is_dir()
    create_dir(target)


def test_create_dir_failure(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(InvalidPathError, match="failed to create"):
        create_dir(blocker / "child")


def test_default_download_dir():
    assert default_download_dir() == str(Path.home() / "Downloads")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://dl.example.com/d/ABC/My%20File.zip", "My File.zip"),
        ("https://dl.example.com/", "download"),
        ("https://dl.example.com/d/a%3Ab.txt?x=1", "ab.txt"),
    ],
)
def test_filename_from_url(url, expected):
    assert filename_from_url(url) == expected
