"""Shared pytest fixtures for venaqui tests."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from venaqui.core import monitor
from venaqui.models.status import DownloadStatus, TransferFile


async def _serve(routes, scenario):
    """Runs ``scenario(base_url)`` against an in-process aiohttp server."""
    app = web.Application()
    app.add_routes(routes)
    server = TestServer(app)
    await server.start_server()
    try:
        return await scenario(str(server.make_url("")).rstrip("/"))
    finally:
        await server.close()


@pytest.fixture
def serve():
    """Helper that serves aiohttp routes for the duration of a coroutine."""
    return _serve


@pytest.fixture
def make_status():
    """Factory for aria2 status samples with sensible defaults."""

    def _make(
        status="active",
        total=1_000_000,
        completed=0,
        speed=0,
        path="/downloads/file.zip",
        **kwargs,
    ):
        files = (TransferFile(path=path),) if path is not None else ()
        return DownloadStatus(
            gid="2089b05ecca3d829",
            status=status,
            total_length=total,
            completed_length=completed,
            download_speed=speed,
            files=files,
            **kwargs,
        )

    return _make


@pytest.fixture
def started_state():
    """A freshly started monitor state and the effects it requested."""
    return monitor.start("2089b05ecca3d829", "file.zip", now=100.0)
