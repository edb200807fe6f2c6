"""
Shared pytest fixtures for all tests.

Provides the echo service (in-process through httpx.ASGITransport, or served
by uvicorn on a local port), proxies bound to it and attachment fixtures.
"""

import os
import socket
import threading
import time
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

from echo_service import create_app
from kilo import WebServiceProxy

ECHO_BASE_URL = "http://test/kilo-test/"

TEXT_FIXTURE = b"abcdefghijklmnopqrstuvwxyz"
BINARY_FIXTURE_SIZE = 10392


class RecordingEmitter:
    def __init__(self):
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture(scope="session")
def echo_app():
    """The Starlette echo application."""
    return create_app()


@pytest_asyncio.fixture
async def echo_client(echo_app):
    """AsyncClient talking to the echo app in-process."""
    transport = ASGITransport(app=echo_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest_asyncio.fixture
async def proxy(echo_client, emitter):
    """WebServiceProxy bound to the in-process echo app."""
    return WebServiceProxy(echo_client, ECHO_BASE_URL, timeout=4, emitter=emitter)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture(scope="session")
def echo_server_url(echo_app):
    """Base URL of the echo app served over a real socket.

    KILO_TEST_SERVER_URL points the tests at an already running server.
    """
    url = os.environ.get("KILO_TEST_SERVER_URL")
    if url:
        yield url
        return

    import uvicorn

    port = _free_port()
    config = uvicorn.Config(echo_app, host="127.0.0.1", port=port, log_level="warning")
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + 10
    while not server.started:
        if time.monotonic() > deadline or not thread.is_alive():
            pytest.skip("echo server did not start")
        time.sleep(0.01)

    yield f"http://127.0.0.1:{port}/kilo-test/"

    server.should_exit = True
    thread.join(timeout=5)


@pytest.fixture
def attachment_files(tmp_path):
    """A 26-byte text file and a 10392-byte binary file."""
    text_path = tmp_path / "test.txt"
    text_path.write_bytes(TEXT_FIXTURE)

    binary_path = tmp_path / "test.jpg"
    binary_path.write_bytes(bytes((i * 7) % 256 for i in range(BINARY_FIXTURE_SIZE)))

    return text_path, binary_path
