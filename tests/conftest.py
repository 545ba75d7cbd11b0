"""
Pytest configuration and fixtures.

Add any shared fixtures or pytest configuration here.
"""

import json
import logging
import os
import socket
import sys
from pathlib import Path

import httpx
import pytest

from pyphantom import Process
from pyphantom._internal.rpc_transports import HTTPTransport

HARNESS_DIR = Path(__file__).parent / "harness"
FAKE_PHANTOMJS = HARNESS_DIR / "fake_phantomjs.py"


PYPHANTOM_LOGGERS = ("pyphantom", "tests.phantomjs")


def pytest_configure(config):
    """Route pyphantom's loggers to stdout; DEBUG shows readiness polling and RPC calls."""
    log_level = logging.DEBUG if config.getoption("--debug-pyphantom") else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    for name in PYPHANTOM_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def pytest_addoption(parser):
    parser.addoption(
        "--debug-pyphantom",
        action="store_true",
        default=False,
        help="Enable debug logging for pyphantom (shows readiness polling and RPC calls)",
    )


class ScriptedRemote:
    """Stands in for the control script behind an ``httpx.MockTransport``.

    ``answers`` maps a request path to either a JSON-serialisable body (sent
    with status 200) or an ``httpx.Response``. Unknown paths answer 404 the
    way the control script does. Every request is recorded in ``requests``
    as ``(path, decoded_json_body_or_None)``.
    """

    def __init__(self):
        self.answers = {}
        self.requests = []

    def answer(self, path, body=None, *, status=200, text=None):
        if text is not None:
            self.answers[path] = httpx.Response(status, text=text)
        else:
            self.answers[path] = httpx.Response(status, json=body if body is not None else {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((path, body))
        if path not in self.answers:
            return httpx.Response(404, json={"url": path, "error": "not found"})
        return self.answers[path]

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture
def remote():
    return ScriptedRemote()


@pytest.fixture
def mock_client(remote):
    client = httpx.Client(transport=httpx.MockTransport(remote.handler))
    yield client
    client.close()


@pytest.fixture
def scripted_process(mock_client):
    """A never-launched Process whose RPC calls are answered by ``remote``."""
    transport = HTTPTransport("http://localhost:20202", client=mock_client)
    return Process({"port": 20202}, transport=transport)


@pytest.fixture
def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def fake_phantomjs(tmp_path):
    """Path to an executable that serves the control protocol like phantomjs would."""
    if os.name == "nt":
        pytest.skip("fake binary relies on a shebang line")
    wrapper = tmp_path / "bin" / "phantomjs"
    wrapper.parent.mkdir()
    wrapper.write_text(f"#!{sys.executable}\n" + FAKE_PHANTOMJS.read_text(encoding="utf-8"), encoding="utf-8")
    wrapper.chmod(0o755)
    return wrapper
