"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Dict, Generator, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microserver import MicroServer, ServerConfig
from microserver.handlers import StaticFileServer, services
from microserver.http import Dispatcher, ParamSpec, RouteRegistry, ServiceTable


# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000001e221bc33000000"
    "0049454e44ae426082"
)

INDEX_HTML = "<!DOCTYPE html>\n<html><body><h1>Bienvenido</h1></body></html>\n"


@pytest.fixture
def sample_get_request() -> bytes:
    """GET for a routed path with a query string."""
    return (
        b"GET /greeting?name=Nicolas HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_root_request() -> bytes:
    """GET for the site root."""
    return b"GET / HTTP/1.1\r\nHost: localhost:8080\r\n\r\n"


@pytest.fixture
def sample_post_request() -> bytes:
    """POST with a body (the body is never read)."""
    body = b'{"name": "Nicolas"}'
    head = (
        b"POST /greeting HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        b"Content-Length: %d\r\n"
        b"\r\n"
    ) % len(body)
    return head + body


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    """
    A static root with one file of each kind:

        index.html  about.html  logo.png  photo.JPG  notes.txt  docs/
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (root / "about.html").write_bytes("<p>Mañana es viernes</p>\n".encode("utf-8"))
    (root / "logo.png").write_bytes(PNG_BYTES)
    (root / "photo.JPG").write_bytes(b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9")
    (root / "notes.txt").write_bytes(b"plain\x00bytes\n")
    (root / "docs").mkdir()
    return root


@pytest.fixture
def registry() -> RouteRegistry:
    """The demo services."""
    return RouteRegistry.build(services.declarations())


@pytest.fixture
def dispatcher(registry: RouteRegistry, static_root: Path) -> Dispatcher:
    return Dispatcher(registry, StaticFileServer(static_root))


CUSTOM_SERVICES_SOURCE = '''
from microserver.http import ParamSpec, ServiceTable

table = ServiceTable()


@table.get("/ping")
def ping():
    return "pong"


@table.get("/twice", ParamSpec("word", "eco"))
def twice(word):
    return word + word


def make_table():
    return table


not_a_table = 42
'''


@pytest.fixture
def custom_services_module(tmp_path: Path, monkeypatch) -> Generator[str, None, None]:
    """
    Name of an importable module declaring a ServiceTable "table"
    (/ping, /twice), a factory "make_table" and a non-table "not_a_table".
    """
    name = "custom_services"
    package_dir = tmp_path / "importable"
    package_dir.mkdir()
    (package_dir / f"{name}.py").write_text(CUSTOM_SERVICES_SOURCE, encoding="utf-8")

    monkeypatch.syspath_prepend(str(package_dir))
    monkeypatch.delitem(sys.modules, name, raising=False)
    yield name
    sys.modules.pop(name, None)


def build_test_registry() -> RouteRegistry:
    """Demo services plus routes that misbehave on purpose."""
    table = ServiceTable()
    for route in services.declarations():
        table.add(route.path, route.handler, route.params, route.name)

    @table.get("/boom")
    def boom():
        raise RuntimeError("handler exploded")

    @table.get("/echo", ParamSpec("a", "1"), ParamSpec("b", "2"))
    def echo(a, b):
        return f"{a}-{b}"

    return RouteRegistry.build(table.declarations())


# =============================================================================
# RAW CLIENT
# =============================================================================

def send_raw(address: Tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, read until the server closes the connection."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def parse_response(raw: bytes) -> Tuple[int, Dict[str, str], bytes]:
    """Split a raw response into (status code, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status_code = int(lines[0].split(" ", 2)[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status_code, headers, body


def http_get(address: Tuple[str, int], target: str, method: str = "GET") -> Tuple[int, Dict[str, str], bytes]:
    raw = f"{method} {target} HTTP/1.1\r\nHost: test\r\n\r\n".encode("utf-8")
    return parse_response(send_raw(address, raw))


# =============================================================================
# LIVE SERVER
# =============================================================================

class LiveServer:
    """Runs a MicroServer in a background thread on an OS-assigned port."""

    def __init__(self, server: MicroServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def get(self, target: str, method: str = "GET") -> Tuple[int, Dict[str, str], bytes]:
        return http_get(self.address, target, method)

    def send(self, data: bytes) -> bytes:
        """Raw bytes in, raw response bytes out."""
        return send_raw(self.address, data)

    def request(self, data: bytes) -> Tuple[int, Dict[str, str], bytes]:
        return parse_response(self.send(data))


def _live_config(static_root: Path, **overrides) -> ServerConfig:
    options = dict(
        host="127.0.0.1",
        port=0,
        static_dir=str(static_root),
        timeout=2.0,
        log_level="WARNING",
    )
    options.update(overrides)
    return ServerConfig(**options)


@pytest.fixture
def live_server(static_root: Path) -> Generator[LiveServer, None, None]:
    """Serial server with the demo services plus /boom and /echo."""
    live = LiveServer(MicroServer(_live_config(static_root), registry=build_test_registry()))
    live.start()
    yield live
    live.stop()


@pytest.fixture
def threaded_live_server(static_root: Path) -> Generator[LiveServer, None, None]:
    """Thread-per-connection server."""
    live = LiveServer(MicroServer(
        _live_config(static_root, threaded=True),
        registry=build_test_registry(),
    ))
    live.start()
    yield live
    live.stop()


@pytest.fixture
def short_timeout_server(static_root: Path) -> Generator[LiveServer, None, None]:
    """Serial server with a 0.3 s client timeout."""
    live = LiveServer(MicroServer(
        _live_config(static_root, timeout=0.3),
        registry=build_test_registry(),
    ))
    live.start()
    yield live
    live.stop()


@pytest.fixture
def custom_services_server(static_root: Path, custom_services_module: str) -> Generator[LiveServer, None, None]:
    """Server whose routes come from config.services instead of a registry."""
    live = LiveServer(MicroServer(
        _live_config(static_root, services=f"{custom_services_module}:table"),
    ))
    live.start()
    yield live
    live.stop()
