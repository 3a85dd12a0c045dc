import socket
import threading
import time
from collections.abc import Iterator
from contextlib import nullcontext

import pytest

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.transport import HttpTransport
from paperless_ocr.config.settings import RetryPolicy
from paperless_ocr.exceptions import NetworkError
from tests.helpers import TEST_API_KEY


def _serve_one_byte_at_a_time(server: socket.socket, body_length: int, interval: float) -> None:
    try:
        conn, _addr = server.accept()
    except OSError:
        return
    with conn:
        try:
            conn.recv(65536)
            conn.sendall(f"HTTP/1.1 200 OK\r\nContent-Length: {body_length}\r\n\r\n".encode())
            for _ in range(body_length):
                time.sleep(interval)
                conn.sendall(b"x")
        except OSError:
            pass


@pytest.fixture
def trickling_server(monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    """Local HTTP server whose body arrives one byte every 0.6s."""
    for name in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(name, raising=False)
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    port = server.getsockname()[1]
    worker = threading.Thread(
        target=_serve_one_byte_at_a_time, args=(server, 8, 0.6), daemon=True
    )
    worker.start()
    yield f"http://127.0.0.1:{port}"
    server.close()
    worker.join(timeout=10)


class TestSlowResponseBody:
    def test_trickling_body_is_bounded_by_timeout(self, trickling_server: str) -> None:
        transport = HttpTransport(
            Credentials(secret=TEST_API_KEY, base_url=trickling_server),
            timeout_seconds=1,
            retry_policy=RetryPolicy(max_retries=0),
        )

        started = time.monotonic()
        with transport:
            with pytest.raises(NetworkError, match="Request timed out"):
                transport.send(lambda: nullcontext(transport.build_request("GET", "/v1/models")))

        assert time.monotonic() - started < 3
