"""Sample payloads and a fake OCR service for httpx.MockTransport."""

import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.transport import HttpTransport
from paperless_ocr.config.settings import RetryPolicy

TEST_API_KEY = "sk-test-0123456789abcdef"
TEST_BASE_URL = "https://api.mistral.ai"

ResponseSpec = tuple[int, Any]


def receipt_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": "f1",
        "object": "file",
        "bytes": 12,
        "created_at": int(time.time()),
        "filename": "t.pdf",
        "purpose": "ocr",
    }
    payload.update(overrides)
    return payload


def ocr_payload(markdowns: list[str] | None = None, **overrides: Any) -> dict[str, Any]:
    markdowns = ["hello"] if markdowns is None else markdowns
    payload: dict[str, Any] = {
        "pages": [
            {
                "index": i,
                "markdown": markdown,
                "images": [],
                "dimensions": {"dpi": 200, "width": 1700, "height": 2200},
            }
            for i, markdown in enumerate(markdowns)
        ],
        "model": "mistral-ocr-2505",
        "document_annotation": None,
        "usage_info": {"pages_processed": len(markdowns), "doc_size_bytes": 12},
    }
    payload.update(overrides)
    return payload


class FakeMistral:
    """Request handler emulating the files and OCR endpoints.

    Each endpoint answers from its queue of (status, body) specs; the last
    entry repeats once the queue is drained.
    """

    def __init__(
        self,
        upload: list[ResponseSpec] | None = None,
        ocr: list[ResponseSpec] | None = None,
    ) -> None:
        self.upload_queue = list(upload or [(200, receipt_payload())])
        self.ocr_queue = list(ocr or [(200, ocr_payload())])
        self.requests: list[httpx.Request] = []
        self.upload_bodies: list[bytes] = []
        self.ocr_bodies: list[dict[str, Any]] = []

    @property
    def upload_calls(self) -> int:
        return len(self.upload_bodies)

    @property
    def ocr_calls(self) -> int:
        return len(self.ocr_bodies)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/v1/files":
            self.upload_bodies.append(request.content)
            return self._respond(self.upload_queue)
        if request.url.path == "/v1/ocr":
            self.ocr_bodies.append(json.loads(request.content))
            return self._respond(self.ocr_queue)
        return httpx.Response(404, json={"error": "Not found"})

    @staticmethod
    def _respond(queue: list[ResponseSpec]) -> httpx.Response:
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, (dict, list)):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)


def write_file(directory: Path, name: str, content: bytes) -> Path:
    path = directory / name
    path.write_bytes(content)
    return path


def make_transport(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    retry_policy: RetryPolicy | None = None,
    sleeps: list[float] | None = None,
    api_key: str = TEST_API_KEY,
    timeout_seconds: float = 5,
    clock: Callable[[], float] = time.monotonic,
) -> HttpTransport:
    recorded = sleeps if sleeps is not None else []
    return HttpTransport(
        Credentials(secret=api_key, base_url=TEST_BASE_URL),
        timeout_seconds=timeout_seconds,
        retry_policy=retry_policy or RetryPolicy(jitter_factor=0.0),
        transport=httpx.MockTransport(handler),
        sleep=recorded.append,
        rand=lambda: 0.5,
        clock=clock,
    )
