import random
import time
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from typing import Any

import httpx

from paperless_ocr import __version__
from paperless_ocr.api.credentials import Credentials
from paperless_ocr.api.errors import TRANSIENT_STATUSES
from paperless_ocr.config.settings import RetryPolicy
from paperless_ocr.exceptions import InternalError, NetworkError
from paperless_ocr.logging.logger import Log

# Builds one fresh request per attempt; the context closes whatever backs the body.
RequestProducer = Callable[[], AbstractContextManager[httpx.Request]]

_TRANSIENT_ERRORS = (httpx.NetworkError, httpx.TimeoutException, httpx.RemoteProtocolError)


class _DeadlineStream(httpx.SyncByteStream):
    """Response body that fails once the attempt's deadline has passed."""

    def __init__(
        self,
        inner: httpx.SyncByteStream,
        request: httpx.Request,
        deadline: float,
        clock: Callable[[], float],
    ) -> None:
        self._inner = inner
        self._request = request
        self._deadline = deadline
        self._clock = clock

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self._inner:
            if self._clock() > self._deadline:
                raise httpx.ReadTimeout(
                    "Response not completed within the request timeout", request=self._request
                )
            yield chunk

    def close(self) -> None:
        self._inner.close()


class HttpTransport:
    """One configured HTTP client with a bounded retry loop.

    Retries cover HTTP 429/502/503/504 and transient transport errors.
    Anything else is returned (responses) or raised (errors) on first sight.

    ``timeout_seconds`` bounds each phase of an attempt (connect, write,
    read, pool) and also the whole attempt, body included: a response still
    trickling in after that long fails with ``httpx.ReadTimeout``.
    """

    ACCEPT_ENCODING = "gzip, deflate, br"

    def __init__(
        self,
        credentials: Credentials,
        *,
        timeout_seconds: float,
        retry_policy: RetryPolicy,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rand: Callable[[], float] = random.random,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._credentials = credentials
        self._timeout_seconds = timeout_seconds
        self._retry_policy = retry_policy
        self._sleep = sleep
        self._rand = rand
        self._clock = clock
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
            headers={
                "Authorization": credentials.auth_header(),
                "Accept-Encoding": self.ACCEPT_ENCODING,
                "User-Agent": f"paperless-ngx-ocr2/{__version__}",
            },
        )

    @property
    def max_attempts(self) -> int:
        return self._retry_policy.max_retries + 1

    def build_request(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Request:
        return self._client.build_request(method, self._credentials.url_for(endpoint), **kwargs)

    def send(self, produce: RequestProducer) -> httpx.Response:
        """Send the produced request, retrying transient failures.

        Returns the first non-transient response, or the last transient one
        once retries are exhausted.

        Raises:
            NetworkError: on a transport failure that is not retried or
                that persists through every attempt.
        """
        total = self.max_attempts
        for attempt in range(1, total + 1):
            try:
                with produce() as request:
                    Log.debug(
                        f"API request: {request.method} {request.url} "
                        f"(attempt {attempt}/{total}, auth: {self._credentials.redacted()})"
                    )
                    response = self._send_once(request)
            except _TRANSIENT_ERRORS as exc:
                if attempt >= total:
                    raise NetworkError(
                        f"{_describe(exc)} after {attempt} attempt(s)", detail=repr(exc)
                    ) from exc
                self._back_off(attempt, total, type(exc).__name__)
                continue
            except httpx.HTTPError as exc:
                raise NetworkError(_describe(exc), detail=repr(exc)) from exc

            self._log_response(response)
            if response.status_code in TRANSIENT_STATUSES and attempt < total:
                self._back_off(attempt, total, f"HTTP {response.status_code}")
                continue
            return response
        raise InternalError("Retry loop finished without a response")

    def _send_once(self, request: httpx.Request) -> httpx.Response:
        deadline = self._clock() + self._timeout_seconds
        response = self._client.send(request, stream=True)
        response.stream = _DeadlineStream(response.stream, request, deadline, self._clock)
        try:
            response.read()
        finally:
            response.close()
        return response

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _back_off(self, attempt: int, total: int, reason: str) -> None:
        delay = self._retry_policy.delay_for(attempt, self._rand)
        Log.warning(
            f"Transient failure ({reason}), retrying in {int(delay * 1000)}ms "
            f"(attempt {attempt}/{total})"
        )
        self._sleep(delay)

    @staticmethod
    def _log_response(response: httpx.Response) -> None:
        encoding = response.headers.get("content-encoding")
        compression = f"compressed with {encoding}" if encoding else "uncompressed"
        Log.debug(
            f"API response: {response.status_code} ({len(response.content)} bytes, {compression})"
        )


def _describe(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.TimeoutException):
        kind = "Request timed out"
    elif isinstance(exc, httpx.ConnectError):
        kind = "Connection failed"
    else:
        kind = "Request failed"
    try:
        target = f" ({exc.request.method} {exc.request.url})"
    except RuntimeError:
        target = ""
    return f"{kind}{target}: {exc}"
