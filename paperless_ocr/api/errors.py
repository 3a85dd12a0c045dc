"""Maps non-2xx responses from the OCR service onto the error taxonomy."""

import json

import httpx

from paperless_ocr.exceptions import ApiError, InternalError, InvalidInputError, NetworkError

TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})


def parse_error_body(body: str) -> tuple[str, str | None]:
    """Best-effort extraction of (message, details) from an error response body."""
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("error")
        if not isinstance(message, str) or not message:
            message = payload.get("message")
        details = payload.get("details")
        if isinstance(message, str) and message:
            return message, details if isinstance(details, str) else None
    text = body.strip()
    return (text or "Unknown error"), None


def raise_for_response(response: httpx.Response, *, attempts: int = 1) -> None:
    """Raise the taxonomy error matching a non-2xx response; return on 2xx.

    Transient statuses only reach here once the retry loop gave up. Redirects
    are not followed, so a 3xx from the service is an API failure.
    """
    if response.is_success:
        return
    status = response.status_code
    message, details = parse_error_body(response.text)

    if status in TRANSIENT_STATUSES:
        reason = "Rate limit exceeded" if status == 429 else "Service unavailable"
        raise NetworkError(
            f"{reason} (HTTP {status}) after {attempts} attempt(s): {message}",
            detail=details,
        )
    if 300 <= status < 400:
        raise ApiError(f"Unexpected redirect ({status}): {message}", detail=details)
    if status == 400:
        raise InvalidInputError(f"Client error ({status}): {message}", detail=details)
    if 400 <= status < 500:
        raise ApiError(f"Client error ({status}): {message}", detail=details)
    if status >= 500:
        raise ApiError(f"Server error ({status}): {message}", detail=details)
    raise InternalError(f"Unexpected HTTP status ({status}): {message}", detail=details)
