"""Validates parsed OCR service JSON against domain invariants."""

import json
import re
from typing import Any

from paperless_ocr.api.models import (
    OcrPage,
    OcrResult,
    OcrUsage,
    PageDimensions,
    UploadReceipt,
)
from paperless_ocr.exceptions import ResponseValidationError
from paperless_ocr.logging.logger import Log

_FILE_ID_PATTERN = re.compile(r"[A-Za-z0-9_\-]+")
_VALID_STATUSES = ("uploaded", "processing", "processed", "error")
_MAX_FUTURE_SKEW_SECONDS = 3600
_LARGE_UPLOAD_BYTES = 1024 * 1024 * 1024
_DPI_RANGE = (50, 600)


def build_upload_receipt(data: Any, *, now: float) -> UploadReceipt:
    """Validate a parsed upload response and build an UploadReceipt.

    Raises:
        ResponseValidationError: on any invariant violation.
    """
    if not isinstance(data, dict):
        raise ResponseValidationError("Upload response must be a JSON object")

    file_id = data.get("id")
    if not isinstance(file_id, str) or not file_id:
        raise ResponseValidationError("File ID cannot be empty")
    if not _FILE_ID_PATTERN.fullmatch(file_id):
        raise ResponseValidationError(
            f"Invalid file ID format: '{file_id}' contains invalid characters"
        )

    obj = data.get("object")
    if obj != "file":
        raise ResponseValidationError(f"Object must be 'file', got {obj!r}")

    size = _require_int(data, "bytes")
    if size <= 0:
        raise ResponseValidationError("File size must be positive")
    if size > _LARGE_UPLOAD_BYTES:
        Log.warning(f"Very large file uploaded: {size} bytes")

    created_at = _require_int(data, "created_at")
    if created_at <= 0:
        raise ResponseValidationError("Created timestamp must be positive")
    if created_at > now + _MAX_FUTURE_SKEW_SECONDS:
        raise ResponseValidationError(
            f"Created timestamp is too far in the future: {created_at}"
        )

    filename = data.get("filename")
    if not isinstance(filename, str) or not filename:
        raise ResponseValidationError("Filename cannot be empty")
    if "/" in filename or "\\" in filename:
        raise ResponseValidationError(
            f"Filename cannot contain path separators: '{filename}'"
        )

    purpose = data.get("purpose")
    if purpose != "ocr":
        raise ResponseValidationError(f"Purpose must be 'ocr', got {purpose!r}")

    status = data.get("status")
    if status is not None and status not in _VALID_STATUSES:
        raise ResponseValidationError(
            f"Invalid status {status!r}, must be one of: {', '.join(_VALID_STATUSES)}"
        )

    return UploadReceipt(
        id=file_id,
        object=obj,
        bytes=size,
        created_at=created_at,
        filename=filename,
        purpose=purpose,
        status=status,
    )


def build_ocr_result(data: Any) -> OcrResult:
    """Validate a parsed OCR response and build an OcrResult.

    Raises:
        ResponseValidationError: on any invariant violation.
    """
    if not isinstance(data, dict):
        raise ResponseValidationError("OCR response must be a JSON object")

    model = data.get("model")
    if not isinstance(model, str) or not model:
        raise ResponseValidationError("Response model cannot be empty")
    if not model.startswith("mistral-"):
        raise ResponseValidationError(
            f"Invalid model name format: expected 'mistral-*', got '{model}'"
        )

    raw_pages = data.get("pages")
    if not isinstance(raw_pages, list) or not raw_pages:
        raise ResponseValidationError("Response must contain at least one page")
    pages = tuple(_build_page(raw, i) for i, raw in enumerate(raw_pages))

    usage = _build_usage(data.get("usage_info"), len(pages))
    return OcrResult(
        model=model,
        pages=pages,
        usage=usage,
        document_annotation=_build_annotation(data.get("document_annotation")),
    )


def _build_page(raw: Any, position: int) -> OcrPage:
    if not isinstance(raw, dict):
        raise ResponseValidationError(f"Page at position {position} must be an object")
    index = _require_int(raw, "index", f"pages[{position}]")
    if index != position:
        raise ResponseValidationError(
            f"Page index mismatch: expected {position}, got {index}"
        )

    markdown = raw.get("markdown", "")
    if not isinstance(markdown, str):
        raise ResponseValidationError(f"Page {index}: 'markdown' must be a string")
    if not markdown:
        Log.warning(f"Page {index} has empty markdown content")

    images = raw.get("images") or []
    if not isinstance(images, list):
        raise ResponseValidationError(f"Page {index}: 'images' must be a list")

    return OcrPage(
        index=index,
        markdown=markdown,
        dimensions=_build_dimensions(raw.get("dimensions"), index),
        images=tuple(images),
    )


def _build_dimensions(raw: Any, page_index: int) -> PageDimensions:
    if not isinstance(raw, dict):
        raise ResponseValidationError(f"Page {page_index}: 'dimensions' must be an object")
    where = f"pages[{page_index}].dimensions"
    width = _require_int(raw, "width", where)
    height = _require_int(raw, "height", where)
    if width <= 0 or height <= 0:
        raise ResponseValidationError(
            f"Invalid page dimensions: width={width}, height={height}"
        )
    dpi = raw.get("dpi")
    if dpi is None:
        dpi = 0
    elif not isinstance(dpi, int) or isinstance(dpi, bool):
        raise ResponseValidationError(f"{where}.dpi must be an integer")
    elif not _DPI_RANGE[0] <= dpi <= _DPI_RANGE[1]:
        Log.warning(f"Unusual DPI value on page {page_index}: {dpi}")
    return PageDimensions(dpi=dpi, height=height, width=width)


def _build_usage(raw: Any, page_count: int) -> OcrUsage:
    if not isinstance(raw, dict):
        raise ResponseValidationError("'usage_info' must be an object")
    pages_processed = _require_int(raw, "pages_processed", "usage_info")
    if pages_processed != page_count:
        raise ResponseValidationError(
            f"Usage info pages_processed ({pages_processed}) doesn't match "
            f"actual pages ({page_count})"
        )
    doc_size = _require_int(raw, "doc_size_bytes", "usage_info")
    if doc_size <= 0:
        raise ResponseValidationError(
            f"Invalid document size in usage info: {doc_size} bytes"
        )
    return OcrUsage(pages_processed=pages_processed, doc_size_bytes=doc_size)


def _build_annotation(raw: Any) -> str | None:
    if raw is None or isinstance(raw, str):
        return raw
    return json.dumps(raw)


def _require_int(raw: dict[str, Any], key: str, where: str = "") -> int:
    value = raw.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        name = f"{where}.{key}" if where else key
        raise ResponseValidationError(f"'{name}' must be an integer")
    return value
