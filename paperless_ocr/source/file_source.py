import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, ClassVar

from paperless_ocr.exceptions import (
    FileAccessError,
    InvalidInputError,
    PasswordProtectedPdfError,
)

PDF_MIME = "application/pdf"
PNG_MIME = "image/png"
JPEG_MIME = "image/jpeg"

_EXTENSION_MIME = {
    "pdf": PDF_MIME,
    "png": PNG_MIME,
    "jpg": JPEG_MIME,
    "jpeg": JPEG_MIME,
}

_MAGIC_PREFIXES = {
    PDF_MIME: b"%PDF",
    PNG_MIME: b"\x89PNG",
    JPEG_MIME: b"\xff\xd8\xff",
}

# Encryption dictionary, standard security handler, or owner/user password strings.
_PDF_ENCRYPTION_MARKERS = re.compile(rb"/Encrypt|/Filter\s*/Standard|/[OU]\s*[(<]")


@dataclass(frozen=True)
class FileSource:
    """A validated local document ready for upload."""

    ENCRYPTION_PROBE_BYTES: ClassVar[int] = 8 * 1024
    MIN_SIZE_BYTES: ClassVar[int] = 4

    path: Path
    size: int
    mime: str

    @property
    def filename(self) -> str:
        return self.path.name

    @classmethod
    def open(cls, path: str | Path) -> "FileSource":
        """Validate ``path`` and describe the document behind it.

        Raises:
            InvalidInputError: on an empty path, unsupported extension,
                too-small file, or magic bytes that contradict the extension.
            PasswordProtectedPdfError: if the PDF encryption probe matches.
            FileAccessError: if the path is missing, not a regular file,
                or unreadable.
        """
        if not str(path).strip():
            raise InvalidInputError("File path cannot be empty")
        file_path = Path(path)
        if not file_path.exists():
            raise FileAccessError(f"File not found: {file_path}")
        if not file_path.is_file():
            raise FileAccessError(f"Path is not a regular file: {file_path}")
        if not os.access(file_path, os.R_OK):
            raise FileAccessError(f"File is not readable: {file_path}")

        mime = cls._mime_from_extension(file_path)
        try:
            size = file_path.stat().st_size
            with file_path.open("rb") as handle:
                head = handle.read(cls.ENCRYPTION_PROBE_BYTES)
        except OSError as exc:
            raise FileAccessError(f"Failed to read {file_path}: {exc.strerror or exc}") from exc

        if size < cls.MIN_SIZE_BYTES or len(head) < cls.MIN_SIZE_BYTES:
            raise InvalidInputError("File too small to determine format")
        if not head.startswith(_MAGIC_PREFIXES[mime]):
            raise InvalidInputError(
                f"File content does not match its .{file_path.suffix.lstrip('.').lower()} "
                f"extension: {file_path.name}"
            )
        if mime == PDF_MIME and _PDF_ENCRYPTION_MARKERS.search(head):
            raise PasswordProtectedPdfError(
                "Password-protected PDF detected. Please provide an unprotected PDF file."
            )
        return cls(path=file_path, size=size, mime=mime)

    @staticmethod
    def _mime_from_extension(file_path: Path) -> str:
        extension = file_path.suffix.lstrip(".").lower()
        if not extension:
            raise InvalidInputError(
                "File has no extension. Supported formats: pdf, png, jpg, jpeg"
            )
        mime = _EXTENSION_MIME.get(extension)
        if mime is None:
            raise InvalidInputError(
                f"Unsupported file format: .{extension}. Supported formats: pdf, png, jpg, jpeg"
            )
        return mime

    def read_all(self) -> bytes:
        """Read the whole document into memory."""
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise FileAccessError(f"Failed to read {self.path}: {exc.strerror or exc}") from exc

    @contextmanager
    def open_stream(self) -> Iterator[tuple[BinaryIO, int]]:
        """Yield a fresh reader positioned at the start, plus the byte length.

        Each call reopens the file, so a reader is never reused across attempts.
        """
        try:
            handle = self.path.open("rb")
        except OSError as exc:
            raise FileAccessError(f"Failed to open {self.path}: {exc.strerror or exc}") from exc
        with handle:
            yield handle, self.size
