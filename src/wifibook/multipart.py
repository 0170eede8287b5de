"""Incremental accumulation and extraction of a single-file multipart upload.

An :class:`UploadSession` is fed whatever the socket delivers, in however
many pieces, and tracks three things as the buffer grows: where the HTTP
headers end, how long the body was declared to be, and the uploaded file's
name. Once the body is complete (or the peer closes the stream) ``finish``
slices the file content out from between the part headers and the closing
boundary.
"""

from __future__ import annotations

import time

from .classify import ClassifiedRequest, decode_for_inspection, find_boundary, find_content_length
from .state import ReceivedFile, UploadProgress

HEADER_TERMINATOR = b"\r\n\r\n"
FILENAME_MARKER = b'filename="'

AWAITING_HEADERS = "awaiting-headers"
AWAITING_BODY = "awaiting-body"
COMPLETED = "completed"
FAILED = "failed"


class UploadError(RuntimeError):
    """Raised when an upload cannot be turned into a received file."""


class MultipartParseError(UploadError):
    """Raised when the multipart body is missing one of its structural markers."""


class UnsupportedEncodingError(UploadError):
    """Raised when the uploaded file name or content is not valid UTF-8."""


class UploadSession:
    def __init__(self, request: ClassifiedRequest | None = None) -> None:
        self.buffer = bytearray()
        self.header_end: int | None = None
        self.declared_length: int | None = request.content_length if request else None
        self.boundary: str | None = request.boundary if request else None
        self.file_name: str | None = None
        self.started_at = time.monotonic()
        self.state = AWAITING_HEADERS
        self._header_search_from = 0
        self._filename_search_from = 0

    @property
    def finished(self) -> bool:
        return self.state in (COMPLETED, FAILED)

    @property
    def received_body(self) -> int:
        if self.header_end is None:
            return 0
        return max(0, len(self.buffer) - self.header_end)

    @property
    def is_complete(self) -> bool:
        return (
            self.header_end is not None
            and self.declared_length is not None
            and self.received_body >= self.declared_length
        )

    def feed(self, data: bytes) -> UploadProgress:
        if self.finished:
            raise RuntimeError(f"Upload session is already {self.state}.")
        self.buffer.extend(data)
        if self.header_end is None:
            self._locate_header_end()
        if self.file_name is None:
            self._locate_file_name()
        return self.progress()

    def progress(self) -> UploadProgress:
        received = 0
        if self.header_end is not None and self.declared_length is not None:
            received = min(self.received_body, self.declared_length)
        return UploadProgress(
            file_name=self.file_name,
            received_bytes=received,
            total_bytes=self.declared_length,
        )

    def completed_progress(self) -> UploadProgress:
        received = self.received_body
        total = self.declared_length
        if total is None:
            total = received
        return UploadProgress(
            file_name=self.file_name,
            received_bytes=min(received, total),
            total_bytes=total,
            is_completed=True,
        )

    def failed_progress(self, message: str) -> UploadProgress:
        current = self.progress()
        return UploadProgress(
            file_name=current.file_name,
            received_bytes=current.received_bytes,
            total_bytes=current.total_bytes,
            error_message=message,
        )

    def finish(self) -> ReceivedFile:
        if self.finished:
            raise RuntimeError(f"Upload session is already {self.state}.")
        try:
            received = self._extract()
        except UploadError:
            self.state = FAILED
            raise
        self.state = COMPLETED
        return received

    def _locate_header_end(self) -> None:
        start = max(0, self._header_search_from - (len(HEADER_TERMINATOR) - 1))
        index = self.buffer.find(HEADER_TERMINATOR, start)
        if index < 0:
            self._header_search_from = len(self.buffer)
            return
        self.header_end = index + len(HEADER_TERMINATOR)
        self.state = AWAITING_BODY
        headers = decode_for_inspection(bytes(self.buffer[: self.header_end]))
        if self.declared_length is None:
            self.declared_length = find_content_length(headers)
        if self.boundary is None:
            self.boundary = find_boundary(headers)

    def _locate_file_name(self) -> None:
        start = max(0, self._filename_search_from - (len(FILENAME_MARKER) - 1))
        index = self.buffer.find(FILENAME_MARKER, start)
        if index < 0:
            self._filename_search_from = len(self.buffer)
            return
        name_start = index + len(FILENAME_MARKER)
        name_end = self.buffer.find(b'"', name_start)
        if name_end < 0:
            # Marker found but the closing quote has not arrived yet.
            self._filename_search_from = index
            return
        self.file_name = bytes(self.buffer[name_start:name_end]).decode("utf-8", errors="replace")

    def _extract(self) -> ReceivedFile:
        if self.header_end is None:
            raise MultipartParseError("The request headers never finished arriving.")
        boundary = self.boundary
        if not boundary:
            raise MultipartParseError("Could not find the multipart boundary.")
        delimiter = b"--" + boundary.encode("utf-8")
        body = bytes(self.buffer[self.header_end:])

        name_at = body.find(FILENAME_MARKER)
        if name_at < 0:
            raise MultipartParseError("Could not find the file name.")
        name_start = name_at + len(FILENAME_MARKER)
        name_end = body.find(b'"', name_start)
        if name_end < 0:
            raise MultipartParseError("Could not find the file name.")

        content_start = body.find(HEADER_TERMINATOR, name_end)
        if content_start < 0:
            raise MultipartParseError("Could not find the start of the file content.")
        content_start += len(HEADER_TERMINATOR)

        if body.find(delimiter + b"--", content_start) < 0:
            raise MultipartParseError("Could not find the end of the file content.")
        content_end = body.find(b"\r\n" + delimiter, content_start)
        if content_end < 0:
            content_end = body.find(delimiter, content_start)

        try:
            file_name = body[name_start:name_end].decode("utf-8")
            content = body[content_start:content_end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UnsupportedEncodingError("Unsupported file encoding; please upload UTF-8 text.") from exc
        return ReceivedFile(file_name=file_name, content=content)


def parse_multipart(raw: bytes, boundary: str | None = None) -> ReceivedFile:
    """Parse a complete raw HTTP multipart request in one go."""
    session = UploadSession()
    session.boundary = boundary
    session.feed(raw)
    return session.finish()


__all__ = [
    "MultipartParseError",
    "UnsupportedEncodingError",
    "UploadError",
    "UploadSession",
    "parse_multipart",
]
