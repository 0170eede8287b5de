"""Decide how to answer a connection from the first bytes it sends.

This is intentionally a substring heuristic rather than an HTTP header
parser: the only clients are the bundled upload page and ordinary browsers
hitting ``/`` or ``/upload``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

MULTIPART_MARKER = "content-type: multipart/form-data"

_REQUEST_LINE_RE = re.compile(r"^([A-Z]+) (\S+) HTTP/(\d(?:\.\d)?)")
_CONTENT_LENGTH_RE = re.compile(r"^content-length:[ \t]*(\d+)[ \t]*$", re.IGNORECASE | re.MULTILINE)


class RequestKind(Enum):
    FORM = "form"
    PREFLIGHT = "preflight"
    UPLOAD = "upload"


@dataclass(frozen=True, slots=True)
class ClassifiedRequest:
    kind: RequestKind
    method: str = "GET"
    path: str = "/"
    http_version: str = "1.1"
    boundary: str | None = None
    content_length: int | None = None


def decode_for_inspection(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def find_boundary(text: str) -> str | None:
    start = text.find("boundary=")
    if start < 0:
        return None
    value = text[start + len("boundary="):]
    line_end = value.find("\r\n")
    if line_end < 0:
        # The header line may still be arriving.
        return None
    token = value[:line_end].split(";", 1)[0].strip()
    if len(token) >= 2 and token[0] == token[-1] == '"':
        token = token[1:-1]
    return token or None


def find_content_length(text: str) -> int | None:
    normalized = text.replace("\r\n", "\n")
    # Ignore a trailing partial line; its digits may continue in the next read.
    normalized = normalized[: normalized.rfind("\n") + 1]
    match = _CONTENT_LENGTH_RE.search(normalized)
    if match is None:
        return None
    return int(match.group(1))


def classify_request(first_chunk: bytes) -> ClassifiedRequest:
    text = decode_for_inspection(first_chunk)
    method, path, http_version = "GET", "/", "1.1"
    match = _REQUEST_LINE_RE.match(text)
    if match:
        method, path, http_version = match.group(1), match.group(2), match.group(3)

    if text.startswith("OPTIONS"):
        return ClassifiedRequest(
            RequestKind.PREFLIGHT,
            method="OPTIONS",
            path=path,
            http_version=http_version,
        )

    header_end = text.find("\r\n\r\n")
    headers = text if header_end < 0 else text[:header_end + 2]
    if MULTIPART_MARKER in headers.lower():
        return ClassifiedRequest(
            RequestKind.UPLOAD,
            method=method,
            path=path,
            http_version=http_version,
            boundary=find_boundary(headers),
            content_length=find_content_length(headers),
        )

    return ClassifiedRequest(RequestKind.FORM, method=method, path=path, http_version=http_version)


__all__ = [
    "ClassifiedRequest",
    "RequestKind",
    "classify_request",
    "decode_for_inspection",
    "find_boundary",
    "find_content_length",
]
