from __future__ import annotations

from typing import Callable

import pytest

BOUNDARY = "----WebKitFormBoundary7MA4YWxkTrZu0gW"


def build_upload_request(
    file_name: str = "book.txt",
    content: bytes = "hello 世界".encode("utf-8"),
    *,
    boundary: str | None = BOUNDARY,
    content_length: bool = True,
) -> bytes:
    token = boundary or "missing"
    body = (
        f"--{token}\r\n"
        f'Content-Disposition: form-data; name="book"; filename="{file_name}"\r\n'
        "Content-Type: text/plain\r\n"
        "\r\n"
    ).encode("utf-8")
    body += content
    body += f"\r\n--{token}--\r\n".encode("utf-8")
    content_type = "multipart/form-data"
    if boundary is not None:
        content_type += f"; boundary={boundary}"
    headers = [
        "POST /upload HTTP/1.1",
        "Host: 192.168.1.20:8080",
        "User-Agent: pytest",
        f"Content-Type: {content_type}",
    ]
    if content_length:
        headers.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(headers) + "\r\n\r\n").encode("utf-8") + body


@pytest.fixture
def upload_request() -> Callable[..., bytes]:
    return build_upload_request


def split_response(payload: bytes) -> tuple[str, dict[str, str], bytes]:
    head, _, body = payload.partition(b"\r\n\r\n")
    lines = head.decode("ascii").split("\r\n")
    headers: dict[str, str] = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


@pytest.fixture
def parse_response() -> Callable[[bytes], tuple[str, dict[str, str], bytes]]:
    return split_response
