from __future__ import annotations

from wifibook.responses import (
    error_response,
    preflight_response,
    success_response,
    upload_form_response,
)


def test_preflight_has_cors_headers_and_no_body(parse_response) -> None:
    payload = preflight_response()
    status, headers, body = parse_response(payload)
    assert status == "HTTP/1.1 204 No Content"
    assert body == b""
    assert b"Access-Control-Allow-Origin: *\r\n" in payload
    assert b"Access-Control-Allow-Methods: POST, GET, OPTIONS\r\n" in payload
    assert b"Access-Control-Allow-Headers: Content-Type\r\n" in payload
    assert headers["Connection"] == "close"
    assert "Content-Type" not in headers


def test_upload_form(parse_response) -> None:
    status, headers, body = parse_response(upload_form_response())
    assert status == "HTTP/1.1 200 OK"
    assert headers["Content-Type"] == "text/html; charset=utf-8"
    assert headers["Access-Control-Allow-Origin"] == "*"
    assert headers["Connection"] == "close"
    assert int(headers["Content-Length"]) == len(body)
    page = body.decode("utf-8")
    assert 'enctype="multipart/form-data"' in page
    assert 'action="/upload"' in page
    assert 'name="book"' in page
    assert "XMLHttpRequest" in page
    assert "__" not in page.replace("__proto__", "")


def test_success_page_names_the_file(parse_response) -> None:
    status, headers, body = parse_response(success_response("<第一章>.txt"))
    assert status == "HTTP/1.1 200 OK"
    assert int(headers["Content-Length"]) == len(body)
    page = body.decode("utf-8")
    assert "&lt;第一章&gt;.txt" in page
    assert "<第一章>" not in page
    assert "window.location.href = '/'" in page
    assert "2000" in page


def test_error_page_is_bad_request(parse_response) -> None:
    status, headers, body = parse_response(error_response("Could not find the file name."))
    assert status == "HTTP/1.1 400 Bad Request"
    assert headers["Connection"] == "close"
    page = body.decode("utf-8")
    assert "Could not find the file name." in page
    assert "3000" in page
