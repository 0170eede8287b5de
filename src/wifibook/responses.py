"""Canned HTTP responses.

Every payload is built in full (status line, headers, body) and always
carries ``Connection: close``: the server answers exactly once per
connection and then hangs up.
"""

from __future__ import annotations

import html
from http import HTTPStatus
from typing import Iterable

from .web_assets import ERROR_COLOR, FAVICON_URL, SUCCESS_COLOR

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
SUCCESS_REDIRECT_MS = 2000
ERROR_REDIRECT_MS = 3000

CORS_HEADERS: tuple[tuple[str, str], ...] = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "POST, GET, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)

_BASE_STYLE = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Helvetica Neue", sans-serif;
      max-width: 600px;
      margin: 0 auto;
      padding: 20px;
      text-align: center;
      color: #1c1c1e;
    }
    .icon {
      font-size: 48px;
      margin: 20px 0;
    }
    .muted {
      color: #666;
      margin: 10px 0;
      word-break: break-all;
    }
    .button {
      display: inline-block;
      background: #007aff;
      color: white;
      padding: 10px 20px;
      border: none;
      border-radius: 5px;
      font-size: 16px;
      text-decoration: none;
      cursor: pointer;
    }
    .button:disabled {
      background: #9bbcf0;
      cursor: default;
    }
"""

UPLOAD_FORM_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Wi-Fi Book Transfer</title>
  <link rel="icon" href="__FAVICON__">
  <style>__BASE_STYLE__
    .upload-form {
      border: 2px dashed #ccc;
      border-radius: 10px;
      padding: 20px;
      margin: 20px 0;
    }
    .file-input {
      display: none;
    }
    #selected-file {
      margin: 10px 0;
    }
    .error {
      color: #ff3b30;
      margin: 10px 0;
      display: none;
    }
    .progress {
      width: 100%;
      height: 8px;
      background: #e5e5ea;
      border-radius: 4px;
      overflow: hidden;
      margin: 16px 0 6px;
      display: none;
    }
    .progress-bar {
      width: 0%;
      height: 100%;
      background: #007aff;
      transition: width 0.2s ease-out;
    }
  </style>
</head>
<body>
  <h1>Wi-Fi Book Transfer</h1>
  <div class="upload-form">
    <form id="upload-form" action="/upload" method="post" enctype="multipart/form-data">
      <p class="muted">Supported format: TXT (UTF-8)</p>
      <input type="file" name="book" accept=".txt" class="file-input" id="file-input">
      <button type="button" class="button" id="choose-button">Choose file</button>
      <div id="selected-file" class="muted"></div>
      <div class="error" id="error-message">Please choose a .txt file.</div>
      <button type="submit" class="button" id="upload-button" style="margin-top: 10px;">Upload</button>
      <div class="progress" id="progress"><div class="progress-bar" id="progress-bar"></div></div>
      <div class="muted" id="progress-label"></div>
    </form>
  </div>
  <script>
    const form = document.getElementById('upload-form');
    const input = document.getElementById('file-input');
    const errorMsg = document.getElementById('error-message');
    const progress = document.getElementById('progress');
    const progressBar = document.getElementById('progress-bar');
    const progressLabel = document.getElementById('progress-label');
    const uploadButton = document.getElementById('upload-button');

    function showError(text) {
      errorMsg.textContent = text;
      errorMsg.style.display = 'block';
    }

    function selectedFile() {
      if (input.files.length === 0) {
        showError('Please choose a file first.');
        return null;
      }
      const file = input.files[0];
      if (!file.name.toLowerCase().endsWith('.txt')) {
        showError('Please choose a .txt file.');
        return null;
      }
      errorMsg.style.display = 'none';
      return file;
    }

    function formatBytes(value) {
      if (value < 1024) return value + ' B';
      if (value < 1024 * 1024) return (value / 1024).toFixed(1) + ' KB';
      return (value / 1024 / 1024).toFixed(1) + ' MB';
    }

    document.getElementById('choose-button').addEventListener('click', () => input.click());
    input.addEventListener('change', () => {
      document.getElementById('selected-file').textContent = input.files.length ? input.files[0].name : '';
      if (input.files.length) selectedFile();
    });

    form.addEventListener('submit', (event) => {
      event.preventDefault();
      const file = selectedFile();
      if (!file) return;
      const data = new FormData();
      data.append('book', file, file.name);
      const xhr = new XMLHttpRequest();
      xhr.open('POST', '/upload');
      xhr.upload.addEventListener('progress', (e) => {
        if (!e.lengthComputable) return;
        const percent = Math.round((e.loaded / e.total) * 100);
        progressBar.style.width = percent + '%';
        progressLabel.textContent = formatBytes(e.loaded) + ' / ' + formatBytes(e.total) + ' (' + percent + '%)';
      });
      xhr.addEventListener('load', () => {
        document.open();
        document.write(xhr.responseText);
        document.close();
      });
      xhr.addEventListener('error', () => {
        uploadButton.disabled = false;
        showError('Upload failed: the connection was interrupted.');
      });
      uploadButton.disabled = true;
      progress.style.display = 'block';
      progressBar.style.width = '0%';
      progressLabel.textContent = '';
      xhr.send(data);
    });
  </script>
</body>
</html>
"""

RESULT_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>__TITLE__</title>
  <link rel="icon" href="__FAVICON__">
  <style>__BASE_STYLE__
    .icon {
      color: __COLOR__;
    }
  </style>
</head>
<body>
  <div class="icon">__ICON__</div>
  <h1>__TITLE__</h1>
  <p class="muted">__DETAIL__</p>
  <a href="/" class="button">Back</a>
  <p class="muted">Returning to the upload page…</p>
  <script>setTimeout(function() { window.location.href = '/'; }, __REDIRECT_MS__);</script>
</body>
</html>
"""


def build_response(
    status: HTTPStatus,
    body: bytes = b"",
    *,
    content_type: str | None = HTML_CONTENT_TYPE,
    extra_headers: Iterable[tuple[str, str]] = (),
) -> bytes:
    lines = [f"HTTP/1.1 {status.value} {status.phrase}"]
    if content_type and body:
        lines.append(f"Content-Type: {content_type}")
    lines.extend(f"{name}: {value}" for name, value in extra_headers)
    if body or status != HTTPStatus.NO_CONTENT:
        lines.append(f"Content-Length: {len(body)}")
    lines.append("Connection: close")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("ascii") + body


def _render_result(title: str, detail: str, *, icon: str, color: str, redirect_ms: int) -> bytes:
    page = (
        RESULT_HTML.replace("__BASE_STYLE__", _BASE_STYLE)
        .replace("__FAVICON__", FAVICON_URL)
        .replace("__COLOR__", color)
        .replace("__ICON__", icon)
        .replace("__TITLE__", html.escape(title))
        .replace("__REDIRECT_MS__", str(redirect_ms))
        .replace("__DETAIL__", html.escape(detail))
    )
    return page.encode("utf-8")


def render_upload_form() -> bytes:
    page = UPLOAD_FORM_HTML.replace("__BASE_STYLE__", _BASE_STYLE).replace("__FAVICON__", FAVICON_URL)
    return page.encode("utf-8")


def upload_form_response() -> bytes:
    return build_response(
        HTTPStatus.OK,
        render_upload_form(),
        extra_headers=CORS_HEADERS[:1],
    )


def preflight_response() -> bytes:
    return build_response(HTTPStatus.NO_CONTENT, content_type=None, extra_headers=CORS_HEADERS)


def success_response(file_name: str) -> bytes:
    body = _render_result(
        "Upload complete",
        f"File: {file_name}",
        icon="✓",
        color=SUCCESS_COLOR,
        redirect_ms=SUCCESS_REDIRECT_MS,
    )
    return build_response(HTTPStatus.OK, body, extra_headers=CORS_HEADERS[:1])


def error_response(message: str) -> bytes:
    body = _render_result(
        "Upload failed",
        message,
        icon="✕",
        color=ERROR_COLOR,
        redirect_ms=ERROR_REDIRECT_MS,
    )
    return build_response(HTTPStatus.BAD_REQUEST, body, extra_headers=CORS_HEADERS[:1])


__all__ = [
    "CORS_HEADERS",
    "HTML_CONTENT_TYPE",
    "build_response",
    "error_response",
    "preflight_response",
    "render_upload_form",
    "success_response",
    "upload_form_response",
]
