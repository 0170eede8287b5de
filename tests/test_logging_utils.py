from __future__ import annotations

import logging

from wifibook.logging_utils import (
    ACCESS_LOGGER_NAME,
    ACCESS_MESSAGE,
    LOGGER_NAME,
    Utf8AccessFormatter,
    build_log_config,
)


def test_build_log_config_targets_wifibook_loggers() -> None:
    config = build_log_config(debug=True)
    assert config["formatters"]["access"]["()"] == "wifibook.logging_utils.Utf8AccessFormatter"
    assert config["loggers"][LOGGER_NAME]["level"] == "DEBUG"
    assert config["loggers"][ACCESS_LOGGER_NAME]["handlers"] == ["access"]
    assert build_log_config()["loggers"][LOGGER_NAME]["level"] == "INFO"


def test_access_formatter_decodes_paths() -> None:
    formatter = Utf8AccessFormatter(
        fmt='%(client_addr)s - "%(request_line)s" %(status_code)s',
        use_colors=False,
    )
    record = logging.LogRecord(
        ACCESS_LOGGER_NAME,
        logging.INFO,
        __file__,
        1,
        ACCESS_MESSAGE,
        ("192.168.1.7:50123", "GET", "/%E6%9C%AC.txt", "1.1", 200),
        None,
    )
    output = formatter.format(record)
    assert output.startswith('192.168.1.7:50123 - "GET /本.txt HTTP/1.1" 200')


def test_access_formatter_keeps_plain_paths() -> None:
    formatter = Utf8AccessFormatter(
        fmt='%(client_addr)s - "%(request_line)s" %(status_code)s',
        use_colors=False,
    )
    record = logging.LogRecord(
        ACCESS_LOGGER_NAME,
        logging.INFO,
        __file__,
        1,
        ACCESS_MESSAGE,
        ("192.168.1.7:50123", "OPTIONS", "/upload", "1.1", 204),
        None,
    )
    assert formatter.format(record).startswith('192.168.1.7:50123 - "OPTIONS /upload HTTP/1.1" 204')
