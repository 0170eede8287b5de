from __future__ import annotations

import logging
import logging.config
from copy import copy, deepcopy
from typing import Any
from urllib.parse import unquote

from uvicorn.config import LOGGING_CONFIG
from uvicorn.logging import AccessFormatter as UvicornAccessFormatter

LOGGER_NAME = "wifibook"
ACCESS_LOGGER_NAME = "wifibook.access"

# Same argument layout uvicorn's access formatter unpacks:
# (client_addr, method, full_path, http_version, status_code).
ACCESS_MESSAGE = '%s - "%s %s HTTP/%s" %d'


def _readable_path(path: object) -> object:
    if not isinstance(path, str) or "%" not in path:
        return path
    return unquote(path, encoding="utf-8", errors="replace")


class Utf8AccessFormatter(UvicornAccessFormatter):
    """Formatter for ``wifibook.access`` records.

    Each record carries the :data:`ACCESS_MESSAGE` argument tuple written by
    :func:`log_access`. Percent-encoded request paths (browsers quote
    non-ASCII book names, e.g. ``/%E6%9C%AC.txt``) are shown as UTF-8 text.
    """

    def formatMessage(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        args = record.args
        if not isinstance(args, tuple) or len(args) != 5:
            return super().formatMessage(record)
        readable = copy(record)
        readable.args = (*args[:2], _readable_path(args[2]), *args[3:])
        return super().formatMessage(readable)


def build_log_config(debug: bool = False) -> dict[str, Any]:
    """Return a dictConfig for the server loggers, styled like uvicorn's."""
    config = deepcopy(LOGGING_CONFIG)
    formatter = config.get("formatters", {}).get("access")
    if isinstance(formatter, dict):
        formatter["()"] = "wifibook.logging_utils.Utf8AccessFormatter"
    level = "DEBUG" if debug else "INFO"
    config["loggers"] = {
        LOGGER_NAME: {"handlers": ["default"], "level": level, "propagate": False},
        ACCESS_LOGGER_NAME: {"handlers": ["access"], "level": "INFO", "propagate": False},
    }
    return config


def configure_logging(debug: bool = False) -> None:
    logging.config.dictConfig(build_log_config(debug))


def log_access(
    client_addr: str,
    method: str,
    path: str,
    http_version: str,
    status_code: int,
) -> None:
    logging.getLogger(ACCESS_LOGGER_NAME).info(
        ACCESS_MESSAGE, client_addr, method, path, http_version, status_code
    )


__all__ = [
    "ACCESS_LOGGER_NAME",
    "LOGGER_NAME",
    "Utf8AccessFormatter",
    "build_log_config",
    "configure_logging",
    "log_access",
]
