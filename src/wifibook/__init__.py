from .classify import ClassifiedRequest, RequestKind, classify_request
from .library import BookLibrary, LibraryBook
from .multipart import (
    MultipartParseError,
    UnsupportedEncodingError,
    UploadError,
    UploadSession,
    parse_multipart,
)
from .netinfo import resolve_lan_address
from .server import ServerStartError, TransferConfig, TransferServer
from .state import Observable, ProgressPublisher, ReceivedFile, ServerState, UploadProgress

__all__ = [
    "BookLibrary",
    "ClassifiedRequest",
    "LibraryBook",
    "MultipartParseError",
    "Observable",
    "ProgressPublisher",
    "ReceivedFile",
    "RequestKind",
    "ServerStartError",
    "ServerState",
    "TransferConfig",
    "TransferServer",
    "UnsupportedEncodingError",
    "UploadError",
    "UploadProgress",
    "UploadSession",
    "classify_request",
    "parse_multipart",
    "resolve_lan_address",
]
