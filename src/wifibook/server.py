"""The Wi-Fi transfer server.

One asyncio listener accepts connections; each connection is served by its
own task that reads until it can answer, writes exactly one response and
closes. Upload progress from every session lands in the single shared
:class:`~wifibook.state.ProgressPublisher` slot, so concurrent uploads
overwrite each other's progress.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import time
from dataclasses import dataclass
from http import HTTPStatus
from typing import Callable

from .classify import ClassifiedRequest, RequestKind, classify_request
from .logging_utils import log_access
from .multipart import UploadError, UploadSession
from .netinfo import format_address, resolve_bind_address
from .responses import error_response, preflight_response, success_response, upload_form_response
from .state import DEFAULT_CLEAR_DELAY, Observable, ProgressPublisher, ReceivedFile, ServerState, UploadProgress

logger = logging.getLogger("wifibook")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_CHUNK_SIZE = 64 * 1024
CONNECTION_LOST_MESSAGE = "The connection was lost while receiving the file."

FileReceivedCallback = Callable[[str, str], None]


class ServerStartError(RuntimeError):
    """Raised when the listener cannot bind its port."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < 0 or parsed > 65535:
        return default
    return parsed


@dataclass(slots=True)
class TransferConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    interface: str | None = None
    chunk_size: int = DEFAULT_CHUNK_SIZE
    clear_delay: float = DEFAULT_CLEAR_DELAY

    @classmethod
    def from_env(cls) -> TransferConfig:
        return cls(
            host=os.getenv("WIFIBOOK_HOST") or DEFAULT_HOST,
            port=_env_int("WIFIBOOK_PORT", DEFAULT_PORT),
            interface=os.getenv("WIFIBOOK_INTERFACE") or None,
        )


def _format_peer(peer: object) -> str:
    if isinstance(peer, tuple) and len(peer) >= 2:
        return f"{peer[0]}:{peer[1]}"
    return str(peer) if peer else "-"


class TransferServer:
    def __init__(
        self,
        config: TransferConfig | None = None,
        on_file_received: FileReceivedCallback | None = None,
    ) -> None:
        self.config = config or TransferConfig()
        self.on_file_received = on_file_received
        self.state: Observable[ServerState] = Observable(ServerState(), changed_only=True)
        self.running: Observable[bool] = Observable(False, changed_only=True)
        self.address: Observable[str | None] = Observable(None, changed_only=True)
        self.progress = ProgressPublisher()
        self._server: asyncio.Server | None = None
        self._sessions: set[asyncio.Task] = set()
        self._writers: set[asyncio.StreamWriter] = set()
        self._stopped = asyncio.Event()
        self._start_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def bound_port(self) -> int | None:
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> str | None:
        """Bind the listener and return the LAN address, if one is known.

        Overlapping calls share one listener: later callers wait for the bind
        in progress and get its address.
        """
        async with self._start_lock:
            if self._server is not None:
                return self.state.value.address
            return await self._bind()

    async def _bind(self) -> str | None:
        host, port = self.config.host, self.config.port
        try:
            server = await asyncio.start_server(self._handle_connection, host, port, reuse_address=True)
        except OSError as exc:
            logger.error("Unable to listen on %s:%s: %s", host, port, exc)
            self._set_state(ServerState())
            raise ServerStartError(f"Unable to listen on {host}:{port}: {exc}") from exc
        self._server = server
        self._stopped.clear()
        ip = resolve_bind_address(host, self.config.interface)
        address = format_address(ip, self.bound_port or port) if ip else None
        self._set_state(ServerState(is_running=True, address=address))
        if address:
            logger.info("Transfer server listening at %s", address)
        else:
            logger.info("Transfer server listening on port %s (LAN address unknown)", self.bound_port)
        return address

    def stop(self) -> None:
        """Close the listener and abandon any sessions still open."""
        server = self._server
        if server is None:
            return
        self._server = None
        server.close()
        for task in list(self._sessions):
            task.cancel()
        for writer in list(self._writers):
            writer.transport.abort()
        self._set_state(ServerState())
        self._stopped.set()
        logger.info("Transfer server stopped")

    async def serve_forever(self) -> None:
        await self.start()
        await self._stopped.wait()

    def _set_state(self, state: ServerState) -> None:
        self.state.publish(state)
        self.running.publish(state.is_running)
        self.address.publish(state.address)

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        self._writers.add(writer)
        client = _format_peer(writer.get_extra_info("peername"))
        try:
            await self._run_session(reader, writer, client)
        except asyncio.CancelledError:
            # Only stop() cancels sessions; the task ends quietly.
            logger.debug("Session with %s abandoned", client)
        finally:
            self._writers.discard(writer)
            if task is not None:
                self._sessions.discard(task)
            writer.close()

    async def _run_session(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        client: str,
    ) -> None:
        try:
            first = await reader.read(self.config.chunk_size)
        except OSError as exc:
            logger.debug("Receive from %s failed: %s", client, exc)
            return
        if not first:
            return

        request = classify_request(first)
        logger.debug("%s %s from %s classified as %s", request.method, request.path, client, request.kind.value)
        if request.kind is RequestKind.PREFLIGHT:
            await self._respond(writer, preflight_response(), request, client, HTTPStatus.NO_CONTENT)
        elif request.kind is RequestKind.FORM:
            await self._respond(writer, upload_form_response(), request, client, HTTPStatus.OK)
        else:
            await self._receive_upload(reader, writer, request, first, client)

    async def _receive_upload(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        request: ClassifiedRequest,
        first: bytes,
        client: str,
    ) -> None:
        session = UploadSession(request)
        self.progress.publish(session.feed(first))
        try:
            while not session.is_complete:
                chunk = await reader.read(self.config.chunk_size)
                if not chunk:
                    logger.debug(
                        "Stream from %s ended after %d body bytes (declared %s)",
                        client,
                        session.received_body,
                        session.declared_length,
                    )
                    break
                self.progress.publish(session.feed(chunk))
        except OSError as exc:
            logger.warning("Upload from %s interrupted: %s", client, exc)
            self._publish_failure(session.failed_progress(CONNECTION_LOST_MESSAGE))
            return

        try:
            received = session.finish()
        except UploadError as exc:
            message = str(exc)
            logger.warning("Rejected upload from %s: %s", client, message)
            self._publish_failure(session.failed_progress(message))
            await self._respond(writer, error_response(message), request, client, HTTPStatus.BAD_REQUEST)
            return

        elapsed = time.monotonic() - session.started_at
        logger.info(
            "Received %s (%d bytes) from %s in %.1fs",
            received.file_name,
            session.received_body,
            client,
            elapsed,
        )
        self.progress.publish(session.completed_progress())
        self.progress.schedule_clear(self.config.clear_delay)
        self._deliver(received)
        await self._respond(writer, success_response(received.file_name), request, client, HTTPStatus.OK)

    def _publish_failure(self, progress: UploadProgress) -> None:
        self.progress.publish(progress)
        self.progress.schedule_clear(self.config.clear_delay)

    def _deliver(self, received: ReceivedFile) -> None:
        callback = self.on_file_received
        if callback is None:
            return
        try:
            callback(received.file_name, received.content)
        except Exception:
            logger.exception("Handling received file %s failed", received.file_name)

    async def _respond(
        self,
        writer: asyncio.StreamWriter,
        payload: bytes,
        request: ClassifiedRequest,
        client: str,
        status: HTTPStatus,
    ) -> None:
        try:
            writer.write(payload)
            await writer.drain()
        except OSError as exc:
            logger.debug("Sending response to %s failed: %s", client, exc)
        else:
            log_access(client, request.method, request.path, request.http_version, status.value)
        finally:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()


__all__ = [
    "DEFAULT_PORT",
    "ServerStartError",
    "TransferConfig",
    "TransferServer",
]
