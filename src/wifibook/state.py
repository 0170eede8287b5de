from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger("wifibook")

T = TypeVar("T")

DEFAULT_CLEAR_DELAY = 2.0


@dataclass(frozen=True, slots=True)
class ServerState:
    is_running: bool = False
    address: str | None = None


@dataclass(frozen=True, slots=True)
class UploadProgress:
    file_name: str | None = None
    received_bytes: int = 0
    total_bytes: int | None = None
    is_completed: bool = False
    error_message: str | None = None

    @property
    def fraction(self) -> float | None:
        if not self.total_bytes:
            return None
        return min(1.0, self.received_bytes / self.total_bytes)


@dataclass(frozen=True, slots=True)
class ReceivedFile:
    file_name: str
    content: str


class Observable(Generic[T]):
    """A single published value plus the callbacks watching it.

    Values are expected to be immutable snapshots; subscribers should copy
    out whatever they need instead of holding on to the observable.
    """

    def __init__(self, initial: T, *, changed_only: bool = False) -> None:
        self._value = initial
        self._changed_only = changed_only
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                return

        return _unsubscribe

    def publish(self, value: T) -> None:
        if self._changed_only and value == self._value:
            return
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("Observer %r failed", callback)


class ProgressPublisher(Observable[UploadProgress | None]):
    """The one shared upload-progress slot; the latest writer wins."""

    def __init__(self) -> None:
        super().__init__(None)
        self._clear_handle: asyncio.TimerHandle | None = None

    def publish(self, value: UploadProgress | None) -> None:
        self.cancel_clear()
        super().publish(value)

    def schedule_clear(self, delay: float = DEFAULT_CLEAR_DELAY) -> None:
        self.cancel_clear()
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(delay, self._clear)

    def cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

    @property
    def clear_pending(self) -> bool:
        return self._clear_handle is not None

    def _clear(self) -> None:
        self._clear_handle = None
        super().publish(None)


__all__ = [
    "DEFAULT_CLEAR_DELAY",
    "Observable",
    "ProgressPublisher",
    "ReceivedFile",
    "ServerState",
    "UploadProgress",
]
