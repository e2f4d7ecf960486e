"""Single status message that clears itself after a fixed delay."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_NOTICE_SECONDS = 3.0


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    NONE = "none"


@dataclass(frozen=True)
class Notice:
    text: str
    kind: NoticeKind
    expires_after: float


NoticeListener = Callable[[Notice | None], None]


class TransientNotifier:
    """Holds at most one notice; a new one replaces the old and restarts expiry.

    The expiry timer is a ``loop.call_later`` handle, cancelled on every
    ``set``, ``clear`` and ``close`` so it never fires after teardown.
    """

    def __init__(
        self,
        expires_after: float = DEFAULT_NOTICE_SECONDS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._expires_after = expires_after
        self._loop = loop
        self._notice: Notice | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._listeners: list[NoticeListener] = []
        self._closed = False

    @property
    def current(self) -> Notice | None:
        return self._notice

    @property
    def expires_after(self) -> float:
        return self._expires_after

    def subscribe(self, listener: NoticeListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: NoticeListener) -> None:
        self._listeners = [l for l in self._listeners if l is not listener]

    def set(self, text: str, kind: NoticeKind) -> Notice:
        if self._closed:
            raise RuntimeError("Notifier is closed")
        self._cancel_timer()
        notice = Notice(text=text, kind=kind, expires_after=self._expires_after)
        self._notice = notice
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self._expires_after, self._expire, notice)
        logger.debug("Notice (%s): %s", kind.value, text)
        self._emit()
        return notice

    def success(self, text: str) -> Notice:
        return self.set(text, NoticeKind.SUCCESS)

    def error(self, text: str) -> Notice:
        return self.set(text, NoticeKind.ERROR)

    def clear(self) -> None:
        self._cancel_timer()
        if self._notice is not None:
            self._notice = None
            self._emit()

    def close(self) -> None:
        """Cancel any pending expiry. Further ``set`` calls are rejected."""
        self._cancel_timer()
        self._notice = None
        self._listeners.clear()
        self._closed = True

    async def __aenter__(self) -> TransientNotifier:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def _expire(self, notice: Notice) -> None:
        self._timer = None
        # A newer notice owns its own timer
        if self._notice is notice:
            self._notice = None
            self._emit()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _emit(self) -> None:
        for listener in self._listeners:
            try:
                listener(self._notice)
            except Exception:
                logger.exception("Notice listener failed")
