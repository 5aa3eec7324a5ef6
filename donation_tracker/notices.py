"""User-visible messages that clear themselves after a fixed delay."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from .config import NOTICE_TTL_SECONDS


@dataclass(frozen=True)
class Notice:
    message: str
    level: str
    expires_at: float


class NoticeBoard:
    """Holds the latest message per channel until its delay runs out."""

    def __init__(
        self,
        ttl_seconds: float = NOTICE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._notices: dict[str, Notice] = {}

    def post(self, channel: str, message: str, level: str = "error") -> Notice:
        notice = Notice(
            message=message,
            level=level,
            expires_at=self._clock() + self.ttl_seconds,
        )
        self._notices[channel] = notice
        return notice

    def current(self, channel: str) -> Notice | None:
        notice = self._notices.get(channel)
        if notice is None:
            return None
        if self._clock() >= notice.expires_at:
            del self._notices[channel]
            return None
        return notice

    def clear(self, channel: str) -> None:
        self._notices.pop(channel, None)
