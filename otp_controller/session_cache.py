"""In-memory cache of live OTP login sessions with deferred cleanup."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from utils.log_utils import tprint


@dataclass
class OTPSession:
    """Browser handles kept alive between the OTP request and its verification."""

    browser: Any
    page: Any
    frame: Any
    playwright: Any = None
    identifier: str = ""
    login_type: str = "phone"
    created_at: float = field(default_factory=time.monotonic)

    async def close(self) -> None:
        """Close the browser if still connected and stop Playwright."""
        try:
            if self.browser is not None and self.browser.is_connected():
                await self.browser.close()
        finally:
            if self.playwright is not None:
                await self.playwright.stop()


@dataclass
class _CacheEntry:
    session: OTPSession
    timestamp: float
    loop: asyncio.AbstractEventLoop
    cleanup: asyncio.TimerHandle | None = None


class OTPSessionCache:
    """Process-local map from session id to an open browser/page/frame set.

    Every entry gets a cleanup timer on the running event loop; when it fires
    the browser is closed and the entry dropped. Expired entries are also
    evicted on read.
    """

    def __init__(self, ttl_secs: float = 300) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._ttl = ttl_secs
        self._cleanup_tasks: set[asyncio.Task] = set()

    @property
    def ttl_secs(self) -> float:
        return self._ttl

    def put(self, session_id: str, session: OTPSession) -> None:
        """Store *session* and schedule its cleanup after the TTL.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        previous = self._entries.pop(session_id, None)
        if previous and previous.cleanup:
            previous.cleanup.cancel()
        handle = loop.call_later(self._ttl, self._expire, session_id)
        self._entries[session_id] = _CacheEntry(
            session=session, timestamp=time.monotonic(), loop=loop, cleanup=handle
        )
        tprint(f"[SESSION_CACHE][DEBUG] Cached session {session_id} (ttl={self._ttl}s)")

    def get(self, session_id: str) -> OTPSession | None:
        """Return the cached session, or None if missing or expired."""
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        age = time.monotonic() - entry.timestamp
        if age > self._ttl:
            self._expire(session_id)
            return None
        return entry.session

    def pop(self, session_id: str) -> OTPSession | None:
        """Remove and return a session without closing it; the caller owns it."""
        entry = self._entries.pop(session_id, None)
        if entry is None:
            return None
        if entry.cleanup:
            entry.cleanup.cancel()
        return entry.session

    def size(self) -> int:
        return len(self._entries)

    def ids(self) -> list[str]:
        return list(self._entries)

    async def close_all(self) -> None:
        """Close every cached browser and empty the cache."""
        for session_id in list(self._entries):
            entry = self._entries.pop(session_id)
            if entry.cleanup:
                entry.cleanup.cancel()
            await self._close(session_id, entry.session)
        if self._cleanup_tasks:
            await asyncio.gather(*self._cleanup_tasks, return_exceptions=True)

    def _expire(self, session_id: str) -> None:
        entry = self._entries.pop(session_id, None)
        if entry is None:
            return
        if entry.cleanup:
            entry.cleanup.cancel()
        self._schedule_close(session_id, entry)

    def _schedule_close(self, session_id: str, entry: _CacheEntry) -> None:
        """Close *entry* on the loop that owns its browser handles."""
        loop = entry.loop
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            task = loop.create_task(self._close(session_id, entry.session))
            self._cleanup_tasks.add(task)
            task.add_done_callback(self._cleanup_tasks.discard)
        elif loop.is_closed():
            tprint(
                f"[SESSION_CACHE][WARN] Event loop for session {session_id} is closed; "
                "dropping it without closing the browser"
            )
        elif loop.is_running():
            asyncio.run_coroutine_threadsafe(self._close(session_id, entry.session), loop)
        elif running is None:
            loop.run_until_complete(self._close(session_id, entry.session))
        else:
            tprint(
                f"[SESSION_CACHE][WARN] Session {session_id} belongs to another event loop; "
                "dropping it without closing the browser"
            )

    async def _close(self, session_id: str, session: OTPSession) -> None:
        try:
            await session.close()
            tprint(f"[SESSION_CACHE] Closed session {session_id}")
        except Exception as exc:
            tprint(f"[SESSION_CACHE][WARN] Error closing session {session_id}: {exc}")
