"""Transient handles - blob-style URLs that hold exported bytes.

An export hands its bytes to the caller behind a handle URL.  The caller is
expected to release the handle once the download is done; a timer revokes
any handle still alive after ``ttl`` seconds so abandoned exports do not
accumulate.

Usage::

    registry = HandleRegistry(ttl=60.0)
    url = registry.create(pdf_bytes, "application/pdf")
    data = registry.resolve(url)
    registry.revoke(url)

    with registry.acquire(pdf_bytes, "application/pdf") as url:
        serve(registry.resolve(url))
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator


URL_PREFIX = "blob:whiteboard-export/"
DEFAULT_TTL_SECONDS = 60.0


@dataclass
class _Entry:
    data: bytes
    mime_type: str
    timer: object | None = None


class HandleRegistry:
    """Thread-safe store of live handle URLs.

    Parameters
    ----------
    ttl : float
        Seconds after which an unreleased handle is revoked automatically.
        ``None`` or ``0`` disables the safety timer.
    timer_factory : callable
        ``(interval, function) -> timer`` with ``start()``/``cancel()``;
        defaults to :class:`threading.Timer`.
    """

    def __init__(self, ttl: float | None = DEFAULT_TTL_SECONDS,
                 timer_factory: Callable | None = None) -> None:
        self.ttl = ttl
        self._timer_factory = timer_factory or threading.Timer
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def create(self, data: bytes, mime_type: str) -> str:
        """Register *data* and return a new handle URL."""
        url = f"{URL_PREFIX}{uuid.uuid4()}"
        entry = _Entry(data=data, mime_type=mime_type)
        if self.ttl:
            timer = self._timer_factory(self.ttl, lambda: self.revoke(url))
            if hasattr(timer, "daemon"):
                timer.daemon = True
            entry.timer = timer
        with self._lock:
            self._entries[url] = entry
        if entry.timer is not None:
            entry.timer.start()
        return url

    def resolve(self, url: str) -> bytes | None:
        """Bytes behind a live handle, or None once it has been revoked."""
        with self._lock:
            entry = self._entries.get(url)
        return entry.data if entry else None

    def mime_type(self, url: str) -> str | None:
        with self._lock:
            entry = self._entries.get(url)
        return entry.mime_type if entry else None

    def revoke(self, url: str) -> bool:
        """Release a handle; returns False if it was already gone."""
        with self._lock:
            entry = self._entries.pop(url, None)
        if entry is None:
            return False
        if entry.timer is not None:
            entry.timer.cancel()
        return True

    def revoke_all(self) -> int:
        """Release every live handle and return how many there were."""
        with self._lock:
            urls = list(self._entries)
        return sum(1 for url in urls if self.revoke(url))

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    @contextmanager
    def acquire(self, data: bytes, mime_type: str) -> Iterator[str]:
        """Scoped handle: revoked when the block exits."""
        url = self.create(data, mime_type)
        try:
            yield url
        finally:
            self.revoke(url)
