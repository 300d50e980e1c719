"""Lock-guarded holder for the latest signal snapshot."""

from __future__ import annotations

import threading
from dataclasses import replace

from signal_watch.device.info import Info


class SharedSnapshot:
    """Latest published Info, safe to read from any thread.

    The lock is held only while copying in or out, never across I/O or
    parsing.
    """

    def __init__(self) -> None:
        self._info = Info()
        self._lock = threading.Lock()

    def publish(self, info: Info) -> None:
        """Replace the latest snapshot (poller only)."""
        copy = replace(info)
        with self._lock:
            self._info = copy

    def read(self) -> Info | None:
        """Return a copy of the latest snapshot, or None before the first update."""
        with self._lock:
            if self._info.n == 0:
                return None
            return replace(self._info)

    def read_raw(self) -> Info:
        """Return a copy of the current contents, even if never updated."""
        with self._lock:
            return replace(self._info)
