"""Async polling loop: fetch → parse → aggregate → publish."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum

from signal_watch.device.base import LogSource
from signal_watch.device.parser import parse
from signal_watch.device.session import SessionError, SessionExpired
from signal_watch.monitor.snapshot import SharedSnapshot
from signal_watch.monitor.stats import StatsAggregator

logger = logging.getLogger(__name__)

MIN_INTERVAL_MS = 100


class PollerState(str, Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class PollerCounters:
    """Diagnostic counters for the poll loop."""

    cycles: int = 0
    updates: int = 0
    failures: int = 0
    relogins: int = 0
    resets: int = 0


class Poller:
    """Background loop that keeps a SharedSnapshot current.

    Each cycle:
    1. Fetch the router log
    2. Parse it against the currently published snapshot
    3. Fold the result into the statistics (or reset them on a generation change)
    4. Publish the new snapshot

    Fetch failures are logged and absorbed; the next attempt happens on the
    next scheduled cycle. An expired session is re-authenticated inline.
    """

    def __init__(
        self,
        source: LogSource,
        shared: SharedSnapshot,
        aggregator: StatsAggregator,
        interval_ms: int = 1000,
    ) -> None:
        self._source = source
        self._shared = shared
        self._aggregator = aggregator
        self._interval = max(MIN_INTERVAL_MS, interval_ms) / 1000.0
        self._state = PollerState.IDLE
        self._counters = PollerCounters()
        self._stop_event = asyncio.Event()
        self._stop_requested = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def counters(self) -> PollerCounters:
        return self._counters

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def start(self) -> None:
        """Authenticate and start the background loop.

        Raises the SessionError subclass from the login attempt on failure;
        the poller is then STOPPED and cannot be restarted.
        """
        if self._state != PollerState.IDLE:
            raise RuntimeError(f"Poller cannot start from state {self._state.value}")

        self._state = PollerState.AUTHENTICATING
        try:
            await self._source.login()
        except SessionError as e:
            self._state = PollerState.STOPPED
            logger.warning("Login failed: %s", e)
            raise

        self._loop = asyncio.get_running_loop()
        self._state = PollerState.RUNNING
        self._task = asyncio.create_task(self._run(), name="signal-watch-poller")

    def stop(self) -> None:
        """Ask the loop to exit after its current cycle. Safe to call repeatedly,
        and from other threads.
        """
        if self._stop_requested:
            return
        self._stop_requested = True
        if self._state == PollerState.RUNNING:
            self._state = PollerState.STOPPING

        loop = self._loop
        if loop is None or loop.is_closed():
            self._stop_event.set()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._stop_event.set()
        else:
            loop.call_soon_threadsafe(self._stop_event.set)

    async def join(self) -> None:
        """Wait for the loop to exit. Later calls return immediately."""
        task = self._task
        if task is None:
            return
        self._task = None
        await task

    async def poll_once(self) -> bool:
        """Run a single fetch/parse/publish cycle. Returns True if a new
        snapshot was published.
        """
        self._counters.cycles += 1
        try:
            text = await self._source.fetch_log()
        except SessionExpired:
            self._counters.relogins += 1
            logger.info("Session expired, logging in again")
            try:
                await self._source.login()
            except SessionError as e:
                self._counters.failures += 1
                logger.warning("Re-login failed: %s", e)
            return False
        except SessionError as e:
            self._counters.failures += 1
            logger.warning("Log fetch failed: %s", e)
            return False

        result = parse(text, self._shared.read_raw())
        if result.was_reset:
            self._counters.resets += 1
            self._aggregator.reset()
            # Publish the cleared snapshot so the next batch is judged on its own
            self._shared.publish(result.info)
            return False

        self._aggregator.update(result.info, result.info.network_type_as_int())
        self._shared.publish(result.info)
        self._counters.updates += 1
        return True

    async def _run(self) -> None:
        logger.info("Poll loop starting (interval: %dms)", int(self._interval * 1000))
        try:
            while not self._stop_requested:
                cycle_start = time.monotonic()
                try:
                    await self.poll_once()
                except Exception:
                    self._counters.failures += 1
                    logger.exception("Poll cycle failed")
                logger.debug(
                    "Cycle %d done in %dms",
                    self._counters.cycles, int((time.monotonic() - cycle_start) * 1000),
                )

                if self._stop_requested:
                    break
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                    break  # stop_event was set
                except asyncio.TimeoutError:
                    pass
        finally:
            self._state = PollerState.STOPPED
            logger.info(
                "Poll loop stopped after %d cycles (%d updates, %d failures)",
                self._counters.cycles, self._counters.updates, self._counters.failures,
            )
