"""Caller-owned watch handle: start, stop, and read the latest snapshot."""

from __future__ import annotations

import logging

from signal_watch.config.schema import AppConfig, RouterConfig
from signal_watch.device.base import InitResult, LogSource
from signal_watch.device.info import Info
from signal_watch.device.session import (
    AuthRejected,
    SessionClient,
    TransportFailure,
    UnexpectedResponse,
)
from signal_watch.device.simulator import SimulatedSession
from signal_watch.logging.context import router_context
from signal_watch.monitor.poller import Poller, PollerState
from signal_watch.monitor.snapshot import SharedSnapshot
from signal_watch.monitor.stats import StatsAggregator

logger = logging.getLogger(__name__)

_INIT_RESULTS: tuple[tuple[type[Exception], InitResult], ...] = (
    (TransportFailure, InitResult.HTTP_REQUEST_FAILED),
    (UnexpectedResponse, InitResult.NOT_SUPPORTED_DEVICE),
    (AuthRejected, InitResult.WRONG_PASSWORD),
)


class SignalWatch:
    """Monitors one router.

    Owns the log source, the poller, the shared snapshot and the statistics.
    A watch runs at most once; create a new one to retry after a failed start
    (e.g. after re-prompting for the password).
    """

    def __init__(self, config: AppConfig, source: LogSource | None = None) -> None:
        self._config = config
        self._source = source or self._create_source(config)
        self._shared = SharedSnapshot()
        self._stats = StatsAggregator()
        self._poller = Poller(
            source=self._source,
            shared=self._shared,
            aggregator=self._stats,
            interval_ms=config.router.poll_interval_ms,
        )
        self._closed = False

    @classmethod
    def for_router(cls, address: str, password: str, interval_ms: int = 1000) -> SignalWatch:
        """Build a watch for a router without a config file."""
        config = AppConfig(
            router=RouterConfig(address=address, password=password, poll_interval_ms=interval_ms),
        )
        return cls(config)

    @property
    def state(self) -> PollerState:
        return self._poller.state

    @property
    def stats(self) -> StatsAggregator:
        return self._stats

    @property
    def poller(self) -> Poller:
        return self._poller

    async def start(self) -> InitResult:
        """Log in and start polling. Returns an InitResult instead of raising."""
        address = getattr(self._source, "address", self._config.router.address)
        try:
            with router_context(address):
                await self._poller.start()
        except Exception as e:
            await self._close_source()
            for exc_type, result in _INIT_RESULTS:
                if isinstance(e, exc_type):
                    logger.warning("Watch start failed (%s): %s", result.name, e)
                    return result
            raise

        logger.info("Watching router at %s", address)
        return InitResult.OK

    def stop(self) -> None:
        """Request the poll loop to stop. Idempotent."""
        self._poller.stop()

    async def join(self) -> None:
        """Wait for the poll loop to finish and release the source."""
        await self._poller.join()
        await self._close_source()

    def latest_snapshot(self) -> Info | None:
        """Non-blocking read of the most recent snapshot."""
        return self._shared.read()

    async def _close_source(self) -> None:
        if not self._closed:
            self._closed = True
            await self._source.close()

    @staticmethod
    def _create_source(config: AppConfig) -> LogSource:
        if config.simulation.enabled:
            logger.info("Simulation mode enabled, no router will be contacted")
            return SimulatedSession(
                switch_every=config.simulation.switch_every,
                seed=config.simulation.seed,
            )
        return SessionClient.from_config(config.router)
