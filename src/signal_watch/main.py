"""Signal Watch command-line entry point.

Startup sequence:
  config → logging → router address/password prompt → login → poll loop → display loop
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, TextIO

from signal_watch.config.manager import ConfigError, ConfigManager
from signal_watch.config.schema import AppConfig
from signal_watch.device.base import InitResult
from signal_watch.display import CLEAR_SCREEN, age_seconds, format_stats, format_status, is_displayable
from signal_watch.logging.structured import setup_logging
from signal_watch.watch import SignalWatch

logger = logging.getLogger(__name__)

DEFAULT_ROUTER_ADDRESS = "192.168.0.1"
MAX_PASSWORD_LENGTH = 32

_INIT_ERRORS = {
    InitResult.HTTP_REQUEST_FAILED: "HTTP request failed!",
    InitResult.NOT_SUPPORTED_DEVICE: "Probably not a ZTE MF283+ / 3Webgate 3?",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signal-watch",
        description="Watch the signal of a ZTE MF283+ cellular router",
    )
    parser.add_argument("--router", help="Router address (prompted if omitted)")
    parser.add_argument("--interval-ms", type=int, help="Poll interval in milliseconds (min 100)")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"), help="User config file")
    parser.add_argument(
        "--defaults", type=Path, default=Path("config.defaults.yaml"), help="Defaults config file"
    )
    parser.add_argument("--simulate", action="store_true", help="Use synthetic data, no router")
    parser.add_argument("--no-clear", action="store_true", help="Print one line per update")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument(
        "--remember", action="store_true", help="Save the router address to the user config file"
    )
    parser.add_argument("--show-config", action="store_true", help="Print the effective config and exit")
    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Translate command-line options into config overrides."""
    overrides: dict[str, Any] = {}
    if args.router:
        overrides.setdefault("router", {})["address"] = args.router
    if args.interval_ms is not None:
        overrides.setdefault("router", {})["poll_interval_ms"] = max(100, args.interval_ms)
    if args.simulate:
        overrides.setdefault("simulation", {})["enabled"] = True
    if args.no_clear:
        overrides.setdefault("display", {})["clear_screen"] = False
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    return overrides


def prompt_router_address(default: str = DEFAULT_ROUTER_ADDRESS) -> str:
    answer = input(f"Router IP [{default}]: ").strip()
    return answer or default


def prompt_password() -> str:
    """Prompt until a non-empty password of acceptable length is entered."""
    while True:
        password = getpass.getpass("Router Password: ")
        if not password:
            continue
        if len(password) > MAX_PASSWORD_LENGTH:
            print("Password too long!", file=sys.stderr)
            continue
        return password


class Console:
    """Renders status lines, redrawing in place unless clearing is disabled."""

    def __init__(self, clear_screen: bool = True, show_stats: bool = True, out: TextIO | None = None) -> None:
        self._clear = clear_screen
        self._show_stats = show_stats
        self._out = out or sys.stdout
        self._last_n: int | None = None
        self._line = ""

    def render(self, watch: SignalWatch) -> None:
        info = watch.latest_snapshot()
        if info is not None and info.n != self._last_n and is_displayable(info):
            self._line = format_status(info)
            if self._show_stats:
                stats_line = format_stats(watch.stats)
                if stats_line:
                    self._line += "\n" + stats_line
            self._last_n = info.n

        if not self._line or info is None:
            return
        if self._clear:
            self._out.write(CLEAR_SCREEN)
        self._out.write(f"{self._line} [{age_seconds(info)}s]")
        self._out.write("\n" if not self._clear else "")
        self._out.flush()


async def run_watch(config: AppConfig, stop_event: asyncio.Event) -> int:
    """Start a watch (re-prompting on a wrong password) and render until stopped."""
    while True:
        watch = SignalWatch(config)
        result = await watch.start()
        if result == InitResult.OK:
            break
        if result == InitResult.WRONG_PASSWORD:
            print("Wrong Password!", file=sys.stderr)
            password = await asyncio.to_thread(prompt_password)
            config = config.model_copy(
                update={"router": config.router.model_copy(update={"password": password})}
            )
            continue
        print(f"Error: {_INIT_ERRORS[result]}", file=sys.stderr)
        return 1

    console = Console(
        clear_screen=config.display.clear_screen,
        show_stats=config.display.show_stats,
    )
    print("Please be patient...", flush=True)
    try:
        while not stop_event.is_set():
            console.render(watch)
            try:
                await asyncio.wait_for(
                    stop_event.wait(), timeout=config.display.refresh_interval_seconds
                )
            except asyncio.TimeoutError:
                pass
    finally:
        watch.stop()
        await watch.join()
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.defaults, args.config)
    try:
        config = config_manager.load(overrides_from_args(args))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.show_config:
        print(config_manager.to_json())
        sys.exit(0)

    setup_logging(config.logging)

    if not config.simulation.enabled:
        router = config.router
        try:
            if not args.router and not router.password:
                router = router.model_copy(update={"address": prompt_router_address(router.address)})
            if not router.password:
                router = router.model_copy(update={"password": prompt_password()})
        except (EOFError, KeyboardInterrupt):
            sys.exit(0)
        config = config.model_copy(update={"router": router})
        if args.remember:
            config_manager.save_user_config({"router": {"address": router.address}})

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    stop_event = asyncio.Event()
    signal_count = 0

    def _request_stop() -> None:
        nonlocal signal_count
        signal_count += 1
        if signal_count >= 2:
            os._exit(130)
        loop.call_soon_threadsafe(stop_event.set)

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _request_stop)
    else:
        signal.signal(signal.SIGINT, lambda *_: _request_stop())
        if hasattr(signal, "SIGTERM"):
            signal.signal(signal.SIGTERM, lambda *_: _request_stop())

    exit_code = 0
    try:
        exit_code = loop.run_until_complete(run_watch(config, stop_event))
    except KeyboardInterrupt:
        pass
    finally:
        pending = [task for task in asyncio.all_tasks(loop) if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            with contextlib.suppress(Exception):
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()

    if config.display.clear_screen:
        sys.stdout.write(CLEAR_SCREEN)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
