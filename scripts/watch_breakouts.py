#!/usr/bin/env python3
"""Watch futures volume breakouts from the terminal.

Selects instruments (a window of the 24h gainers board, or a watchlist),
subscribes to their 1-minute kline and mini-ticker streams and prints every
accepted alert. ``high`` tier alerts ring the terminal bell when
``--notify`` is given.

Configuration comes from ``VOLSURGE_*`` environment variables; command line
flags take precedence.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from volsurge import AlertEvent, ScannerConfig, ScannerStatus, VolumeScanner  # noqa: E402
from volsurge._format import format_price, format_volume  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print volume breakout alerts for exchange futures.",
    )
    parser.add_argument(
        "--mode",
        choices=("ranked", "watchlist"),
        help="Instrument selection mode.",
    )
    parser.add_argument("--start", type=int, help="First rank of the gainers window (1-based).")
    parser.add_argument("--end", type=int, help="Last rank of the gainers window (inclusive).")
    parser.add_argument(
        "--symbols",
        help="Comma-separated watchlist (e.g. BTCUSDT,ETHUSDT).",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help="Breakout ratio threshold, 1.0 to 10.0.",
    )
    parser.add_argument(
        "--notify",
        action="store_true",
        help="Ring the terminal bell on high tier alerts.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _config_from_args(args: argparse.Namespace) -> ScannerConfig:
    overrides: dict[str, Any] = {}
    if args.mode:
        overrides["mode"] = args.mode
    if args.start is not None:
        overrides["rank_start"] = args.start
    if args.end is not None:
        overrides["rank_end"] = args.end
    if args.symbols:
        overrides["watchlist"] = tuple(s.strip().upper() for s in args.symbols.split(",") if s.strip())
    if args.threshold is not None:
        overrides["threshold"] = args.threshold
    if args.notify:
        overrides["notifications_enabled"] = True
    return ScannerConfig.from_env(**overrides)


def _print_alert(alert: AlertEvent) -> None:
    marker = "!!" if alert.is_high else "  "
    print(
        f"{marker} {alert.emitted_at:%H:%M:%S} {alert.instrument_key:<14} "
        f"{alert.message:<22} price={format_price(alert.price_at_alert)} "
        f"vol={format_volume(alert.raw_volume)}",
        flush=True,
    )


def _ring_bell(_alert: AlertEvent) -> None:
    sys.stdout.write("\a\a")
    sys.stdout.flush()


def _print_status(status: ScannerStatus) -> None:
    print(f"-- {status}", flush=True)


async def _run(config: ScannerConfig, duration: int) -> int:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    async with VolumeScanner(
        config,
        on_alert=_print_alert,
        on_high_alert=_ring_bell,
        on_status=_print_status,
    ) as scanner:
        await scanner.start()
        consumer = asyncio.create_task(scanner.wait())
        stopper = asyncio.create_task(stop_event.wait())
        waiters = {consumer, stopper}
        timeout = duration if duration > 0 else None
        await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        for task in waiters:
            task.cancel()

        print(f"-- tracked {len(scanner.snapshot())} instruments, {len(scanner.alerts())} alerts", flush=True)
        return 1 if scanner.status == ScannerStatus.ERROR else 0


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = _config_from_args(args)
    return asyncio.run(_run(config, args.duration))


if __name__ == "__main__":
    raise SystemExit(main())
