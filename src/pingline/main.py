from __future__ import annotations

import argparse
import asyncio
import ipaddress
import logging
import signal
from typing import Optional, Sequence

from rich.logging import RichHandler

from . import __version__, config
from .formatters import OutputFormat, get_formatter
from .ping import BACKENDS, make_echo
from .prober import Prober, line_console

logger = logging.getLogger("pingline")


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def ip_address(value: str):
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid IP address: {value!r}") from None


def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pingline", description="Continuous ICMP echo prober"
    )
    ap.add_argument("server", type=ip_address, help="Server IP address")
    ap.add_argument(
        "-i",
        "--interval",
        type=positive_int,
        default=config.DEFAULT_INTERVAL_MS,
        help="Interval between each ping (in ms)",
    )
    ap.add_argument(
        "-f",
        "--format",
        type=OutputFormat,
        choices=list(OutputFormat),
        default=OutputFormat(config.DEFAULT_FORMAT),
        help="Output format",
    )
    ap.add_argument(
        "-c", "--count", type=positive_int, default=None, help="Stop after this many pings"
    )
    ap.add_argument(
        "-W",
        "--timeout",
        type=positive_float,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help="Seconds to wait for each reply",
    )
    ap.add_argument(
        "-b",
        "--backend",
        choices=BACKENDS,
        default=config.DEFAULT_BACKEND,
        help="Echo implementation",
    )
    sockets = ap.add_mutually_exclusive_group()
    sockets.add_argument(
        "--privileged",
        dest="privileged",
        action="store_const",
        const=True,
        help="Always use raw ICMP sockets (icmplib backend, needs root)",
    )
    sockets.add_argument(
        "--unprivileged",
        dest="privileged",
        action="store_const",
        const=False,
        help="Always use ICMP datagram sockets (icmplib backend). "
        "By default datagram sockets are tried first, then raw sockets",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug output on stderr")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_TIME_FORMAT,
        handlers=[RichHandler(console=line_console(stderr=True), show_path=False)],
    )


async def main_async(args: argparse.Namespace) -> int:
    """Wire the prober from parsed arguments and run it until stopped."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler():
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:  # Windows
            signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(_signal_handler))

    prober = Prober(
        make_echo(args.backend, timeout=args.timeout, privileged=args.privileged),
        args.server,
        get_formatter(args.format),
        interval_ms=args.interval,
    )
    return await prober.run(stop_event, count=args.count)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_argparser().parse_args(argv)
    setup_logging(args.verbose)
    logger.debug("target=%s format=%s backend=%s", args.server, args.format, args.backend)
    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
