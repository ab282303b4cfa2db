from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from rich.console import Console

from . import config
from .formatters import Formatter
from .ping import Echo, EchoError, IPAddress
from .sample import Sample

logger = logging.getLogger(__name__)


def line_console(stderr: bool = False, file=None) -> Console:
    """A console that prints each record verbatim on a single line."""
    return Console(
        file=file,
        stderr=stderr,
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
    )


class Prober:
    """Fixed-delay probe loop against a single target.

    Each tick sends one echo, prints the formatted sample to `out` (or an
    error line to `err`), then sleeps `interval_ms` before the next tick.
    """

    def __init__(
        self,
        echo: Echo,
        target: IPAddress,
        formatter: Formatter,
        interval_ms: int = config.DEFAULT_INTERVAL_MS,
        out: Optional[Console] = None,
        err: Optional[Console] = None,
    ):
        if interval_ms <= 0:
            raise ValueError("interval must be positive")
        self.echo = echo
        self.target = target
        self.formatter = formatter
        self.interval = interval_ms / 1000.0
        self.out = out or line_console()
        self.err = err or line_console(stderr=True)

    async def tick(self) -> None:
        """Probe once and report the outcome."""
        try:
            rtt_ns = await self.echo.probe(self.target)
        except EchoError as err:
            self.err.print(f"{config.ERROR_PREFIX}: {err.reason}")
            return
        self.out.print(self.formatter(Sample.from_rtt(rtt_ns)))

    async def run(
        self,
        stop_event: Optional[asyncio.Event] = None,
        count: Optional[int] = None,
    ) -> int:
        """Probe until `stop_event` is set or `count` ticks have completed.

        Returns the number of completed ticks.
        """
        stop_event = stop_event or asyncio.Event()
        ticks = 0
        logger.debug(
            "probing %s every %.3fs (count=%s)", self.target, self.interval, count
        )
        while not stop_event.is_set():
            await self.tick()
            ticks += 1
            if count is not None and ticks >= count:
                break
            if stop_event.is_set():
                break
            # Sleep the full interval, waking early only to stop.
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
        logger.debug("stopped after %d ticks", ticks)
        return ticks
