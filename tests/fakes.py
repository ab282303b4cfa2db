import asyncio
import io
import time
from collections import deque

from pingline.ping import Echo, EchoError
from pingline.prober import line_console


class FakeEcho(Echo):
    """
    script: sequence of RTTs in ns, EchoError instances, or (delay_s, item)
    tuples that hold the probe open for delay_s first. Exhausted -> timeout.
    """

    def __init__(self, script=()):
        self.script = deque(script)
        self.calls = []  # (monotonic start, monotonic end)

    async def probe(self, address):
        start = time.monotonic()
        item = self.script.popleft() if self.script else EchoError("timeout")
        if isinstance(item, tuple):
            delay, item = item
            await asyncio.sleep(delay)
        self.calls.append((start, time.monotonic()))
        if isinstance(item, EchoError):
            raise item
        return item


def consoles():
    out, err = io.StringIO(), io.StringIO()
    return out, err, line_console(file=out), line_console(file=err)
