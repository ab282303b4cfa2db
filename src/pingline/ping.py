from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
import math
import os
import re
from abc import ABC, abstractmethod
from ipaddress import IPv4Address, IPv6Address
from typing import Optional, Union

import icmplib

from . import config

IPAddress = Union[IPv4Address, IPv6Address]

PING_RTT_RE = re.compile(r"time[=<]\s*([0-9]*\.?[0-9]+)\s*ms")

logger = logging.getLogger(__name__)


class EchoError(Exception):
    """A single echo request failed; the reason is human-readable."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class Echo(ABC):
    @abstractmethod
    async def probe(self, address: IPAddress) -> int:
        """Send exactly one echo request and return the RTT in nanoseconds.

        Raises EchoError when no valid reply arrives.
        """
        raise NotImplementedError


class SystemPingEcho(Echo):
    """Echo through the platform 'ping' command (Linux-focused).

    Uses: ping -n -c 1 -w {timeout} [-6] address
    The tool's default payload is kept because it carries the send timestamp
    that ping needs to report an RTT.
    """

    def __init__(self, timeout: float = config.DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout

    def build_command(self, address: IPAddress) -> list[str]:
        # -n : numeric output (avoid DNS reverse lookups)
        # -c 1 : send one packet
        # -w : total deadline in whole seconds
        cmd = ["ping", "-n", "-c", "1", "-w", str(max(1, math.ceil(self.timeout)))]
        if address.version == 6:
            cmd.append("-6")
        cmd.append(str(address))
        return cmd

    async def probe(self, address: IPAddress) -> int:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.build_command(address),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except FileNotFoundError:
            raise EchoError("ping command not found") from None
        try:
            out_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self.timeout + 0.5
            )
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            raise EchoError("timeout") from None

        return parse_ping_output(out_bytes[0].decode(errors="replace"), proc.returncode)


def parse_ping_output(stdout: str, returncode: int | None) -> int:
    """Extract the RTT (ns) from one run of 'ping -c 1'."""
    if returncode == 0:
        match = PING_RTT_RE.search(stdout)
        if match is None:
            raise EchoError("malformed response")
        return round(float(match.group(1)) * 1_000_000)
    if "operation not permitted" in stdout.lower():
        raise EchoError("permission denied")
    if "100% packet loss" in stdout and "unreachable" not in stdout.lower():
        raise EchoError("timeout")
    raise EchoError("unreachable")


class IcmplibEcho(Echo):
    """Echo over an ICMP socket managed by icmplib, with an empty payload.

    With `privileged=None` a datagram socket is tried first and a raw socket
    is used when the system refuses it; the outcome sticks for later probes.
    """

    def __init__(
        self,
        timeout: float = config.DEFAULT_TIMEOUT_SECONDS,
        privileged: Optional[bool] = None,
    ):
        self.timeout = timeout
        self.privileged = privileged
        self._id = os.getpid() & 0xFFFF
        self._sequence = itertools.count()

    def open_socket(self, sock_cls):
        if self.privileged is not None:
            return sock_cls(privileged=self.privileged)
        try:
            sock = sock_cls(privileged=False)
        except icmplib.SocketPermissionError:
            logger.debug("datagram ICMP socket refused, falling back to raw socket")
            sock = sock_cls(privileged=True)
            self.privileged = True
        else:
            self.privileged = False
        return sock

    async def probe(self, address: IPAddress) -> int:
        sock_cls = icmplib.ICMPv6Socket if address.version == 6 else icmplib.ICMPv4Socket
        request = icmplib.ICMPRequest(
            destination=str(address),
            id=self._id,
            sequence=next(self._sequence) & 0xFFFF,
            payload_size=config.PAYLOAD_SIZE,
        )
        try:
            with icmplib.AsyncSocket(self.open_socket(sock_cls)) as sock:
                sock.send(request)
                reply = await sock.receive(request, self.timeout)
                reply.raise_for_status()
        except icmplib.SocketPermissionError:
            raise EchoError("permission denied") from None
        except icmplib.TimeoutExceeded:
            raise EchoError("timeout") from None
        except icmplib.ICMPLibError as err:
            raise EchoError(str(err) or type(err).__name__) from None

        rtt_ns = round((reply.time - request.time) * 1_000_000_000)
        logger.debug("reply from %s seq=%d", reply.source, reply.sequence)
        return max(0, rtt_ns)


BACKENDS = ("icmplib", "system")


def make_echo(
    backend: str,
    timeout: float = config.DEFAULT_TIMEOUT_SECONDS,
    privileged: Optional[bool] = None,
) -> Echo:
    if backend == "icmplib":
        return IcmplibEcho(timeout=timeout, privileged=privileged)
    if backend == "system":
        return SystemPingEcho(timeout=timeout)
    raise ValueError(f"unknown echo backend: {backend!r}")
