from __future__ import annotations

import asyncio
import ipaddress
import socket
import time
from collections.abc import Awaitable
from typing import TypeVar

from protocol_executors.core.context import StepContext
from protocol_executors.core.errors import ExchangeError


T = TypeVar("T")


async def exchange_within(operation: Awaitable[T], *, context: StepContext, deadline: float) -> T:
    """Await ``operation`` until it finishes, ``deadline`` passes or ``context`` is canceled.

    The operation is canceled (and its sockets released) before this returns on
    every path other than normal completion.
    """
    task = asyncio.ensure_future(operation)
    cancel_waiter = asyncio.ensure_future(context.wait_cancelled())
    try:
        timeout = max(0.0, deadline - time.monotonic())
        done, _ = await asyncio.wait({task, cancel_waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel_waiter.cancel()
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    if task in done:
        return task.result()
    if context.cancelled:
        raise ExchangeError("CANCELED", "context canceled")
    raise ExchangeError("DEADLINE_EXCEEDED", "context deadline exceeded")


def split_host_port(address: str, *, default_port: int) -> tuple[str, int]:
    text = address.strip()
    if not text:
        raise ExchangeError("INVALID_ADDRESS", "server address is empty")

    if text.startswith("["):
        host, sep, rest = text[1:].partition("]")
        if not sep:
            raise ExchangeError("INVALID_ADDRESS", f"missing ']' in address {address}")
        port_text = rest[1:] if rest.startswith(":") else ""
        if rest and not rest.startswith(":"):
            raise ExchangeError("INVALID_ADDRESS", f"unexpected text after ']' in address {address}")
    elif text.count(":") == 1:
        host, _, port_text = text.partition(":")
    else:
        # Plain hostname, IPv4 literal or unbracketed IPv6 literal.
        host, port_text = text, ""

    if not port_text:
        return host, default_port
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise ExchangeError("INVALID_ADDRESS", f"invalid port {port_text!r} in address {address}")
    return host, int(port_text)


async def resolve_host(host: str, *, socket_type: int = socket.SOCK_DGRAM) -> str:
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        pass

    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket_type)
    if not infos:
        raise ExchangeError("INVALID_ADDRESS", f"no address found for host {host}")
    return str(infos[0][4][0])
