from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from dataclasses import dataclass

import dns.asyncquery
import dns.flags
import dns.message

from protocol_executors.connectors.transport import exchange_within, resolve_host, split_host_port
from protocol_executors.core.context import StepContext
from protocol_executors.core.errors import error_text


DEFAULT_DNS_PORT = 53


@dataclass(slots=True)
class DnsExchange:
    response: dns.message.Message
    rtt: float
    protocol: str
    warning: str = ""


class DnsConnector:
    """DNS exchange over UDP with one TCP retry when the answer is truncated."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    async def exchange(
        self,
        make_query: Callable[[], dns.message.Message],
        *,
        server: str,
        context: StepContext,
        deadline: float,
    ) -> DnsExchange:
        """Run the UDP exchange and, on truncation, the TCP retry under the same deadline.

        UDP failures propagate. A truncated UDP answer is kept even when it was
        cut partway through a record. TCP retry failures keep that truncated
        response and describe the failure in ``DnsExchange.warning``.
        """
        started = time.monotonic()
        try:
            response = await self.query(make_query(), server=server, tcp=False, context=context, deadline=deadline)
        except dns.message.Truncated as exc:
            response = exc.message()
            response.time = time.monotonic() - started
        if not response.flags & dns.flags.TC:
            return DnsExchange(response=response, rtt=response.time, protocol="udp")

        self._logger.info("Truncated UDP response from %s, retrying over TCP.", server)
        try:
            tcp_response = await self.query(make_query(), server=server, tcp=True, context=context, deadline=deadline)
        except Exception as exc:
            self._logger.warning("TCP retry to %s failed: %s", server, error_text(exc))
            return DnsExchange(
                response=response,
                rtt=response.time,
                protocol="udp",
                warning=f"UDP response truncated, TCP retry failed: {error_text(exc)}",
            )

        if tcp_response.flags & dns.flags.TC:
            return DnsExchange(
                response=tcp_response,
                rtt=tcp_response.time,
                protocol="tcp",
                warning="UDP response truncated, TCP retry also returned truncated response",
            )
        return DnsExchange(response=tcp_response, rtt=tcp_response.time, protocol="tcp")

    async def query(
        self,
        message: dns.message.Message,
        *,
        server: str,
        tcp: bool,
        context: StepContext,
        deadline: float,
    ) -> dns.message.Message:
        return await exchange_within(self._send(message, server=server, tcp=tcp), context=context, deadline=deadline)

    async def _send(self, message: dns.message.Message, *, server: str, tcp: bool) -> dns.message.Message:
        host, port = split_host_port(server, default_port=DEFAULT_DNS_PORT)
        address = await resolve_host(host, socket_type=socket.SOCK_STREAM if tcp else socket.SOCK_DGRAM)
        if tcp:
            return await dns.asyncquery.tcp(message, address, port=port)
        return await dns.asyncquery.udp(message, address, port=port, raise_on_truncation=True)
