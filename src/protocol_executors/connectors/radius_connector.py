from __future__ import annotations

import asyncio
import logging

from protocol_executors.codecs.radius_packet import HEADER, is_authentic_response
from protocol_executors.connectors.transport import exchange_within, resolve_host, split_host_port
from protocol_executors.core.context import StepContext


DEFAULT_RADIUS_PORT = 1812


class _RadiusClientProtocol(asyncio.DatagramProtocol):
    def __init__(self, request: bytes, secret: bytes, logger: logging.Logger) -> None:
        self._request = request
        self._secret = secret
        self._logger = logger
        self.response: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if self.response.done():
            return
        if len(data) < HEADER.size or data[1] != self._request[1]:
            self._logger.debug("Ignoring datagram from %s with unexpected identifier.", addr)
            return
        if not is_authentic_response(data, self._request, self._secret):
            self._logger.debug("Ignoring datagram from %s with invalid response authenticator.", addr)
            return
        self.response.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self.response.done():
            self.response.set_exception(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if not self.response.done():
            self.response.set_exception(exc or ConnectionError("socket closed before a response arrived"))


class RadiusUdpConnector:
    """Single request/response RADIUS exchange over UDP.

    Datagrams that do not match the request identifier or fail the Response
    Authenticator check are dropped; the exchange keeps waiting until the
    deadline.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    async def exchange(
        self,
        request: bytes,
        *,
        server: str,
        secret: bytes,
        context: StepContext,
        deadline: float,
    ) -> bytes:
        return await exchange_within(
            self._send_and_receive(request, server=server, secret=secret),
            context=context,
            deadline=deadline,
        )

    async def _send_and_receive(self, request: bytes, *, server: str, secret: bytes) -> bytes:
        host, port = split_host_port(server, default_port=DEFAULT_RADIUS_PORT)
        address = await resolve_host(host)
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: _RadiusClientProtocol(request, secret, self._logger),
            remote_addr=(address, port),
        )
        try:
            transport.sendto(request)
            return await protocol.response
        finally:
            transport.close()
