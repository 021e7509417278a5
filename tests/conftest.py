from __future__ import annotations

import asyncio
import struct
from collections.abc import Callable

import dns.flags
import dns.message
import dns.rrset
import pytest
import pytest_asyncio

from protocol_executors.codecs.radius_packet import RadiusPacket, decode_packet


class FakeRadiusServer(asyncio.DatagramProtocol):
    def __init__(
        self,
        *,
        secret: bytes = b"secret",
        reply_code: int = 2,
        reply_attributes: list[tuple[int, bytes]] | None = None,
        respond: bool = True,
    ) -> None:
        self.secret = secret
        self.reply_code = reply_code
        self.reply_attributes = reply_attributes or []
        self.respond = respond
        self.requests: list[RadiusPacket] = []
        self.raw_requests: list[bytes] = []
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        request = decode_packet(data, self.secret)
        self.raw_requests.append(data)
        self.requests.append(request)
        if not self.respond or self.transport is None:
            return
        reply = RadiusPacket(
            code=self.reply_code,
            identifier=request.identifier,
            authenticator=request.authenticator,
            secret=self.secret,
            attributes=list(self.reply_attributes),
        )
        self.transport.sendto(reply.encode(), addr)


@pytest_asyncio.fixture
async def radius_server():
    transports: list[asyncio.BaseTransport] = []

    async def start(**kwargs) -> tuple[FakeRadiusServer, str]:
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: FakeRadiusServer(**kwargs),
            local_addr=("127.0.0.1", 0),
        )
        transports.append(transport)
        host, port = transport.get_extra_info("sockname")[:2]
        return protocol, f"{host}:{port}"

    yield start
    for transport in transports:
        transport.close()


ResponseBuilder = Callable[[dns.message.Message], dns.message.Message | None]


def _answer_builder(*records: tuple[str, int, str, str], truncated: bool = False) -> ResponseBuilder:
    def build(query: dns.message.Message) -> dns.message.Message | None:
        response = dns.message.make_response(query)
        for name, ttl, rdtype, text in records:
            response.answer.append(dns.rrset.from_text(name, ttl, "IN", rdtype, text))
        if truncated:
            response.flags |= dns.flags.TC
        return response

    return build


@pytest.fixture
def dns_answer() -> Callable[..., ResponseBuilder]:
    """Factory of responders answering any query with ``(name, ttl, rdtype, text)`` records."""
    return _answer_builder


class _UdpDnsServer(asyncio.DatagramProtocol):
    def __init__(self, builder: ResponseBuilder) -> None:
        self.builder = builder
        self.wire_limit: int | None = None
        self.queries = 0
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        self.queries += 1
        response = self.builder(dns.message.from_wire(data))
        if response is not None and self.transport is not None:
            self.transport.sendto(response.to_wire()[: self.wire_limit], addr)


class LoopbackDnsServer:
    def __init__(self, udp: _UdpDnsServer, tcp_builder: ResponseBuilder) -> None:
        self.udp = udp
        self.tcp_builder = tcp_builder
        self.tcp_queries = 0

    async def handle_tcp(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            (length,) = struct.unpack("!H", await reader.readexactly(2))
            query = dns.message.from_wire(await reader.readexactly(length))
            self.tcp_queries += 1
            response = self.tcp_builder(query)
            if response is None:
                # Hold the connection open until the client gives up.
                await reader.read()
                return
            wire = response.to_wire()
            writer.write(struct.pack("!H", len(wire)) + wire)
            await writer.drain()
        finally:
            writer.close()


@pytest_asyncio.fixture
async def dns_server():
    cleanups: list[Callable[[], None]] = []

    async def start(*, udp: ResponseBuilder, tcp: ResponseBuilder) -> tuple[LoopbackDnsServer, str]:
        loop = asyncio.get_running_loop()
        udp_protocol = _UdpDnsServer(udp)
        server = LoopbackDnsServer(udp_protocol, tcp)
        tcp_server = await asyncio.start_server(server.handle_tcp, "127.0.0.1", 0)
        port = tcp_server.sockets[0].getsockname()[1]
        udp_transport, _ = await loop.create_datagram_endpoint(lambda: udp_protocol, local_addr=("127.0.0.1", port))
        cleanups.append(tcp_server.close)
        cleanups.append(udp_transport.close)
        return server, f"127.0.0.1:{port}"

    yield start
    for cleanup in cleanups:
        cleanup()
