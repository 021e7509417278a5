from __future__ import annotations

import hashlib
import ipaddress
import secrets
import struct
from dataclasses import dataclass, field

from protocol_executors.codecs.radius_tables import USER_PASSWORD, AttributeKind, attribute_spec
from protocol_executors.core.errors import AttributeEncodingError


HEADER = struct.Struct("!BBH16s")
ATTRIBUTE_HEADER = struct.Struct("!BB")
AUTHENTICATOR_LENGTH = 16
MAX_PACKET_LENGTH = 4096
MAX_ATTRIBUTE_VALUE_LENGTH = 253
MAX_PASSWORD_LENGTH = 128
MAX_UINT32 = 0xFFFFFFFF

# Codes whose Request Authenticator is random (RFC 2865 §3, RFC 5997).
RANDOM_AUTHENTICATOR_CODES = frozenset({1, 12, 13})
# Codes whose Request Authenticator is an MD5 over a zeroed field (RFC 2866 §3, RFC 5176 §2.3).
HASHED_REQUEST_CODES = frozenset({4, 40, 43})


@dataclass(slots=True)
class RadiusPacket:
    code: int
    identifier: int
    authenticator: bytes
    secret: bytes = field(repr=False)
    attributes: list[tuple[int, bytes]] = field(default_factory=list)

    @classmethod
    def new(cls, code: int, secret: bytes) -> "RadiusPacket":
        return cls(
            code=code,
            identifier=secrets.randbelow(256),
            authenticator=secrets.token_bytes(AUTHENTICATOR_LENGTH),
            secret=secret,
        )

    def add(self, attribute_type: int, value: bytes) -> None:
        if len(value) > MAX_ATTRIBUTE_VALUE_LENGTH:
            raise ValueError(f"value is {len(value)} bytes, maximum is {MAX_ATTRIBUTE_VALUE_LENGTH}")
        self.attributes.append((attribute_type, value))

    def get(self, attribute_type: int) -> bytes | None:
        for current_type, value in self.attributes:
            if current_type == attribute_type:
                return value
        return None

    def get_string(self, attribute_type: int) -> str:
        value = self.get(attribute_type)
        if value is None:
            return ""
        return value.decode("utf-8", errors="replace")

    def encode(self) -> bytes:
        body = b"".join(ATTRIBUTE_HEADER.pack(kind, len(value) + 2) + value for kind, value in self.attributes)
        length = HEADER.size + len(body)
        if length > MAX_PACKET_LENGTH:
            raise ValueError(f"packet is {length} bytes, maximum is {MAX_PACKET_LENGTH}")

        if self.code in RANDOM_AUTHENTICATOR_CODES:
            authenticator = self.authenticator
        else:
            seed = bytes(AUTHENTICATOR_LENGTH) if self.code in HASHED_REQUEST_CODES else self.authenticator
            header = HEADER.pack(self.code, self.identifier, length, seed)
            authenticator = hashlib.md5(header + body + self.secret).digest()
        return HEADER.pack(self.code, self.identifier, length, authenticator) + body


def decode_packet(data: bytes, secret: bytes) -> RadiusPacket:
    if len(data) < HEADER.size:
        raise ValueError(f"packet too short: {len(data)} bytes")

    code, identifier, length, authenticator = HEADER.unpack_from(data)
    if length < HEADER.size or length > len(data) or length > MAX_PACKET_LENGTH:
        raise ValueError(f"invalid packet length {length}")

    packet = RadiusPacket(code=code, identifier=identifier, authenticator=authenticator, secret=secret)
    offset = HEADER.size
    while offset < length:
        if offset + ATTRIBUTE_HEADER.size > length:
            raise ValueError("truncated attribute header")
        attribute_type, attribute_length = ATTRIBUTE_HEADER.unpack_from(data, offset)
        if attribute_length < ATTRIBUTE_HEADER.size or offset + attribute_length > length:
            raise ValueError(f"invalid length {attribute_length} for attribute {attribute_type}")
        packet.attributes.append((attribute_type, bytes(data[offset + 2 : offset + attribute_length])))
        offset += attribute_length
    return packet


def is_authentic_response(response: bytes, request: bytes, secret: bytes) -> bool:
    if len(response) < HEADER.size or len(request) < HEADER.size:
        return False
    length = struct.unpack_from("!H", response, 2)[0]
    if length < HEADER.size or length > len(response):
        return False
    expected = hashlib.md5(response[:4] + request[4:20] + response[HEADER.size : length] + secret).digest()
    return secrets.compare_digest(expected, response[4:20])


def hide_password(password: bytes, secret: bytes, authenticator: bytes) -> bytes:
    """User-Password hiding from RFC 2865 §5.2."""
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"password is {len(password)} bytes, maximum is {MAX_PASSWORD_LENGTH}")

    padded = password + bytes(-len(password) % 16) if password else bytes(16)
    hidden = bytearray()
    previous = authenticator
    for offset in range(0, len(padded), 16):
        digest = hashlib.md5(secret + previous).digest()
        chunk = bytes(a ^ b for a, b in zip(padded[offset : offset + 16], digest))
        hidden.extend(chunk)
        previous = chunk
    return bytes(hidden)


def encode_attribute(packet: RadiusPacket, name: str, value: str) -> None:
    spec = attribute_spec(name)
    if spec is None:
        raise AttributeEncodingError(name, f"unsupported attribute: {name}")

    if spec.kind is AttributeKind.STRING:
        raw = value.encode("utf-8")
        if spec.code == USER_PASSWORD:
            try:
                raw = hide_password(raw, packet.secret, packet.authenticator)
            except ValueError as exc:
                raise AttributeEncodingError(name, str(exc)) from exc
    elif spec.kind is AttributeKind.IP:
        try:
            raw = ipaddress.IPv4Address(value.strip()).packed
        except ValueError as exc:
            raise AttributeEncodingError(name, f"invalid {name} value: {value}") from exc
    elif spec.kind is AttributeKind.INTEGER:
        number = _parse_uint32(value)
        if number is None:
            raise AttributeEncodingError(name, f"invalid {name} value: {value}")
        raw = number.to_bytes(4, "big")
    else:
        code = spec.enum_code(value)
        if code is None:
            raise AttributeEncodingError(name, f"unsupported {name}: {value}")
        raw = code.to_bytes(4, "big")

    try:
        packet.add(spec.code, raw)
    except ValueError as exc:
        raise AttributeEncodingError(name, str(exc)) from exc


def _parse_uint32(value: str) -> int | None:
    text = value.strip()
    if text.startswith("+"):
        text = text[1:]
    if not text.isdecimal():
        return None
    number = int(text)
    if number > MAX_UINT32:
        return None
    return number
