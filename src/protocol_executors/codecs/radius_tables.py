"""Static RADIUS name/code tables (RFC 2865, RFC 2866, RFC 5176).

Built once at import time and shared read-only by every executor run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Mapping


class AttributeKind(StrEnum):
    STRING = "string"
    IP = "ip"
    INTEGER = "integer"
    ENUM = "enum"


@dataclass(frozen=True, slots=True)
class AttributeSpec:
    name: str
    code: int
    kind: AttributeKind
    values: Mapping[str, int] | None = None

    def enum_code(self, value: str) -> int | None:
        if self.values is None:
            return None
        return self.values.get(value)

    def enum_name(self, code: int) -> str | None:
        if self.values is None:
            return None
        for name, value in self.values.items():
            if value == code:
                return name
        return None


def _frozen(table: dict[str, int]) -> Mapping[str, int]:
    return MappingProxyType(table)


def _reverse(table: Mapping[str, int]) -> Mapping[int, str]:
    reverse = {code: name for name, code in table.items()}
    if len(reverse) != len(table):
        raise ValueError("RADIUS table maps two names to the same code.")
    return MappingProxyType(reverse)


PACKET_CODES: Mapping[str, int] = _frozen(
    {
        "Access-Request": 1,
        "Access-Accept": 2,
        "Access-Reject": 3,
        "Accounting-Request": 4,
        "Accounting-Response": 5,
        "Access-Challenge": 11,
        "Status-Server": 12,
        "Status-Client": 13,
        "Disconnect-Request": 40,
        "Disconnect-ACK": 41,
        "Disconnect-NAK": 42,
        "CoA-Request": 43,
        "CoA-ACK": 44,
        "CoA-NAK": 45,
    }
)
PACKET_CODE_NAMES: Mapping[int, str] = _reverse(PACKET_CODES)

SERVICE_TYPES = _frozen(
    {
        "Login-User": 1,
        "Framed-User": 2,
        "Callback-Login-User": 3,
        "Callback-Framed-User": 4,
        "Outbound-User": 5,
        "Administrative-User": 6,
        "NAS-Prompt-User": 7,
        "Call-Check-User": 8,
        "Callback-Administrative-User": 9,
    }
)

FRAMED_PROTOCOLS = _frozen(
    {
        "PPP": 1,
        "SLIP": 2,
        "ARAP": 3,
        "Gandalf": 4,
        "Xylogics": 5,
        "X.75-Synchronous": 6,
    }
)

FRAMED_ROUTING = _frozen({"None": 0, "Broadcast": 1, "Listen": 2, "Broadcast-Listen": 3})

TERMINATION_ACTIONS = _frozen({"Default": 0, "RADIUS-Request": 1})

ACCT_STATUS_TYPES = _frozen(
    {
        "Start": 1,
        "Stop": 2,
        "Interim-Update": 3,
        "Accounting-On": 7,
        "Accounting-Off": 8,
    }
)

ACCT_AUTHENTIC = _frozen({"RADIUS": 1, "Local": 2, "Remote": 3})

ACCT_TERMINATE_CAUSES = _frozen(
    {
        "User-Request": 1,
        "Lost-Carrier": 2,
        "Lost-Service": 3,
        "Idle-Timeout": 4,
        "Session-Timeout": 5,
        "Admin-Reset": 6,
        "Admin-Reboot": 7,
        "Port-Error": 8,
        "NAS-Error": 9,
        "NAS-Request": 10,
        "NAS-Reboot": 11,
        "Port-Unneeded": 12,
        "Port-Preempted": 13,
        "Port-Suspended": 14,
        "Service-Unavailable": 15,
        "Callback": 16,
        "User-Error": 17,
        "Host-Request": 18,
    }
)

_S = AttributeKind.STRING
_IP = AttributeKind.IP
_INT = AttributeKind.INTEGER
_ENUM = AttributeKind.ENUM

_ATTRIBUTE_LIST: tuple[AttributeSpec, ...] = (
    # RFC 2865
    AttributeSpec("User-Name", 1, _S),
    AttributeSpec("User-Password", 2, _S),
    AttributeSpec("NAS-IP-Address", 4, _IP),
    AttributeSpec("NAS-Port", 5, _INT),
    AttributeSpec("Service-Type", 6, _ENUM, SERVICE_TYPES),
    AttributeSpec("Framed-Protocol", 7, _ENUM, FRAMED_PROTOCOLS),
    AttributeSpec("Framed-IP-Address", 8, _IP),
    AttributeSpec("Framed-IP-Netmask", 9, _IP),
    AttributeSpec("Framed-Routing", 10, _ENUM, FRAMED_ROUTING),
    AttributeSpec("Filter-Id", 11, _S),
    AttributeSpec("Framed-MTU", 12, _INT),
    AttributeSpec("Reply-Message", 18, _S),
    AttributeSpec("Callback-Number", 19, _S),
    AttributeSpec("Callback-Id", 20, _S),
    AttributeSpec("Framed-Route", 22, _S),
    AttributeSpec("Framed-IPX-Network", 23, _INT),
    AttributeSpec("State", 24, _S),
    AttributeSpec("Class", 25, _S),
    AttributeSpec("Session-Timeout", 27, _INT),
    AttributeSpec("Idle-Timeout", 28, _INT),
    AttributeSpec("Termination-Action", 29, _ENUM, TERMINATION_ACTIONS),
    AttributeSpec("Called-Station-Id", 30, _S),
    AttributeSpec("Calling-Station-Id", 31, _S),
    AttributeSpec("NAS-Identifier", 32, _S),
    AttributeSpec("Proxy-State", 33, _S),
    AttributeSpec("Login-LAT-Service", 34, _S),
    AttributeSpec("Login-LAT-Node", 35, _S),
    AttributeSpec("Login-LAT-Group", 36, _S),
    AttributeSpec("Framed-AppleTalk-Zone", 39, _S),
    # RFC 2866
    AttributeSpec("Acct-Status-Type", 40, _ENUM, ACCT_STATUS_TYPES),
    AttributeSpec("Acct-Input-Octets", 42, _INT),
    AttributeSpec("Acct-Output-Octets", 43, _INT),
    AttributeSpec("Acct-Session-Id", 44, _S),
    AttributeSpec("Acct-Authentic", 45, _ENUM, ACCT_AUTHENTIC),
    AttributeSpec("Acct-Session-Time", 46, _INT),
    AttributeSpec("Acct-Input-Packets", 47, _INT),
    AttributeSpec("Acct-Output-Packets", 48, _INT),
    AttributeSpec("Acct-Terminate-Cause", 49, _ENUM, ACCT_TERMINATE_CAUSES),
    AttributeSpec("Acct-Multi-Session-Id", 50, _S),
    AttributeSpec("Acct-Link-Count", 51, _INT),
)

ATTRIBUTES: Mapping[str, AttributeSpec] = MappingProxyType({spec.name: spec for spec in _ATTRIBUTE_LIST})
ATTRIBUTE_NAMES: Mapping[int, str] = _reverse({spec.name: spec.code for spec in _ATTRIBUTE_LIST})

USER_PASSWORD = 2

# Reply attributes copied into the step result when present.
REPLY_ATTRIBUTES: tuple[str, ...] = ("User-Name", "Reply-Message", "Acct-Session-Id")


def packet_code(name: str) -> int | None:
    return PACKET_CODES.get(name)


def packet_code_name(code: int) -> str:
    return PACKET_CODE_NAMES.get(code, f"Code({code})")


def attribute_spec(name: str) -> AttributeSpec | None:
    return ATTRIBUTES.get(name)


def attribute_name(code: int) -> str | None:
    return ATTRIBUTE_NAMES.get(code)
