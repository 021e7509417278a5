from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

import dns.rdatatype
from dns.rdatatype import RdataType


RECORD_TYPES: Mapping[str, RdataType] = MappingProxyType(
    {
        "A": RdataType.A,
        "AAAA": RdataType.AAAA,
        "MX": RdataType.MX,
        "TXT": RdataType.TXT,
        "CNAME": RdataType.CNAME,
        "NS": RdataType.NS,
        "PTR": RdataType.PTR,
        "SOA": RdataType.SOA,
        "SRV": RdataType.SRV,
        "CAA": RdataType.CAA,
        "ANY": RdataType.ANY,
    }
)


def record_type(name: str) -> RdataType:
    rdtype = RECORD_TYPES.get(name)
    if rdtype is None:
        raise ValueError(f"unsupported DNS record type: {name}")
    return rdtype


def record_type_name(rdtype: int) -> str:
    return dns.rdatatype.to_text(rdtype)
