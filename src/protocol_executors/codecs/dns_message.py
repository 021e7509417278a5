from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import dns.flags
import dns.message
import dns.name
import dns.opcode
import dns.rcode
import dns.rdataclass
import dns.rrset
from dns.rdata import Rdata
from dns.rdatatype import RdataType

from protocol_executors.codecs.dns_tables import record_type_name


# The reserved Z bit has no named constant in dns.flags.
Z_FLAG = 0x0040


def build_query(query: str, rdtype: RdataType) -> dns.message.QueryMessage:
    """Recursion-desired question for the fully-qualified ``query`` with a fresh message id."""
    qname = dns.name.from_text(query)
    message = dns.message.make_query(qname, rdtype)
    message.flags |= dns.flags.RD
    return message


def message_to_tree(message: dns.message.Message) -> dict[str, Any]:
    flags = message.flags
    return {
        "id": message.id,
        "response": bool(flags & dns.flags.QR),
        "opcode": dns.opcode.to_text(message.opcode()),
        "authoritative": bool(flags & dns.flags.AA),
        "truncated": bool(flags & dns.flags.TC),
        "recursion_desired": bool(flags & dns.flags.RD),
        "recursion_available": bool(flags & dns.flags.RA),
        "zero": bool(flags & Z_FLAG),
        "authenticated_data": bool(flags & dns.flags.AD),
        "checking_disabled": bool(flags & dns.flags.CD),
        "rcode": dns.rcode.to_text(message.rcode()),
        "question": [
            {
                "name": rrset.name.to_text(),
                "type": record_type_name(rrset.rdtype),
                "class": dns.rdataclass.to_text(rrset.rdclass),
            }
            for rrset in message.question
        ],
        "answer": section_to_records(message.answer),
        "authority": section_to_records(message.authority),
        "additional": section_to_records(message.additional),
    }


def section_to_records(section: Iterable[dns.rrset.RRset]) -> list[dict[str, Any]]:
    return [record_to_tree(rrset, rdata) for rrset in section for rdata in rrset]


def record_to_tree(rrset: dns.rrset.RRset, rdata: Rdata) -> dict[str, Any]:
    name = rrset.name.to_text()
    type_name = record_type_name(rdata.rdtype)
    class_name = dns.rdataclass.to_text(rdata.rdclass)
    record: dict[str, Any] = {
        "name": name,
        "type": type_name,
        "class": class_name,
        "ttl": rrset.ttl,
        "value": record_to_text(rrset, rdata),
    }
    extractor = _TYPE_FIELDS.get(rdata.rdtype)
    if extractor is not None:
        record.update(extractor(rdata))
    return record


def record_to_text(rrset: dns.rrset.RRset, rdata: Rdata) -> str:
    return "\t".join(
        (
            rrset.name.to_text(),
            str(rrset.ttl),
            dns.rdataclass.to_text(rdata.rdclass),
            record_type_name(rdata.rdtype),
            rdata.to_text(),
        )
    )


def answer_lines(message: dns.message.Message) -> list[str]:
    return [record_to_text(rrset, rdata) for rrset in message.answer for rdata in rrset]


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _address(rdata: Any) -> dict[str, Any]:
    return {"address": rdata.address}


def _mx(rdata: Any) -> dict[str, Any]:
    return {"preference": rdata.preference, "mx": rdata.exchange.to_text()}


def _txt(rdata: Any) -> dict[str, Any]:
    return {"txt": [_text(segment) for segment in rdata.strings]}


def _cname(rdata: Any) -> dict[str, Any]:
    return {"target": rdata.target.to_text()}


def _ns(rdata: Any) -> dict[str, Any]:
    return {"ns": rdata.target.to_text()}


def _ptr(rdata: Any) -> dict[str, Any]:
    return {"ptr": rdata.target.to_text()}


def _soa(rdata: Any) -> dict[str, Any]:
    return {
        "ns": rdata.mname.to_text(),
        "mbox": rdata.rname.to_text(),
        "serial": rdata.serial,
        "refresh": rdata.refresh,
        "retry": rdata.retry,
        "expire": rdata.expire,
        "minttl": rdata.minimum,
    }


def _srv(rdata: Any) -> dict[str, Any]:
    return {
        "priority": rdata.priority,
        "weight": rdata.weight,
        "port": rdata.port,
        "target": rdata.target.to_text(),
    }


def _caa(rdata: Any) -> dict[str, Any]:
    return {"flag": rdata.flags, "tag": _text(rdata.tag), "value": _text(rdata.value)}


_TYPE_FIELDS: dict[int, Callable[[Any], dict[str, Any]]] = {
    RdataType.A: _address,
    RdataType.AAAA: _address,
    RdataType.MX: _mx,
    RdataType.TXT: _txt,
    RdataType.CNAME: _cname,
    RdataType.NS: _ns,
    RdataType.PTR: _ptr,
    RdataType.SOA: _soa,
    RdataType.SRV: _srv,
    RdataType.CAA: _caa,
}
