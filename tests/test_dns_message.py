from __future__ import annotations

import dns.flags
import dns.message
import dns.rdatatype
import dns.rrset

from protocol_executors.codecs.dns_message import build_query, message_to_tree
from protocol_executors.codecs.dns_tables import RECORD_TYPES, record_type


def _response(query_name: str, rdtype: str, *answers: tuple[str, str]) -> dns.message.Message:
    query = dns.message.make_query(query_name, rdtype)
    response = dns.message.make_response(query)
    for name, text in answers:
        response.answer.append(dns.rrset.from_text(name, 300, "IN", rdtype, text))
    return response


def test_record_type_table() -> None:
    assert list(RECORD_TYPES) == ["A", "AAAA", "MX", "TXT", "CNAME", "NS", "PTR", "SOA", "SRV", "CAA", "ANY"]
    assert record_type("MX") == dns.rdatatype.MX


def test_build_query_is_fully_qualified_and_recursive() -> None:
    message = build_query("example.com", dns.rdatatype.A)

    assert message.question[0].name.to_text() == "example.com."
    assert message.flags & dns.flags.RD


def test_message_tree_flags_and_question() -> None:
    response = _response("example.com.", "A", ("example.com.", "93.184.216.34"))
    response.flags |= dns.flags.RA | dns.flags.AA

    tree = message_to_tree(response)

    assert tree["id"] == response.id
    assert tree["response"] is True
    assert tree["opcode"] == "QUERY"
    assert tree["authoritative"] is True
    assert tree["truncated"] is False
    assert tree["recursion_desired"] is True
    assert tree["recursion_available"] is True
    assert tree["zero"] is False
    assert tree["rcode"] == "NOERROR"
    assert tree["question"] == [{"name": "example.com.", "type": "A", "class": "IN"}]
    assert tree["authority"] == []
    assert tree["additional"] == []

    answer = tree["answer"][0]
    assert answer["name"] == "example.com."
    assert answer["type"] == "A"
    assert answer["class"] == "IN"
    assert answer["ttl"] == 300
    assert answer["address"] == "93.184.216.34"
    assert answer["value"] == "example.com.\t300\tIN\tA\t93.184.216.34"


def test_type_specific_fields() -> None:
    mx = message_to_tree(_response("example.com.", "MX", ("example.com.", "10 mail.example.com.")))["answer"][0]
    assert mx["preference"] == 10
    assert mx["mx"] == "mail.example.com."

    txt = message_to_tree(_response("example.com.", "TXT", ("example.com.", '"v=spf1" "-all"')))["answer"][0]
    assert txt["txt"] == ["v=spf1", "-all"]

    cname = message_to_tree(_response("www.example.com.", "CNAME", ("www.example.com.", "example.com.")))["answer"][0]
    assert cname["target"] == "example.com."

    ns = message_to_tree(_response("example.com.", "NS", ("example.com.", "ns1.example.com.")))["answer"][0]
    assert ns["ns"] == "ns1.example.com."

    ptr = message_to_tree(_response("1.0.0.127.in-addr.arpa.", "PTR", ("1.0.0.127.in-addr.arpa.", "localhost.")))[
        "answer"
    ][0]
    assert ptr["ptr"] == "localhost."

    soa = message_to_tree(
        _response(
            "example.com.",
            "SOA",
            ("example.com.", "ns1.example.com. hostmaster.example.com. 2024010101 7200 3600 1209600 300"),
        )
    )["answer"][0]
    assert soa["ns"] == "ns1.example.com."
    assert soa["mbox"] == "hostmaster.example.com."
    assert (soa["serial"], soa["refresh"], soa["retry"], soa["expire"], soa["minttl"]) == (
        2024010101,
        7200,
        3600,
        1209600,
        300,
    )

    srv = message_to_tree(_response("_sip._udp.example.com.", "SRV", ("_sip._udp.example.com.", "10 60 5060 sip.example.com.")))[
        "answer"
    ][0]
    assert (srv["priority"], srv["weight"], srv["port"], srv["target"]) == (10, 60, 5060, "sip.example.com.")

    caa = message_to_tree(_response("example.com.", "CAA", ("example.com.", '0 issue "letsencrypt.org"')))["answer"][0]
    assert (caa["flag"], caa["tag"], caa["value"]) == (0, "issue", "letsencrypt.org")


def test_other_types_keep_common_fields_only() -> None:
    tree = message_to_tree(_response("example.com.", "HINFO", ("example.com.", '"x86" "linux"')))
    record = tree["answer"][0]

    assert set(record) == {"name", "type", "class", "ttl", "value"}
    assert record["type"] == "HINFO"


def test_authority_and_additional_sections() -> None:
    response = _response("missing.example.com.", "A")
    response.set_rcode(3)
    response.authority.append(
        dns.rrset.from_text(
            "example.com.", 60, "IN", "SOA", "ns1.example.com. hostmaster.example.com. 1 2 3 4 5"
        )
    )
    response.additional.append(dns.rrset.from_text("ns1.example.com.", 60, "IN", "AAAA", "2001:db8::1"))

    tree = message_to_tree(response)

    assert tree["rcode"] == "NXDOMAIN"
    assert tree["answer"] == []
    assert tree["authority"][0]["type"] == "SOA"
    assert tree["additional"][0]["address"] == "2001:db8::1"
