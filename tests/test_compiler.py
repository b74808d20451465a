from pathlib import Path

import pytest

from pigsty_core.errors import (
    DuplicateField,
    DuplicateSignatureName,
    InvalidFieldValue,
    IoFailure,
    MissingOrUnsupportedIpVersion,
    MissingRequiredIpv4Field,
    MissingRequiredTransportField,
    PigstyError,
    TransportFieldWithoutProtocol,
)
from pigsty_core.fields import FieldId
from pigsty_core.formatter import SignatureFormatter
from pigsty_core.models import IntegerValue, IPv4Value
from pigsty_engine import compile_text

HEADER = 'ip.version = 4, ip.src = "192.168.0.1", ip.dst = "192.168.0.2"'


def test_basic_tcp(basic_tcp):
    compiled = compile_text(basic_tcp)
    assert compiled.names() == ["basic-tcp"]

    signature = compiled[0]
    assert [entry.label for entry in signature] == [
        "ip.version",
        "ip.src",
        "ip.dst",
        "ip.protocol",
        "tcp.src",
        "tcp.dst",
    ]
    assert signature.get(FieldId.IPV4_SRC) == IPv4Value(octets=bytes([192, 168, 0, 1]))
    assert signature.get(FieldId.TCP_SRC) == IntegerValue(16, 1025)
    assert signature.get(FieldId.TCP_DST).to_bytes() == b"\x00\x50"


def test_basic_tcp_without_ip_dst(basic_tcp):
    source = basic_tcp.replace('ip.dst = "192.168.0.2",', "")
    with pytest.raises(MissingRequiredIpv4Field) as exc:
        compile_text(source)
    assert exc.value.field == "ip.dst"
    assert exc.value.signature == "basic-tcp"


def test_transport_field_without_protocol():
    source = f'[ signature = "no-proto", {HEADER}, tcp.src = 80 ]'
    with pytest.raises(TransportFieldWithoutProtocol) as exc:
        compile_text(source)
    assert exc.value.signature == "no-proto"
    assert exc.value.field == "tcp.src"


def test_leading_comment_compiles_identically(basic_tcp):
    plain = compile_text(basic_tcp)
    commented = compile_text("# note\n" + basic_tcp)
    assert [s.fields for s in plain] == [s.fields for s in commented]
    assert plain.names() == commented.names()


def test_comments_everywhere(basic_tcp):
    source = basic_tcp.replace(", ", ", # c\n  ")
    assert compile_text(source).names() == ["basic-tcp"]


def test_escaped_quote_in_payload():
    source = f'[ signature = "p", {HEADER}, ip.protocol = 6, tcp.payload = "a\\"b" ]'
    compiled = compile_text(source)
    assert compiled[0].get(FieldId.TCP_PAYLOAD).data == b'a"b'


def test_duplicate_field_returns_nothing(basic_tcp):
    source = basic_tcp.replace("tcp.dst = 80", "tcp.dst = 80, tcp.src = 1")
    with pytest.raises(DuplicateField):
        compile_text(source)


def test_duplicate_signature_name(basic_tcp):
    with pytest.raises(DuplicateSignatureName):
        compile_text(basic_tcp + basic_tcp)


def test_ipv6_rejected():
    source = '[ signature = "v6", ip.version = 6, ip.src = 1.1.1.1, ip.dst = 2.2.2.2, ip.protocol = 6 ]'
    with pytest.raises(InvalidFieldValue) as exc:
        compile_text(source)
    assert exc.value.field == "ip.version"


def test_missing_version():
    source = '[ signature = "nov", ip.src = 1.1.1.1, ip.dst = 2.2.2.2, ip.protocol = 6 ]'
    with pytest.raises(MissingOrUnsupportedIpVersion):
        compile_text(source)


def test_protocol_rules_are_applied(basic_tcp):
    rules = {6: ["tcp.src", "tcp.dst", "tcp.seqno"]}
    with pytest.raises(MissingRequiredTransportField) as exc:
        compile_text(basic_tcp, protocol_rules=rules)
    assert exc.value.field == "tcp.seqno"

    assert len(compile_text(basic_tcp, protocol_rules={6: ["tcp.src", "tcp.dst"]})) == 1


def test_empty_source():
    assert len(compile_text("")) == 0
    assert len(compile_text("# nothing here\n")) == 0


def test_symbolic_addresses_and_hex():
    source = (
        '[ signature = "sym", ip.version = 0x4, ip.src = north-american-ip, '
        'ip.dst = "user-defined-ip", ip.protocol = 0x11, udp.dst = 0x35 ]'
    )
    signature = compile_text(source)[0]
    assert signature.get(FieldId.IPV4_SRC).is_symbolic
    assert str(signature.get(FieldId.IPV4_DST)) == "user-defined-ip"
    assert signature.get(FieldId.IPV4_PROTOCOL) == IntegerValue(8, 17)
    assert signature.get(FieldId.UDP_DST) == IntegerValue(16, 53)


def test_every_error_is_a_pigsty_error():
    for cls in (DuplicateField, DuplicateSignatureName, IoFailure, TransportFieldWithoutProtocol):
        assert issubclass(cls, PigstyError)


def test_shipped_samples_compile():
    sample = Path(__file__).resolve().parent.parent / "signatures" / "basic.pigsty"
    compiled = compile_text(sample.read_text(encoding="utf-8"))
    assert compiled.names() == ["basic-tcp", "http-get", "udp-dns", "icmp-echo"]
    payload = compiled.get("http-get").get(FieldId.TCP_PAYLOAD).data
    assert payload == b'GET / HTTP/1.1\r\nHost: "example"\r\n\r\n'


def test_names_differing_in_undecodable_bytes_are_distinct():
    source = (
        f'[ signature = "a\\xff", {HEADER}, ip.protocol = 6 ]\n'
        f'[ signature = "a\\xfe", {HEADER}, ip.protocol = 6 ]\n'
    )
    compiled = compile_text(source)
    assert len(compiled) == 2
    assert [s.display_name for s in compiled] == ["a\\xff", "a\\xfe"]

    again = compile_text(SignatureFormatter().format(compiled))
    assert again.names() == compiled.names()


def test_undecodable_name_is_escaped_in_errors():
    entry = f'[ signature = "a\\xff", {HEADER}, ip.protocol = 6 ]\n'
    with pytest.raises(DuplicateSignatureName) as exc:
        compile_text(entry + entry)
    message = str(exc.value)
    assert 'signature "a\\xff"' in message
    assert message.encode("utf-8")


def test_overlong_integer_is_an_invalid_value():
    source = f'[ signature = "big", {HEADER}, ip.protocol = 6, ip.ttl = {"1" * 5000} ]'
    with pytest.raises(InvalidFieldValue) as exc:
        compile_text(source)
    assert exc.value.field == "ip.ttl"


def test_leading_zeros_are_not_limited():
    source = (
        f'[ signature = "zeros", ip.version = 4, ip.src = {"0" * 5000}1.1.1.1, '
        f'ip.dst = 2.2.2.2, ip.protocol = 6, ip.ttl = {"0" * 5000}64 ]'
    )
    signature = compile_text(source)[0]
    assert signature.get(FieldId.IPV4_SRC) == IPv4Value(octets=b"\x01\x01\x01\x01")
    assert signature.get(FieldId.IPV4_TTL) == IntegerValue(8, 64)


def test_overlong_octet_is_an_invalid_value():
    source = f'[ signature = "big", ip.version = 4, ip.src = {"1" * 5000}.1.1.1, ip.dst = 2.2.2.2 ]'
    with pytest.raises(InvalidFieldValue) as exc:
        compile_text(source)
    assert exc.value.field == "ip.src"
