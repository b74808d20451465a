import pytest

from pigsty_core.errors import (
    ConfigurationError,
    MissingOrUnsupportedIpVersion,
    MissingRequiredIpv4Field,
    MissingRequiredTransportField,
    TransportFieldWithoutProtocol,
)
from pigsty_core.fields import FieldId
from pigsty_core.models import CompiledSet, IntegerValue, IPv4Value, Signature
from pigsty_core.semantic_checker import (
    DEFAULT_PROTOCOL_RULES,
    build_protocol_rules,
    verify_required_fields,
    verify_required_fields_ipv6,
)

SRC = IPv4Value(octets=b"\x0a\x00\x00\x01")
DST = IPv4Value(octets=b"\x0a\x00\x00\x02")


def _signature(name="s", version=4, src=True, dst=True, protocol=6, extra=()):
    signature = Signature(name)
    if version is not None:
        signature.add_field(FieldId.IPV4_VERSION, IntegerValue(4, version))
    if src:
        signature.add_field(FieldId.IPV4_SRC, SRC)
    if dst:
        signature.add_field(FieldId.IPV4_DST, DST)
    if protocol is not None:
        signature.add_field(FieldId.IPV4_PROTOCOL, IntegerValue(8, protocol))
    for field_id, value in extra:
        signature.add_field(field_id, value)
    return signature


def _check(*signatures, rules=None):
    return verify_required_fields(CompiledSet(list(signatures)), rules)


def test_valid_signature_passes():
    compiled = _check(_signature(extra=[(FieldId.TCP_SRC, IntegerValue(16, 1025))]))
    assert compiled.names() == ["s"]


def test_missing_ip_version():
    with pytest.raises(MissingOrUnsupportedIpVersion) as exc:
        _check(_signature(version=None))
    assert exc.value.signature == "s"


def test_ipv6_is_always_rejected():
    with pytest.raises(MissingOrUnsupportedIpVersion):
        _check(_signature(version=6))
    with pytest.raises(MissingOrUnsupportedIpVersion):
        verify_required_fields_ipv6(_signature())


def test_other_versions_are_rejected():
    with pytest.raises(MissingOrUnsupportedIpVersion):
        _check(_signature(version=5))


@pytest.mark.parametrize(
    "kwargs, missing",
    [
        ({"src": False}, "ip.src"),
        ({"dst": False}, "ip.dst"),
        ({"protocol": None}, "ip.protocol"),
        ({"src": False, "dst": False}, "ip.src"),
    ],
)
def test_required_ipv4_fields(kwargs, missing):
    with pytest.raises(MissingRequiredIpv4Field) as exc:
        _check(_signature(**kwargs))
    assert exc.value.field == missing


def test_first_failing_signature_is_reported():
    with pytest.raises(MissingRequiredIpv4Field) as exc:
        _check(_signature("ok"), _signature("bad", dst=False), _signature("worse", src=False))
    assert exc.value.signature == "bad"


def test_transport_field_without_protocol():
    signature = _signature(protocol=None, extra=[(FieldId.TCP_SRC, IntegerValue(16, 80))])
    with pytest.raises(TransportFieldWithoutProtocol) as exc:
        _check(signature)
    assert exc.value.field == "tcp.src"
    # still a missing ipv4 field from the caller's point of view
    assert isinstance(exc.value, MissingRequiredIpv4Field)


def test_protocol_value_that_is_not_an_integer_counts_as_absent():
    signature = _signature(protocol=None, extra=[(FieldId.UDP_DST, IntegerValue(16, 53))])
    signature.add_field(FieldId.IPV4_PROTOCOL, SRC)
    with pytest.raises(TransportFieldWithoutProtocol) as exc:
        _check(signature)
    assert exc.value.field == "udp.dst"
    assert exc.value.signature == "s"


def test_protocol_present_accepts_any_transport_field_by_default():
    signature = _signature(protocol=17, extra=[(FieldId.TCP_SRC, IntegerValue(16, 1))])
    assert len(_check(signature, rules=DEFAULT_PROTOCOL_RULES)) == 1


def test_protocol_rules():
    rules = build_protocol_rules({6: ["tcp.src", "tcp.dst"], "17": ["udp.src", FieldId.UDP_DST]})
    assert rules[6] == (FieldId.TCP_SRC, FieldId.TCP_DST)
    assert rules[17] == (FieldId.UDP_SRC, FieldId.UDP_DST)

    with pytest.raises(MissingRequiredTransportField) as exc:
        _check(_signature(extra=[(FieldId.TCP_SRC, IntegerValue(16, 1))]), rules=rules)
    assert exc.value.field == "tcp.dst"

    ok = _signature(extra=[(FieldId.TCP_SRC, IntegerValue(16, 1)), (FieldId.TCP_DST, IntegerValue(16, 2))])
    assert len(_check(ok, rules=rules)) == 1

    # no rule for icmp
    assert len(_check(_signature(protocol=1), rules=rules)) == 1


def test_build_protocol_rules_defaults():
    assert build_protocol_rules(None) is DEFAULT_PROTOCOL_RULES
    assert build_protocol_rules({}) is DEFAULT_PROTOCOL_RULES


@pytest.mark.parametrize(
    "raw",
    [
        {300: ["tcp.src"]},
        {"tcp": ["tcp.src"]},
        {6: ["tcp.nope"]},
        {6: "tcp.src"},
        ["tcp.src"],
    ],
)
def test_build_protocol_rules_rejects_bad_input(raw):
    with pytest.raises(ConfigurationError):
        build_protocol_rules(raw)
