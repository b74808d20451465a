"""
semantic_checker.py
===================
Pass 3 of the signature compiler: cross-field rules.

For every materialized signature:
    1. ip.version must be present and equal 4 (IPv6 is not implemented)
    2. ip.src, ip.dst and ip.protocol are required for IPv4; a missing
       ip.protocol next to TCP/UDP/ICMP fields is reported as
       TransportFieldWithoutProtocol
    3. with ip.protocol declared, the fields required for that protocol
       number (see protocol rules) must be present; without it, no
       TCP/UDP/ICMP field may appear

Protocol rules map an IP protocol number to the fields it requires. The
default mapping is empty, so any declared protocol is accepted as is.
"""

import logging
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from pigsty_core.errors import (
    ConfigurationError,
    MissingOrUnsupportedIpVersion,
    MissingRequiredIpv4Field,
    MissingRequiredTransportField,
    TransportFieldWithoutProtocol,
)
from pigsty_core.fields import (
    FIELDS_BY_ID,
    REQUIRED_IPV4_FIELDS,
    FieldId,
    field_label,
    get_field,
)
from pigsty_core.models import CompiledSet, IntegerValue, Signature

logger = logging.getLogger(__name__)

ProtocolRules = Mapping[int, Tuple[FieldId, ...]]

DEFAULT_PROTOCOL_RULES: ProtocolRules = MappingProxyType({})


# ----------------------------------------------------------------------
# Protocol rules
# ----------------------------------------------------------------------
def build_protocol_rules(raw: Optional[Mapping[Union[int, str], Iterable[Union[str, FieldId]]]]) -> ProtocolRules:
    """
    Normalize a protocol rule mapping.

    Keys are protocol numbers (0-255, int or numeric string), values are
    iterables of field labels or FieldIds. Example:

        {6: ["tcp.src", "tcp.dst"], 17: ["udp.src", "udp.dst"]}

    :raises ConfigurationError: on bad protocol numbers or unknown fields
    """
    if not raw:
        return DEFAULT_PROTOCOL_RULES
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"protocol_rules must be a mapping, got {type(raw).__name__}")

    rules: Dict[int, Tuple[FieldId, ...]] = {}
    for key, fields in raw.items():
        try:
            protocol = int(key)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid protocol number in protocol_rules: '{key}'")
        if not 0 <= protocol <= 255:
            raise ConfigurationError(f"Protocol number out of range (0-255) in protocol_rules: {protocol}")
        if isinstance(fields, str) or not isinstance(fields, Iterable):
            raise ConfigurationError(f"protocol_rules[{protocol}] must be a list of field labels")

        required = []
        for item in fields:
            if isinstance(item, FieldId):
                required.append(item)
                continue
            descriptor = get_field(item) if isinstance(item, str) else None
            if descriptor is None:
                raise ConfigurationError(f"Unknown field in protocol_rules[{protocol}]: '{item}'")
            required.append(descriptor.index)
        rules[protocol] = tuple(required)

    return MappingProxyType(rules)


# ----------------------------------------------------------------------
# IP version checks
# ----------------------------------------------------------------------
def verify_no_transport_fields(signature: Signature) -> None:
    for entry in signature:
        if FIELDS_BY_ID[entry.field_id].is_transport:
            raise TransportFieldWithoutProtocol(
                f"tcp/udp/icmp field \"{entry.label}\" informed in a non tcp, udp or icmp packet",
                signature=signature.name,
                field=entry.label,
            )


def _first_missing(signature: Signature, fields: Iterable[FieldId]) -> Optional[FieldId]:
    present = set(signature.field_ids())
    for field_id in fields:
        if field_id not in present:
            return field_id
    return None


def verify_required_fields_ipv4(signature: Signature) -> None:
    missing = _first_missing(signature, REQUIRED_IPV4_FIELDS)
    if missing is not None:
        if missing == FieldId.IPV4_PROTOCOL:
            # transport fields without a protocol get the more precise error
            verify_no_transport_fields(signature)
        label = field_label(missing)
        raise MissingRequiredIpv4Field(
            f"field \"{label}\" is required",
            signature=signature.name,
            field=label,
        )


def verify_required_fields_ipv6(signature: Signature) -> None:
    """IPv6 signatures are not supported; this check always fails."""
    raise MissingOrUnsupportedIpVersion(
        "IPv6 signatures are not supported",
        signature=signature.name,
        field="ip.version",
        token="6",
    )


_VERSION_CHECKS: Mapping[int, Callable[[Signature], None]] = MappingProxyType({
    4: verify_required_fields_ipv4,
    6: verify_required_fields_ipv6,
})


def _integer_field(signature: Signature, field_id: FieldId) -> Optional[int]:
    value = signature.get(field_id)
    if isinstance(value, IntegerValue) and value.value >= 0:
        return value.value
    return None


def verify_ip_version(signature: Signature) -> int:
    version = _integer_field(signature, FieldId.IPV4_VERSION)
    if version is None:
        raise MissingOrUnsupportedIpVersion(
            "ip.version missing",
            signature=signature.name,
            field="ip.version",
        )

    check = _VERSION_CHECKS.get(version)
    if check is None:
        raise MissingOrUnsupportedIpVersion(
            f"unsupported ip.version {version}",
            signature=signature.name,
            field="ip.version",
            token=str(version),
        )
    check(signature)
    return version


# ----------------------------------------------------------------------
# Transport layer checks
# ----------------------------------------------------------------------
def verify_transport_fields(signature: Signature, protocol_rules: ProtocolRules = DEFAULT_PROTOCOL_RULES) -> None:
    protocol = _integer_field(signature, FieldId.IPV4_PROTOCOL)

    if protocol is not None:
        required = protocol_rules.get(protocol, ())
        missing = _first_missing(signature, required)
        if missing is not None:
            label = field_label(missing)
            raise MissingRequiredTransportField(
                f"field \"{label}\" is required for ip.protocol {protocol}",
                signature=signature.name,
                field=label,
                token=str(protocol),
            )
        return

    verify_no_transport_fields(signature)


def verify_signature(signature: Signature, protocol_rules: ProtocolRules = DEFAULT_PROTOCOL_RULES) -> None:
    verify_ip_version(signature)
    verify_transport_fields(signature, protocol_rules)


def verify_required_fields(compiled: CompiledSet, protocol_rules: Optional[ProtocolRules] = None) -> CompiledSet:
    """
    Run pass 3 over every signature of compiled.

    :param compiled: output of the materializer
    :param protocol_rules: protocol number -> required FieldIds
                           (see build_protocol_rules)
    :return: compiled, unchanged, when every signature passes
    """
    rules = DEFAULT_PROTOCOL_RULES if protocol_rules is None else protocol_rules
    for signature in compiled:
        verify_signature(signature, rules)

    logger.debug(f"Semantic check passed for {len(compiled)} signature(s)")
    return compiled
