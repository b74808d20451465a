"""
pigsty_validators/address_validators.py

IPv4 address validators used by the ip.src / ip.dst fields:
- is_symbolic_ipv4
- is_ipv4_literal
- is_ipv4
- verify_ipv4_addr (is_ipv4, optionally quoted)

An address is either a dotted-quad literal ("192.168.0.1") or one of the
symbolic address classes that the packet builder resolves later
("european-ip", ...). Validators return True/False and never raise.
"""

import re

# the symbolic tokens accepted in place of a literal address
SYMBOLIC_IPV4_CLASSES = (
    "north-american-ip",
    "south-american-ip",
    "asian-ip",
    "european-ip",
    "user-defined-ip",
)

_OCTET_RE = re.compile(r"[0-9]+")


def is_symbolic_ipv4(value: str) -> bool:
    return value in SYMBOLIC_IPV4_CLASSES


def is_ipv4_literal(value: str) -> bool:
    """
    Validate a dotted-quad literal.

    Exactly three dots, four runs of decimal digits, each run 0-255.
    Leading zeros are allowed ("010" is 10), empty runs are not.
    """
    if not isinstance(value, str) or value.count(".") != 3:
        return False

    for octet in value.split("."):
        if not _OCTET_RE.fullmatch(octet):
            return False
        digits = octet.lstrip("0") or "0"
        if len(digits) > 3 or int(digits) > 255:
            return False

    return True


def is_ipv4(value: str) -> bool:
    """Check if value is a symbolic IPv4 class or a dotted-quad literal."""
    if not isinstance(value, str):
        return False
    return is_symbolic_ipv4(value) or is_ipv4_literal(value)


def unquote_address(value: str) -> str:
    """Strip one pair of surrounding double quotes from an address token."""
    if isinstance(value, str) and len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def verify_ipv4_addr(value: str) -> bool:
    """
    Validate an ip.src / ip.dst value.

    Accepts the bare forms checked by is_ipv4 and the same forms written
    inside double quotes ("192.168.0.1").
    """
    return is_ipv4(value) or is_ipv4(unquote_address(value))
