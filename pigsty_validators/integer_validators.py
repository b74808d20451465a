"""
integer_validators.py

Integer literal validators for signature field values:
- is_decimal_integer
- is_hex_integer
- decode_integer
- verify_u1 / verify_u3 / verify_u4 / verify_u6
- verify_u8 / verify_u13 / verify_u16 / verify_u32
- verify_ip_version

Literals are either plain decimal ("80") or lowercase-prefixed hex ("0x50").
Every verifier returns True/False and never raises, so they can sit in the
field descriptor table next to the address and string validators.
"""

import re
from typing import Callable, Optional

_DECIMAL_RE = re.compile(r"[0-9]+")
_HEX_RE = re.compile(r"0x[0-9A-Fa-f]+")

# ip.version only accepts IPv4
SUPPORTED_IP_VERSION = 4

# digits of the widest field maximum, 2**32 - 1
MAX_DECIMAL_DIGITS = 10


def is_decimal_integer(value: str) -> bool:
    """True when every character is an ASCII digit (at least one)."""
    if not isinstance(value, str):
        return False
    return _DECIMAL_RE.fullmatch(value) is not None


def is_hex_integer(value: str) -> bool:
    """True for '0x' followed by one or more hex digits."""
    if not isinstance(value, str):
        return False
    return _HEX_RE.fullmatch(value) is not None


def decode_integer(value: str) -> Optional[int]:
    """
    Decode an integer literal.

    Hex is tried first, then decimal. Returns None when the token is
    neither, or when a decimal literal is too long to fit any field.
    """
    if is_hex_integer(value):
        return int(value[2:], 16)
    if is_decimal_integer(value):
        digits = value.lstrip("0") or "0"
        if len(digits) > MAX_DECIMAL_DIGITS:
            return None
        return int(digits, 10)
    return None


def fits_width(value: int, width: int) -> bool:
    return 0 <= value <= (1 << width) - 1


def _width_verifier(width: int) -> Callable[[str], bool]:
    def verifier(value: str) -> bool:
        decoded = decode_integer(value)
        if decoded is None:
            return False
        return fits_width(decoded, width)

    verifier.__name__ = f"verify_u{width}"
    verifier.__doc__ = f"Validate an unsigned integer literal that fits in {width} bits."
    verifier.width = width
    return verifier


verify_u1 = _width_verifier(1)
verify_u3 = _width_verifier(3)
verify_u4 = _width_verifier(4)
verify_u6 = _width_verifier(6)
verify_u8 = _width_verifier(8)
verify_u13 = _width_verifier(13)
verify_u16 = _width_verifier(16)
verify_u32 = _width_verifier(32)


def verify_ip_version(value: str) -> bool:
    """
    Validate ip.version.

    Any integer literal is decoded, but only 4 is accepted. IPv6 is not
    supported, so "6" (or "0x6") is rejected like every other value.
    """
    return decode_integer(value) == SUPPORTED_IP_VERSION
