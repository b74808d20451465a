"""
converters.py
=============
Turns a validated value token into its typed representation.

The token kind is picked in a fixed order, first match wins:

    1. decimal integer   "80"
    2. hex integer       "0x50"
    3. IPv4              "10.0.0.1" / "european-ip"
    4. quoted string     "\\"GET / HTTP/1.1\\r\\n\\""

so "0x10" is always an integer and never looked at as an address.
"""

import logging
from typing import Optional

from pigsty_core.models import BytesValue, IntegerValue, IPv4Class, IPv4Value, TypedValue
from pigsty_validators.address_validators import is_ipv4, is_symbolic_ipv4, unquote_address
from pigsty_validators.integer_validators import decode_integer, is_decimal_integer, is_hex_integer
from pigsty_validators.string_validators import is_quoted_string

logger = logging.getLogger(__name__)

# used for integers given to fields without a declared width
DEFAULT_INTEGER_WIDTH = 32

_SIMPLE_ESCAPES = {
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "0": b"\x00",
    "\\": b"\\",
    '"': b'"',
    "'": b"'",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def int_to_value(token: str, width: Optional[int] = None) -> IntegerValue:
    value = decode_integer(token)
    if value is None:
        raise ValueError(f"Not an integer literal: '{token}'")
    if width is None:
        width = max(DEFAULT_INTEGER_WIDTH, value.bit_length())
    return IntegerValue(width, value)


def ipv4_to_value(token: str) -> IPv4Value:
    if is_symbolic_ipv4(token):
        return IPv4Value(address_class=IPv4Class(token))
    if not is_ipv4(token):
        raise ValueError(f"Not an IPv4 address: '{token}'")
    return IPv4Value(octets=bytes(int(octet.lstrip("0") or "0") for octet in token.split(".")))


def unescape(text: str) -> bytes:
    """
    Decode backslash escapes of a string body (quotes already removed).

    Known escapes: \\n \\r \\t \\0 \\\\ \\" \\' and \\xHH. Any other escaped
    character stands for itself; a trailing lone backslash is kept.
    """
    out = bytearray()
    i = 0
    size = len(text)
    while i < size:
        c = text[i]
        if c != "\\" or i + 1 >= size:
            out += c.encode("utf-8")
            i += 1
            continue

        nxt = text[i + 1]
        if nxt in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[nxt]
            i += 2
        elif nxt == "x" and i + 3 < size and text[i + 2] in _HEX_DIGITS and text[i + 3] in _HEX_DIGITS:
            out.append(int(text[i + 2:i + 4], 16))
            i += 4
        else:
            out += nxt.encode("utf-8")
            i += 2

    return bytes(out)


def str_to_bytes(token: str) -> bytes:
    if not is_quoted_string(token):
        raise ValueError(f"Not a quoted string: '{token}'")
    return unescape(token[1:-1])


def str_to_value(token: str) -> BytesValue:
    return BytesValue(str_to_bytes(token))


def str_to_name(token: str) -> str:
    """
    Decode a quoted signature name into a plain str.

    Bytes that are not valid UTF-8 are kept as lone surrogates, so two
    names are equal exactly when their decoded bytes are.
    """
    return str_to_bytes(token).decode("utf-8", errors="surrogateescape")


def token_to_value(token: str, width: Optional[int] = None, address: bool = False) -> TypedValue:
    """
    Decode any value token.

    :param token: value token as produced by the lexer
    :param width: bit width of the target field, for integer tokens
    :param address: target field holds an IPv4 address; a quoted address
                    ("10.0.0.1" with its quotes) is unwrapped first
    :raises ValueError: when the token matches no value kind
    """
    if address:
        token = unquote_address(token)
    if is_decimal_integer(token) or is_hex_integer(token):
        return int_to_value(token, width)
    if is_ipv4(token):
        return ipv4_to_value(token)
    if is_quoted_string(token):
        return str_to_value(token)

    logger.debug(f"Undecodable value token: {token!r}")
    raise ValueError(f"Unrecognized value: '{token}'")
