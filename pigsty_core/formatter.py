"""
formatter.py
============
Renders compiled signatures back into pigsty source text.

Example:
    Input:
        Signature("basic-tcp", [ip.version=4, ip.src=192.168.0.1, ...])
    Output:
        [ signature = "basic-tcp", ip.version = 4, ip.src = 192.168.0.1, ... ]

The output compiles back to an equal signature, so it doubles as a
canonical form for display and diffing.
"""

from typing import List

from pigsty_core.models import BytesValue, CompiledSet, IntegerValue, IPv4Value, Signature, TypedValue

_PRINTABLE = set(range(0x20, 0x7f)) - {ord("\\"), ord('"')}

_ESCAPES = {
    ord("\n"): "\\n",
    ord("\r"): "\\r",
    ord("\t"): "\\t",
    ord("\\"): "\\\\",
    ord('"'): '\\"',
}


def quote_bytes(data: bytes) -> str:
    """Quote a payload, escaping anything outside printable ASCII."""
    parts = []
    for byte in data:
        if byte in _PRINTABLE:
            parts.append(chr(byte))
        elif byte in _ESCAPES:
            parts.append(_ESCAPES[byte])
        else:
            parts.append(f"\\x{byte:02x}")
    return '"' + "".join(parts) + '"'


def format_value(value: TypedValue) -> str:
    if isinstance(value, IntegerValue):
        return str(value.value)
    if isinstance(value, IPv4Value):
        return str(value)
    if isinstance(value, BytesValue):
        return quote_bytes(value.data)
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


class SignatureFormatter:
    """
    Builds pigsty source text from compiled signatures.
    """

    def __init__(self, multiline: bool = False, indent: str = "  "):
        """
        :param multiline: put every field on its own line
        :param indent: indentation used for multiline output
        """
        self.multiline = multiline
        self.indent = indent

    # ----------------------------------------------------------------------
    def format_signature(self, signature: Signature) -> str:
        parts: List[str] = [f"signature = {quote_bytes(signature.name.encode('utf-8', 'surrogateescape'))}"]
        for entry in signature:
            parts.append(f"{entry.label} = {format_value(entry.value)}")

        if not self.multiline:
            return "[ " + ", ".join(parts) + " ]"

        body = (",\n" + self.indent).join(parts)
        return f"[\n{self.indent}{body}\n]"

    # ----------------------------------------------------------------------
    def format(self, compiled: CompiledSet) -> str:
        """
        Render the whole set, one entry per signature, in set order.
        """
        return "\n".join(self.format_signature(s) for s in compiled) + ("\n" if len(compiled) else "")
