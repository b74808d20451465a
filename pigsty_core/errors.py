"""
errors.py
=========
Exception hierarchy for the pigsty signature compiler.

Every compilation failure is a PigstyError. The concrete classes name the
rule that was violated, grouped by the pass that detects them:

    - SyntaxCheckError   (pass 1: grammar and per-entry field rules)
    - MaterializeError   (pass 2: signature names)
    - SemanticError      (pass 3: cross-field protocol rules)

Each error keeps the context needed to reproduce the decision
(entry index, signature name, field label, offending token, source line).
"""

from typing import Optional


def printable(text: str) -> str:
    """Show the undecodable bytes of a signature name as \\xHH escapes."""
    return text.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


class PigstyError(Exception):
    """Base error for all signature compilation failures."""

    rule = "pigsty-error"

    def __init__(
        self,
        message: str,
        entry_index: Optional[int] = None,
        signature: Optional[str] = None,
        field: Optional[str] = None,
        token: Optional[str] = None,
        line: Optional[int] = None,
    ):
        super().__init__(message)
        self.entry_index = entry_index
        self.signature = signature
        self.field = field
        self.token = token
        self.line = line

    @property
    def message(self) -> str:
        return self.args[0]

    def context(self) -> dict:
        """Return the diagnostic context as a plain dict (None values dropped)."""
        ctx = {
            "rule": self.rule,
            "entry_index": self.entry_index,
            "signature": self.signature,
            "field": self.field,
            "token": self.token,
            "line": self.line,
        }
        return {k: v for k, v in ctx.items() if v is not None}

    def __str__(self) -> str:
        where = []
        if self.line is not None:
            where.append(f"line {self.line}")
        if self.entry_index is not None:
            where.append(f"entry #{self.entry_index}")
        if self.signature is not None:
            where.append(f"signature \"{self.signature}\"")
        text = f"{self.message} ({', '.join(where)})" if where else self.message
        return printable(text)


class IoFailure(PigstyError):
    """The signature source could not be read."""

    rule = "io-failure"


class ConfigurationError(PigstyError, ValueError):
    """config.yaml is malformed or carries invalid values."""

    rule = "configuration"


# ----------------------------------------------------------------------
# Pass 1
# ----------------------------------------------------------------------
class SyntaxCheckError(PigstyError):
    rule = "syntax"


class MalformedEntryOpen(SyntaxCheckError):
    rule = "malformed-entry-open"


class UnknownField(SyntaxCheckError):
    rule = "unknown-field"


class DuplicateField(SyntaxCheckError):
    rule = "duplicate-field"


class MissingEquals(SyntaxCheckError):
    rule = "missing-equals"


class InvalidFieldValue(SyntaxCheckError):
    rule = "invalid-field-value"


class MissingSeparator(SyntaxCheckError):
    rule = "missing-separator"


class UnterminatedEntry(SyntaxCheckError):
    rule = "unterminated-entry"


# ----------------------------------------------------------------------
# Pass 2
# ----------------------------------------------------------------------
class MaterializeError(PigstyError):
    rule = "materialize"


class DuplicateSignatureName(MaterializeError):
    rule = "duplicate-signature-name"


class MissingSignatureName(MaterializeError):
    rule = "missing-signature-name"


# ----------------------------------------------------------------------
# Pass 3
# ----------------------------------------------------------------------
class SemanticError(PigstyError):
    rule = "semantic"


class MissingOrUnsupportedIpVersion(SemanticError):
    rule = "missing-or-unsupported-ip-version"


class MissingRequiredIpv4Field(SemanticError):
    rule = "missing-required-ipv4-field"


class TransportFieldWithoutProtocol(MissingRequiredIpv4Field):
    """ip.protocol is missing while tcp/udp/icmp fields are declared."""

    rule = "transport-field-without-protocol"


class MissingRequiredTransportField(SemanticError):
    rule = "missing-required-transport-field"
