"""
materializer.py
===============
Pass 2 of the signature compiler.

Reads the buffer again and builds the CompiledSet: one Signature per
entry, named after its `signature` field, holding every other field
decoded into a typed value, in source order.

Entry grammar, field labels, values and duplicates are checked again, so
the pass does not depend on pass 1 having run. Signature names must be
unique across the whole file. Any error drops the set built so far; the
caller only ever gets a complete set.
"""

import logging
from typing import Iterator, List, NamedTuple, Optional

from pigsty_core.converters import str_to_name, token_to_value
from pigsty_core.errors import (
    DuplicateSignatureName,
    InvalidFieldValue,
    MalformedEntryOpen,
    MissingEquals,
    MissingSeparator,
    MissingSignatureName,
    PigstyError,
    UnknownField,
    UnterminatedEntry,
)
from pigsty_core.fields import FieldId, get_field
from pigsty_core.lexer import Token, tokenize
from pigsty_core.models import CompiledSet, Signature

logger = logging.getLogger(__name__)


class Pair(NamedTuple):
    label: str
    value: str
    line: int


def read_entry(tokens: Iterator[Token], entry_index: int = 0) -> Optional[List[Pair]]:
    """
    Collect the `field = value` pairs of the next entry in tokens.

    Returns None when no entry is left. The bracket, '=' and ',' tokens
    are checked on the way, so a buffer that skipped pass 1 still fails
    on bad grammar.
    """
    opening = next(tokens, None)
    if opening is None:
        return None
    if opening.text != "[":
        raise MalformedEntryOpen(
            f"signature not well opened, expecting \"[\" but got \"{opening.text}\"",
            entry_index=entry_index,
            token=opening.text,
            line=opening.line,
        )

    pairs = []
    while True:
        label = _expect(tokens, entry_index, opening)
        equals = _expect(tokens, entry_index, label)
        if equals.text != "=":
            raise MissingEquals(
                f"expecting \"=\" after \"{label.text}\" but got \"{equals.text}\"",
                entry_index=entry_index,
                field=label.text,
                token=equals.text,
                line=equals.line,
            )
        value = _expect(tokens, entry_index, equals)
        pairs.append(Pair(label.text, value.text, label.line))

        separator = _expect(tokens, entry_index, value)
        if separator.text == "]":
            return pairs
        if separator.text != ",":
            raise MissingSeparator(
                f"missing \",\" or \"]\", got \"{separator.text}\"",
                entry_index=entry_index,
                field=label.text,
                token=separator.text,
                line=separator.line,
            )


def _expect(tokens: Iterator[Token], entry_index: int, previous: Token) -> Token:
    token = next(tokens, None)
    if token is None:
        raise UnterminatedEntry(
            "unexpected end of input, missing \"]\"",
            entry_index=entry_index,
            line=previous.line,
        )
    return token


def _signature_name(pairs: List[Pair], entry_index: int) -> str:
    for pair in pairs:
        if pair.label != "signature":
            continue
        try:
            return str_to_name(pair.value)
        except ValueError as e:
            raise InvalidFieldValue(
                f"field \"signature\" has invalid data (\"{pair.value}\")",
                entry_index=entry_index,
                field="signature",
                token=pair.value,
                line=pair.line,
            ) from e

    raise MissingSignatureName(
        "signature field missing",
        entry_index=entry_index,
        field="signature",
        line=pairs[0].line if pairs else None,
    )


def materialize_entry(pairs: List[Pair], compiled: CompiledSet, entry_index: int) -> Signature:
    """Build one Signature from its pairs and append it to compiled."""
    name = _signature_name(pairs, entry_index)
    if name in compiled:
        raise DuplicateSignatureName(
            f"packet signature \"{name}\" redeclared",
            entry_index=entry_index,
            signature=name,
            field="signature",
        )

    signature = compiled.append(Signature(name))

    for pair in pairs:
        descriptor = get_field(pair.label)
        if descriptor is None:
            raise UnknownField(
                f"unknown field \"{pair.label}\"",
                entry_index=entry_index,
                signature=name,
                field=pair.label,
                token=pair.label,
                line=pair.line,
            )
        if descriptor.index == FieldId.SIGNATURE:
            continue
        if not descriptor.verifier(pair.value):
            raise InvalidFieldValue(
                f"field \"{descriptor.label}\" has invalid data (\"{pair.value}\")",
                entry_index=entry_index,
                signature=name,
                field=descriptor.label,
                token=pair.value,
                line=pair.line,
            )

        try:
            value = token_to_value(pair.value, descriptor.width, descriptor.is_address)
        except ValueError as e:
            raise InvalidFieldValue(
                str(e),
                entry_index=entry_index,
                signature=name,
                field=descriptor.label,
                token=pair.value,
                line=pair.line,
            ) from e

        try:
            signature.add_field(descriptor.index, value)
        except PigstyError as e:
            e.entry_index = entry_index
            e.token = pair.label
            e.line = pair.line
            raise

    logger.debug(f"Materialized signature \"{signature.display_name}\" with {len(signature)} field(s)")
    return signature


def materialize(buffer: str) -> CompiledSet:
    """
    Run pass 2 over a buffer that passed the syntax check.

    :return: a new CompiledSet, signatures in source order
    """
    compiled = CompiledSet()
    tokens = tokenize(buffer)
    entry_index = 0
    while True:
        pairs = read_entry(tokens, entry_index)
        if pairs is None:
            break
        materialize_entry(pairs, compiled, entry_index)
        entry_index += 1

    logger.debug(f"Materialized {len(compiled)} signature(s)")
    return compiled
