"""
syntax_checker.py
=================
Pass 1 of the signature compiler.

Walks the token stream one entry at a time and checks:
    - the entry grammar     [ field = value , field = value ... ]
    - that every field label is known
    - that no field is declared twice in the same entry
    - that every value passes its field verifier

Nothing is built here; tokens are checked and dropped. The first problem
found raises and stops the whole compilation.
"""

import logging
from enum import Enum
from typing import Optional

from pigsty_core.errors import (
    DuplicateField,
    InvalidFieldValue,
    MalformedEntryOpen,
    MissingEquals,
    MissingSeparator,
    UnknownField,
    UnterminatedEntry,
)
from pigsty_core.fields import get_field
from pigsty_core.lexer import line_of, next_token

logger = logging.getLogger(__name__)


class State(Enum):
    EXPECT_FIELD = 0
    EXPECT_EQUALS = 1
    EXPECT_VALUE = 2
    EXPECT_SEPARATOR = 3


def check_next_entry(buffer: str, position: int, entry_index: int = 0) -> Optional[int]:
    """
    Check the entry starting at or after position.

    :param buffer: signature source
    :param position: scan start
    :param entry_index: 0-based index of the entry, for diagnostics
    :return: position right after the closing ']', or None when only
             blanks and comments are left
    """
    size = len(buffer)
    token, position = next_token(buffer, position)
    if not token and position >= size:
        return None

    if token != "[":
        raise MalformedEntryOpen(
            f"signature not well opened, expecting \"[\" but got \"{token}\"",
            entry_index=entry_index,
            token=token,
            line=line_of(buffer, position - len(token)),
        )

    seen = set()
    descriptor = None
    state = State.EXPECT_FIELD

    while True:
        token, position = next_token(buffer, position)
        start = position - len(token)

        if not token and position >= size:
            raise UnterminatedEntry(
                "unexpected end of input, missing \"]\"",
                entry_index=entry_index,
                field=descriptor.label if descriptor else None,
                line=line_of(buffer, start),
            )

        if state is State.EXPECT_FIELD:
            descriptor = get_field(token)
            if descriptor is None:
                raise UnknownField(
                    f"unknown field \"{token}\"",
                    entry_index=entry_index,
                    field=token,
                    token=token,
                    line=line_of(buffer, start),
                )
            if descriptor.index in seen:
                raise DuplicateField(
                    f"field \"{descriptor.label}\" redeclared",
                    entry_index=entry_index,
                    field=descriptor.label,
                    token=token,
                    line=line_of(buffer, start),
                )
            seen.add(descriptor.index)
            state = State.EXPECT_EQUALS

        elif state is State.EXPECT_EQUALS:
            if token != "=":
                raise MissingEquals(
                    f"expecting \"=\" after \"{descriptor.label}\" but got \"{token}\"",
                    entry_index=entry_index,
                    field=descriptor.label,
                    token=token,
                    line=line_of(buffer, start),
                )
            state = State.EXPECT_VALUE

        elif state is State.EXPECT_VALUE:
            if not descriptor.verifier(token):
                raise InvalidFieldValue(
                    f"field \"{descriptor.label}\" has invalid data (\"{token}\")",
                    entry_index=entry_index,
                    field=descriptor.label,
                    token=token,
                    line=line_of(buffer, start),
                )
            state = State.EXPECT_SEPARATOR

        else:
            if token == "]":
                logger.debug(f"Entry #{entry_index}: {len(seen)} field(s) checked")
                return position
            if token != ",":
                raise MissingSeparator(
                    f"missing \",\" or \"]\", got \"{token}\"",
                    entry_index=entry_index,
                    field=descriptor.label,
                    token=token,
                    line=line_of(buffer, start),
                )
            state = State.EXPECT_FIELD


def check_buffer(buffer: str) -> int:
    """
    Run pass 1 over a whole source buffer.

    Returns the number of entries found. An empty buffer, or one holding
    only blanks and comments, is valid and yields 0.
    """
    position = 0
    entries = 0
    while True:
        position = check_next_entry(buffer, position, entries)
        if position is None:
            break
        entries += 1

    logger.debug(f"Syntax check passed: {entries} entries")
    return entries
