"""
models.py
=========
In-memory representation of compiled signatures.

    CompiledSet  ->  [Signature, ...]            (source order)
    Signature    ->  name + [FieldValue, ...]    (source order)
    FieldValue   ->  FieldId + TypedValue

TypedValue is one of IntegerValue, IPv4Value or BytesValue. Values are
decoded once, while materializing, and are self-describing from then on.
"""

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from pigsty_core.errors import DuplicateField, printable
from pigsty_core.fields import FieldId, field_label


class IPv4Class(Enum):
    """Symbolic address classes, resolved by the packet builder."""

    NORTH_AMERICAN = "north-american-ip"
    SOUTH_AMERICAN = "south-american-ip"
    ASIAN = "asian-ip"
    EUROPEAN = "european-ip"
    USER_DEFINED = "user-defined-ip"


@dataclass(frozen=True)
class IntegerValue:
    width: int
    value: int

    def to_bytes(self) -> bytes:
        """Big-endian bytes, as many as the field width needs."""
        return self.value.to_bytes((self.width + 7) // 8, "big")

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class IPv4Value:
    octets: Optional[bytes] = None
    address_class: Optional[IPv4Class] = None

    @property
    def is_symbolic(self) -> bool:
        return self.address_class is not None

    @property
    def address(self) -> Optional[ipaddress.IPv4Address]:
        if self.octets is None:
            return None
        return ipaddress.IPv4Address(self.octets)

    def __str__(self) -> str:
        if self.address_class is not None:
            return self.address_class.value
        return str(self.address)


@dataclass(frozen=True)
class BytesValue:
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


TypedValue = Union[IntegerValue, IPv4Value, BytesValue]


@dataclass(frozen=True)
class FieldValue:
    field_id: FieldId
    value: TypedValue

    @property
    def label(self) -> str:
        return field_label(self.field_id)


@dataclass
class Signature:
    name: str
    fields: List[FieldValue] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return printable(self.name)

    def add_field(self, field_id: FieldId, value: TypedValue) -> FieldValue:
        """Append a field value. A field may only appear once per signature."""
        if self.has(field_id):
            raise DuplicateField(
                f"field \"{field_label(field_id)}\" redeclared",
                signature=self.name,
                field=field_label(field_id),
            )
        entry = FieldValue(field_id, value)
        self.fields.append(entry)
        return entry

    def get(self, field_id: FieldId) -> Optional[TypedValue]:
        for entry in self.fields:
            if entry.field_id == field_id:
                return entry.value
        return None

    def has(self, field_id: FieldId) -> bool:
        return any(entry.field_id == field_id for entry in self.fields)

    def field_ids(self) -> List[FieldId]:
        return [entry.field_id for entry in self.fields]

    def as_dict(self) -> Dict[str, TypedValue]:
        return {entry.label: entry.value for entry in self.fields}

    def __iter__(self) -> Iterator[FieldValue]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


class CompiledSet:
    """Ordered signatures produced by one compilation run."""

    def __init__(self, signatures: Optional[List[Signature]] = None):
        self._signatures: List[Signature] = []
        # name -> first signature carrying it
        self._by_name: Dict[str, Signature] = {}
        for signature in signatures or []:
            self.append(signature)

    def append(self, signature: Signature) -> Signature:
        self._signatures.append(signature)
        self._by_name.setdefault(signature.name, signature)
        return signature

    def get(self, name: str) -> Optional[Signature]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [s.name for s in self._signatures]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._by_name

    def __iter__(self) -> Iterator[Signature]:
        return iter(self._signatures)

    def __len__(self) -> int:
        return len(self._signatures)

    def __getitem__(self, index: int) -> Signature:
        return self._signatures[index]

    def __repr__(self) -> str:
        return f"CompiledSet({self.names()!r})"
