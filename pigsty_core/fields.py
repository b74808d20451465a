"""
fields.py
=========
The signature field descriptor table.

Each DSL field label (ip.src, tcp.dst, ...) maps to one immutable
FieldDescriptor holding its FieldId, the verifier used to accept its
value, the protocol group it belongs to and, for integer fields, its
bit width. All three compiler passes read this table; nothing writes it.
"""

from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional

from pigsty_validators.address_validators import verify_ipv4_addr
from pigsty_validators.integer_validators import (
    verify_ip_version,
    verify_u1,
    verify_u3,
    verify_u4,
    verify_u6,
    verify_u8,
    verify_u13,
    verify_u16,
    verify_u32,
)
from pigsty_validators.string_validators import verify_string


class FieldId(IntEnum):
    IPV4_VERSION = 0
    IPV4_IHL = 1
    IPV4_TOS = 2
    IPV4_TLEN = 3
    IPV4_ID = 4
    IPV4_FLAGS = 5
    IPV4_OFFSET = 6
    IPV4_TTL = 7
    IPV4_PROTOCOL = 8
    IPV4_CHECKSUM = 9
    IPV4_SRC = 10
    IPV4_DST = 11
    IPV4_PAYLOAD = 12
    TCP_SRC = 13
    TCP_DST = 14
    TCP_SEQNO = 15
    TCP_ACKNO = 16
    TCP_SIZE = 17
    TCP_RESERV = 18
    TCP_URG = 19
    TCP_ACK = 20
    TCP_PSH = 21
    TCP_RST = 22
    TCP_SYN = 23
    TCP_FIN = 24
    TCP_WSIZE = 25
    TCP_CHECKSUM = 26
    TCP_URGP = 27
    TCP_PAYLOAD = 28
    UDP_SRC = 29
    UDP_DST = 30
    UDP_SIZE = 31
    UDP_CHECKSUM = 32
    UDP_PAYLOAD = 33
    ICMP_TYPE = 34
    ICMP_CODE = 35
    ICMP_CHECKSUM = 36
    ICMP_PAYLOAD = 37
    SIGNATURE = 38


class FieldGroup(Enum):
    IPV4 = "ipv4"
    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"
    META = "meta"


# fields that only make sense when ip.protocol is declared
TRANSPORT_GROUPS = frozenset({FieldGroup.TCP, FieldGroup.UDP, FieldGroup.ICMP})


class FieldDescriptor(NamedTuple):
    label: str
    index: FieldId
    verifier: Callable[[str], bool]
    group: FieldGroup
    width: Optional[int] = None

    @property
    def is_transport(self) -> bool:
        return self.group in TRANSPORT_GROUPS

    @property
    def is_address(self) -> bool:
        return self.verifier is verify_ipv4_addr


_G = FieldGroup

_DESCRIPTORS = (
    FieldDescriptor("ip.version", FieldId.IPV4_VERSION, verify_ip_version, _G.IPV4, 4),
    FieldDescriptor("ip.ihl", FieldId.IPV4_IHL, verify_u4, _G.IPV4, 4),
    FieldDescriptor("ip.tos", FieldId.IPV4_TOS, verify_u8, _G.IPV4, 8),
    FieldDescriptor("ip.tlen", FieldId.IPV4_TLEN, verify_u16, _G.IPV4, 16),
    FieldDescriptor("ip.id", FieldId.IPV4_ID, verify_u16, _G.IPV4, 16),
    FieldDescriptor("ip.flags", FieldId.IPV4_FLAGS, verify_u3, _G.IPV4, 3),
    FieldDescriptor("ip.offset", FieldId.IPV4_OFFSET, verify_u13, _G.IPV4, 13),
    FieldDescriptor("ip.ttl", FieldId.IPV4_TTL, verify_u8, _G.IPV4, 8),
    FieldDescriptor("ip.protocol", FieldId.IPV4_PROTOCOL, verify_u8, _G.IPV4, 8),
    FieldDescriptor("ip.checksum", FieldId.IPV4_CHECKSUM, verify_u16, _G.IPV4, 16),
    FieldDescriptor("ip.src", FieldId.IPV4_SRC, verify_ipv4_addr, _G.IPV4),
    FieldDescriptor("ip.dst", FieldId.IPV4_DST, verify_ipv4_addr, _G.IPV4),
    FieldDescriptor("ip.payload", FieldId.IPV4_PAYLOAD, verify_string, _G.IPV4),
    FieldDescriptor("tcp.src", FieldId.TCP_SRC, verify_u16, _G.TCP, 16),
    FieldDescriptor("tcp.dst", FieldId.TCP_DST, verify_u16, _G.TCP, 16),
    FieldDescriptor("tcp.seqno", FieldId.TCP_SEQNO, verify_u32, _G.TCP, 32),
    FieldDescriptor("tcp.ackno", FieldId.TCP_ACKNO, verify_u32, _G.TCP, 32),
    FieldDescriptor("tcp.size", FieldId.TCP_SIZE, verify_u4, _G.TCP, 4),
    FieldDescriptor("tcp.reserv", FieldId.TCP_RESERV, verify_u6, _G.TCP, 6),
    FieldDescriptor("tcp.urg", FieldId.TCP_URG, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.ack", FieldId.TCP_ACK, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.psh", FieldId.TCP_PSH, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.rst", FieldId.TCP_RST, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.syn", FieldId.TCP_SYN, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.fin", FieldId.TCP_FIN, verify_u1, _G.TCP, 1),
    FieldDescriptor("tcp.wsize", FieldId.TCP_WSIZE, verify_u16, _G.TCP, 16),
    FieldDescriptor("tcp.checksum", FieldId.TCP_CHECKSUM, verify_u16, _G.TCP, 16),
    FieldDescriptor("tcp.urgp", FieldId.TCP_URGP, verify_u16, _G.TCP, 16),
    FieldDescriptor("tcp.payload", FieldId.TCP_PAYLOAD, verify_string, _G.TCP),
    FieldDescriptor("udp.src", FieldId.UDP_SRC, verify_u16, _G.UDP, 16),
    FieldDescriptor("udp.dst", FieldId.UDP_DST, verify_u16, _G.UDP, 16),
    FieldDescriptor("udp.size", FieldId.UDP_SIZE, verify_u16, _G.UDP, 16),
    FieldDescriptor("udp.checksum", FieldId.UDP_CHECKSUM, verify_u16, _G.UDP, 16),
    FieldDescriptor("udp.payload", FieldId.UDP_PAYLOAD, verify_string, _G.UDP),
    FieldDescriptor("icmp.type", FieldId.ICMP_TYPE, verify_u8, _G.ICMP, 8),
    FieldDescriptor("icmp.code", FieldId.ICMP_CODE, verify_u8, _G.ICMP, 8),
    FieldDescriptor("icmp.checksum", FieldId.ICMP_CHECKSUM, verify_u16, _G.ICMP, 16),
    FieldDescriptor("icmp.payload", FieldId.ICMP_PAYLOAD, verify_string, _G.ICMP),
    FieldDescriptor("signature", FieldId.SIGNATURE, verify_string, _G.META),
)

SIGNATURE_FIELDS: Mapping[str, FieldDescriptor] = MappingProxyType(
    {d.label: d for d in _DESCRIPTORS}
)

FIELDS_BY_ID: Mapping[FieldId, FieldDescriptor] = MappingProxyType(
    {d.index: d for d in _DESCRIPTORS}
)

REQUIRED_IPV4_FIELDS = (FieldId.IPV4_SRC, FieldId.IPV4_DST, FieldId.IPV4_PROTOCOL)


def get_field(label: str) -> Optional[FieldDescriptor]:
    """Look up a descriptor by its DSL label. Returns None for unknown labels."""
    return SIGNATURE_FIELDS.get(label)


def field_label(field_id: FieldId) -> str:
    return FIELDS_BY_ID[field_id].label
