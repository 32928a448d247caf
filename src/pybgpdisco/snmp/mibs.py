"""Numeric OID registry for the BGP MIB objects used by discovery.

Vendor MIBs are not compiled at runtime; objects are addressed by
(MIB module, object name) and resolved to numeric OIDs here. Table
entries list their column numbers so indexed walks can name columns.
"""

from dataclasses import dataclass, field
from typing import Final

BGP4_MIB: Final[str] = "BGP4-MIB"
CISCO_BGP4_MIB: Final[str] = "CISCO-BGP4-MIB"
ARISTA_BGP4V2_MIB: Final[str] = "ARISTA-BGP4V2-MIB"
JUNIPER_BGP4V2_MIB: Final[str] = "BGP4-V2-MIB-JUNIPER"

_BGP4 = (1, 3, 6, 1, 2, 1, 15)
_CBGP = (1, 3, 6, 1, 4, 1, 9, 9, 187, 1, 2)
_ARISTA = (1, 3, 6, 1, 4, 1, 30065, 4, 1, 1)
_JNX = (1, 3, 6, 1, 4, 1, 2636, 5, 1, 1, 2)


class UnknownMibObjectError(KeyError):
    """Exception raised for an object not present in the registry."""

    pass


@dataclass(frozen=True)
class MibObject:
    """Scalar or columnar object addressed by numeric OID."""

    name: str
    mib: str
    oid: tuple[int, ...]


@dataclass(frozen=True)
class MibTable:
    """Conceptual table; ``entry_oid`` is the row (xxxEntry) OID."""

    name: str
    mib: str
    entry_oid: tuple[int, ...]
    columns: dict[int, str] = field(default_factory=dict)

    def column_name(self, column: int) -> str:
        """Name of a column number, its decimal string if not registered."""
        return self.columns.get(column, str(column))


_OBJECTS: list[MibObject] = [
    MibObject("bgpLocalAs", BGP4_MIB, _BGP4 + (2,)),
    MibObject("bgpPeerRemoteAs", BGP4_MIB, _BGP4 + (3, 1, 9)),
    MibObject("cbgpPeer2RemoteAs", CISCO_BGP4_MIB, _CBGP + (5, 1, 11)),
    MibObject("aristaBgp4V2PeerRemoteAs", ARISTA_BGP4V2_MIB, _ARISTA + (2, 1, 10)),
    MibObject("aristaBgp4V2PrefixInPrefixes", ARISTA_BGP4V2_MIB, _ARISTA + (8, 1, 3)),
    MibObject("jnxBgpM2PeerRemoteAs", JUNIPER_BGP4V2_MIB, _JNX + (1, 1, 1, 13)),
]

_TABLES: list[tuple[tuple[str, ...], MibTable]] = [
    (
        ("cbgpPeerAddrFamilyTable", "cbgpPeerAddrFamilyEntry"),
        MibTable(
            "cbgpPeerAddrFamilyEntry",
            CISCO_BGP4_MIB,
            _CBGP + (3, 1),
            {
                1: "cbgpPeerAddrFamilyAfi",
                2: "cbgpPeerAddrFamilySafi",
                3: "cbgpPeerAddrFamilyName",
            },
        ),
    ),
    (
        ("cbgpPeer2AddrFamilyTable", "cbgpPeer2AddrFamilyEntry"),
        MibTable(
            "cbgpPeer2AddrFamilyEntry",
            CISCO_BGP4_MIB,
            _CBGP + (7, 1),
            {
                1: "cbgpPeer2AddrFamilyAfi",
                2: "cbgpPeer2AddrFamilySafi",
                3: "cbgpPeer2AddrFamilyName",
            },
        ),
    ),
    (
        ("jnxBgpM2PeerTable", "jnxBgpM2PeerEntry"),
        MibTable(
            "jnxBgpM2PeerEntry",
            JUNIPER_BGP4V2_MIB,
            _JNX + (1, 1, 1),
            {
                1: "jnxBgpM2PeerIdentifier",
                2: "jnxBgpM2PeerState",
                3: "jnxBgpM2PeerStatus",
                4: "jnxBgpM2PeerConfiguredVersion",
                5: "jnxBgpM2PeerNegotiatedVersion",
                6: "jnxBgpM2PeerLocalAddrType",
                7: "jnxBgpM2PeerLocalAddr",
                8: "jnxBgpM2PeerLocalPort",
                9: "jnxBgpM2PeerLocalAs",
                10: "jnxBgpM2PeerRemoteAddrType",
                11: "jnxBgpM2PeerRemoteAddr",
                12: "jnxBgpM2PeerRemotePort",
                13: "jnxBgpM2PeerRemoteAs",
                14: "jnxBgpM2PeerIndex",
            },
        ),
    ),
    (
        ("jnxBgpM2PrefixCountersTable", "jnxBgpM2PrefixCountersEntry"),
        MibTable(
            "jnxBgpM2PrefixCountersEntry",
            JUNIPER_BGP4V2_MIB,
            _JNX + (6, 2, 1),
            {
                1: "jnxBgpM2PrefixCountersAfi",
                2: "jnxBgpM2PrefixCountersSafi",
                7: "jnxBgpM2PrefixInPrefixes",
                8: "jnxBgpM2PrefixInPrefixesAccepted",
                9: "jnxBgpM2PrefixInPrefixesRejected",
                10: "jnxBgpM2PrefixOutPrefixes",
                11: "jnxBgpM2PrefixInPrefixesActive",
            },
        ),
    ),
]

OBJECTS: Final[dict[tuple[str, str], MibObject]] = {
    (obj.mib, obj.name): obj for obj in _OBJECTS
}
TABLES: Final[dict[tuple[str, str], MibTable]] = {
    (table.mib, name): table for names, table in _TABLES for name in names
}


def resolve_object(name: str, mib: str) -> MibObject:
    """
    Look up a scalar or column object.

    Raises:
        UnknownMibObjectError: If the object is not registered
    """
    try:
        return OBJECTS[(mib, name)]
    except KeyError:
        raise UnknownMibObjectError(f"{mib}::{name}") from None


def resolve_table(name: str, mib: str) -> MibTable:
    """
    Look up a table by its xxxTable or xxxEntry name.

    Raises:
        UnknownMibObjectError: If the table is not registered
    """
    try:
        return TABLES[(mib, name)]
    except KeyError:
        raise UnknownMibObjectError(f"{mib}::{name}") from None
