"""Juniper peer index correlation for address family discovery.

The Juniper prefix counters table is indexed by an internal peer index
rather than the peer address. Two walks resolve the indirection:

    jnxBgpM2PeerEntry            remote address -> peer index
    jnxBgpM2PrefixCountersTable  peer index.afi.safi -> counters

Both maps are built at most once per correlator, and a correlator lives
for exactly one VRF context iteration.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from pybgpdisco.discovery.afi_safi import decode_afi_safi, parse_afi_safi
from pybgpdisco.models.device import Device
from pybgpdisco.snmp.mibs import JUNIPER_BGP4V2_MIB
from pybgpdisco.snmp.transport import Transport
from pybgpdisco.utils.inet import InetAddressError, ip_from_hex

logger = structlog.get_logger(__name__)

# normalized peer IP -> jnxBgpM2PeerIndex
PeerIndexMap = dict[str, int]
# jnxBgpM2PeerIndex -> ["afi.safi", ...]
AfiSafiIndex = dict[int, list[str]]


def build_peer_index_map(entries: Mapping[tuple[int, ...], Mapping[str, Any]]) -> PeerIndexMap:
    """
    Map each peer's remote address to its Juniper peer index.

    Rows whose address cannot be parsed are logged and skipped.

    Args:
        entries: jnxBgpM2PeerEntry rows keyed by table index

    Returns:
        PeerIndexMap
    """
    peer_indexes: PeerIndexMap = {}

    for index, entry in entries.items():
        peer_index = entry.get("jnxBgpM2PeerIndex")
        remote_addr = entry.get("jnxBgpM2PeerRemoteAddr")
        if peer_index is None or remote_addr is None:
            logger.debug("juniper_peer_entry_incomplete", index=index)
            continue

        try:
            ip = ip_from_hex(remote_addr)
        except InetAddressError as e:
            logger.debug(
                "juniper_peer_address_unparsable",
                peer_index=peer_index,
                remote_addr=remote_addr.hex() if isinstance(remote_addr, bytes) else remote_addr,
                error=str(e),
            )
            continue

        logger.debug("juniper_peer_index", peer=ip, peer_index=peer_index)
        peer_indexes[ip] = int(peer_index)

    return peer_indexes


def build_afi_safi_index(rows: Mapping[tuple[int, ...], Any]) -> AfiSafiIndex:
    """
    Group prefix counter rows by peer index.

    Each row key is ``(peerIndex, afi, safi)``.

    Args:
        rows: jnxBgpM2PrefixCountersTable rows keyed by table index

    Returns:
        AfiSafiIndex
    """
    afi_safi: AfiSafiIndex = {}

    for key in rows:
        if len(key) != 3:
            logger.debug("juniper_prefix_counter_key_invalid", key=key)
            continue
        peer_index, afi, safi = key
        afi_safi.setdefault(peer_index, []).append(f"{afi}.{safi}")

    return afi_safi


class JuniperIndexCorrelator:
    """Resolves per-peer address families through the Juniper peer index."""

    def __init__(self, transport: Transport, device: Device) -> None:
        self.transport = transport
        self.device = device
        self._peer_indexes: PeerIndexMap | None = None
        self._afi_safi: AfiSafiIndex | None = None

    async def peer_indexes(self) -> PeerIndexMap:
        """Walk jnxBgpM2PeerEntry once and return the PeerIndexMap."""
        if self._peer_indexes is None:
            entries = await self.transport.walk_indexed(
                self.device, "jnxBgpM2PeerEntry", JUNIPER_BGP4V2_MIB
            )
            self._peer_indexes = build_peer_index_map(entries)
        return self._peer_indexes

    async def afi_safi_index(self) -> AfiSafiIndex:
        """Walk jnxBgpM2PrefixCountersTable once and return the AfiSafiIndex."""
        if self._afi_safi is None:
            rows = await self.transport.walk_indexed(
                self.device, "jnxBgpM2PrefixCountersTable", JUNIPER_BGP4V2_MIB
            )
            self._afi_safi = build_afi_safi_index(rows)
        return self._afi_safi

    async def families_for(self, peer_ip: str) -> set[tuple[str, str]]:
        """
        Address families of one peer.

        A peer missing from the PeerIndexMap yields an empty set.

        Returns:
            Set of (afi, safi) names
        """
        peer_indexes = await self.peer_indexes()
        afi_safi = await self.afi_safi_index()

        peer_index = peer_indexes.get(peer_ip)
        if peer_index is None:
            logger.debug("juniper_peer_index_missing", peer=peer_ip)
            return set()

        families: set[tuple[str, str]] = set()
        for pair in afi_safi.get(peer_index, []):
            families.add(decode_afi_safi(*parse_afi_safi(pair)))
        return families
