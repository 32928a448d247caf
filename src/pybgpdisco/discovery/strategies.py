"""Vendor peer table schemas and their address family collectors.

Each :class:`SchemaStrategy` knows which device it applies to, how to
walk and decode its peer table, and how to collect address family
membership for the discovered peers. Strategies hold no per-context
state; everything a context produces is returned to the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

import structlog

from pybgpdisco.discovery.afi_safi import decode_afi_safi
from pybgpdisco.discovery.juniper import JuniperIndexCorrelator
from pybgpdisco.discovery.peers import build_peers
from pybgpdisco.models.bgp_peer import DiscoveredPeer
from pybgpdisco.models.device import Device
from pybgpdisco.snmp.mibs import (
    ARISTA_BGP4V2_MIB,
    BGP4_MIB,
    CISCO_BGP4_MIB,
    JUNIPER_BGP4V2_MIB,
)
from pybgpdisco.snmp.transport import IndexedRows, SnmpError, Transport, WalkRow
from pybgpdisco.utils.inet import InetAddressError, read_inet_address, read_ipv4_index

logger = structlog.get_logger(__name__)

# peer IP -> {(afi, safi)}; peers absent from the map were not observable
AddressFamilyMap = dict[str, set[tuple[str, str]]]


@dataclass
class PeerTable:
    """Peer rows of one context and the schema that produced them."""

    schema: "SchemaStrategy"
    rows: list[WalkRow] = field(default_factory=list)
    richer: bool = False
    generic_fallback: bool = False

    def build_peers(self) -> list[DiscoveredPeer]:
        """Normalize the rows with the producing schema's index decoder."""
        return build_peers(self.rows, self.schema.decode_peer_index)


def _read_afi_safi(index: tuple[int, ...], offset: int) -> tuple[str, str]:
    if len(index) != offset + 2:
        raise InetAddressError(f"Expected afi.safi after offset {offset} in {index}")
    return decode_afi_safi(index[offset], index[offset + 1])


def _memberships_for(
    peers: list[DiscoveredPeer], observed: AddressFamilyMap
) -> AddressFamilyMap:
    return {peer.ip: set(observed.get(peer.ip, set())) for peer in peers}


class SchemaStrategy(ABC):
    """Peer table schema of one vendor MIB."""

    name: ClassVar[str]
    mib: ClassVar[str]
    peer_object: ClassVar[str]

    @classmethod
    @abstractmethod
    def matches(cls, device: Device) -> bool:
        """Whether this schema applies to the device's OS family."""

    @abstractmethod
    def decode_peer_index(self, index: tuple[int, ...]) -> str:
        """
        Decode a peer table row index to the remote peer IP.

        Raises:
            InetAddressError: If the index is malformed
        """

    async def walk_peers(self, transport: Transport, device: Device) -> list[WalkRow]:
        """Walk the remote-AS column; transport failure reads as no rows."""
        try:
            return await transport.walk(device, self.peer_object, self.mib)
        except SnmpError as e:
            logger.warning(
                "bgp_schema_walk_failed",
                device=device.hostname,
                schema=self.name,
                error=str(e),
            )
            return []

    async def probe(self, transport: Transport, device: Device) -> PeerTable:
        """Walk the peer table of this schema."""
        rows = await self.walk_peers(transport, device)
        return PeerTable(schema=self, rows=rows)

    async def collect_address_families(
        self,
        transport: Transport,
        device: Device,
        peers: list[DiscoveredPeer],
        table: PeerTable,
    ) -> AddressFamilyMap | None:
        """
        Collect per-peer address families.

        Returns:
            Families per peer IP, or None when the schema cannot observe
            address families at all
        """
        return None

    async def _walk_indexed(
        self, transport: Transport, device: Device, table: str
    ) -> IndexedRows:
        try:
            return await transport.walk_indexed(device, table, self.mib)
        except SnmpError as e:
            logger.warning(
                "bgp_address_family_walk_failed",
                device=device.hostname,
                table=table,
                error=str(e),
            )
            return {}


class GenericStrategy(SchemaStrategy):
    """Standard BGP4-MIB peer table (IPv4 peers only, no address families)."""

    name = "bgp4-mib"
    mib = BGP4_MIB
    peer_object = "bgpPeerRemoteAs"

    @classmethod
    def matches(cls, device: Device) -> bool:
        return True

    def decode_peer_index(self, index: tuple[int, ...]) -> str:
        ip, _ = read_ipv4_index(index)
        return ip

    async def probe(self, transport: Transport, device: Device) -> PeerTable:
        rows = await self.walk_peers(transport, device)
        return PeerTable(schema=self, rows=rows)


class AristaStrategy(SchemaStrategy):
    """ARISTA-BGP4V2-MIB, indexed by instance and InetAddress."""

    name = "arista-bgp4v2"
    mib = ARISTA_BGP4V2_MIB
    peer_object = "aristaBgp4V2PeerRemoteAs"

    @classmethod
    def matches(cls, device: Device) -> bool:
        return device.os_group == "arista"

    def decode_peer_index(self, index: tuple[int, ...]) -> str:
        # aristaBgp4V2PeerInstance.type.len.addr
        ip, _ = read_inet_address(index, 1)
        return ip

    async def probe(self, transport: Transport, device: Device) -> PeerTable:
        rows = await self.walk_peers(transport, device)
        return PeerTable(schema=self, rows=rows, richer=True)

    async def collect_address_families(
        self,
        transport: Transport,
        device: Device,
        peers: list[DiscoveredPeer],
        table: PeerTable,
    ) -> AddressFamilyMap | None:
        try:
            rows = await transport.walk(device, "aristaBgp4V2PrefixInPrefixes", self.mib)
        except SnmpError as e:
            logger.warning(
                "bgp_address_family_walk_failed",
                device=device.hostname,
                table="aristaBgp4V2PrefixInPrefixes",
                error=str(e),
            )
            return None
        if not rows:
            return None

        observed: AddressFamilyMap = {}
        for index, _ in rows:
            try:
                # instance.type.len.addr.afi.safi
                ip, offset = read_inet_address(index, 1)
                family = _read_afi_safi(index, offset)
            except InetAddressError as e:
                logger.debug("bgp_address_family_index_unparsable", index=index, error=str(e))
                continue
            observed.setdefault(ip, set()).add(family)

        return _memberships_for(peers, observed)


class JuniperStrategy(SchemaStrategy):
    """BGP4-V2-MIB-JUNIPER; address families via peer index correlation."""

    name = "juniper-bgp4v2"
    mib = JUNIPER_BGP4V2_MIB
    peer_object = "jnxBgpM2PeerRemoteAs"

    @classmethod
    def matches(cls, device: Device) -> bool:
        return device.os == "junos"

    def decode_peer_index(self, index: tuple[int, ...]) -> str:
        # routingInstance.localType.localLen.local.remoteType.remoteLen.remote
        _, offset = read_inet_address(index, 1)
        ip, _ = read_inet_address(index, offset)
        return ip

    async def collect_address_families(
        self,
        transport: Transport,
        device: Device,
        peers: list[DiscoveredPeer],
        table: PeerTable,
    ) -> AddressFamilyMap | None:
        if table.generic_fallback:
            return None

        correlator = JuniperIndexCorrelator(transport, device)
        try:
            peer_indexes = await correlator.peer_indexes()
            families: AddressFamilyMap = {}
            for peer in peers:
                if peer.ip not in peer_indexes:
                    logger.debug("juniper_peer_not_correlated", peer=peer.ip)
                    continue
                families[peer.ip] = await correlator.families_for(peer.ip)
        except SnmpError as e:
            logger.warning(
                "bgp_address_family_walk_failed",
                device=device.hostname,
                table="jnxBgpM2PeerEntry",
                error=str(e),
            )
            return None

        return families


class CiscoStrategy(SchemaStrategy):
    """CISCO-BGP4-MIB cbgpPeer2 tables (IPv4 and IPv6 peers)."""

    name = "cisco-bgp4"
    mib = CISCO_BGP4_MIB
    peer_object = "cbgpPeer2RemoteAs"

    @classmethod
    def matches(cls, device: Device) -> bool:
        return device.os_group == "cisco"

    def decode_peer_index(self, index: tuple[int, ...]) -> str:
        ip, _ = read_inet_address(index, 0)
        return ip

    async def probe(self, transport: Transport, device: Device) -> PeerTable:
        # cbgpPeer2 rows mean the agent implements the v2 tables
        rows = await self.walk_peers(transport, device)
        return PeerTable(schema=self, rows=rows, richer=bool(rows))

    async def collect_address_families(
        self,
        transport: Transport,
        device: Device,
        peers: list[DiscoveredPeer],
        table: PeerTable,
    ) -> AddressFamilyMap | None:
        if table.richer:
            entry = "cbgpPeer2AddrFamilyEntry"
        else:
            entry = "cbgpPeerAddrFamilyEntry"

        rows = await self._walk_indexed(transport, device, entry)
        if not rows:
            return None

        observed: AddressFamilyMap = {}
        for index in rows:
            try:
                if table.richer:
                    ip, offset = read_inet_address(index, 0)
                else:
                    ip, offset = read_ipv4_index(index, 0)
                family = _read_afi_safi(index, offset)
            except InetAddressError as e:
                logger.debug("bgp_address_family_index_unparsable", index=index, error=str(e))
                continue
            observed.setdefault(ip, set()).add(family)

        return _memberships_for(peers, observed)


# Vendor schemas in priority order; GenericStrategy is the fallback
VENDOR_STRATEGIES: tuple[type[SchemaStrategy], ...] = (
    AristaStrategy,
    JuniperStrategy,
    CiscoStrategy,
)


def select_strategy(device: Device) -> SchemaStrategy:
    """First vendor schema matching the device, else the generic schema."""
    for strategy_class in VENDOR_STRATEGIES:
        if strategy_class.matches(device):
            return strategy_class()
    return GenericStrategy()
