"""Database operations for devices, BGP peers and address families."""

import ipaddress

import asyncpg  # type: ignore[import-untyped]

from pybgpdisco.database.schema import (
    TABLE_BGP_PEER_ADDRESS_FAMILIES,
    TABLE_BGP_PEERS,
    TABLE_DEVICE_VRF_CONTEXTS,
    TABLE_DEVICES,
)
from pybgpdisco.models.bgp_peer import AddressFamily, BgpPeer, DiscoveredPeer
from pybgpdisco.models.device import Device, VrfContext

# Context names are nullable; NULL is the default context and must match itself
_SAME_CONTEXT = "context_name IS NOT DISTINCT FROM $2"


class BgpStore:
    """
    Persistent store for discovery state.

    All methods raise ``asyncpg.PostgresError`` on database errors; they
    are not recovered here.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """
        Initialize store.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    async def fetch_devices(self, device_ids: list[int] | None = None) -> list[Device]:
        """
        Load enabled devices with their VRF contexts.

        Args:
            device_ids: Restrict to these devices (default: all)

        Returns:
            Devices ordered by ID
        """
        query = f"""
            SELECT d.device_id, d.hostname, d.os, d.os_group, d.bgp_local_as,
                   d.snmp_version, d.snmp_community, d.snmp_port,
                   d.snmp_timeout, d.snmp_retries,
                   d.snmp_v3_user, d.snmp_v3_auth_key, d.snmp_v3_priv_key,
                   COALESCE(
                       array_agg(v.context_name ORDER BY v.context_name)
                           FILTER (WHERE v.context_name IS NOT NULL),
                       '{{}}'
                   ) AS contexts
            FROM {TABLE_DEVICES} d
            LEFT JOIN {TABLE_DEVICE_VRF_CONTEXTS} v ON v.device_id = d.device_id
            WHERE NOT d.disabled
              AND ($1::int[] IS NULL OR d.device_id = ANY($1::int[]))
            GROUP BY d.device_id
            ORDER BY d.device_id
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, device_ids)

        return [
            Device(
                device_id=row["device_id"],
                hostname=row["hostname"],
                os=row["os"],
                os_group=row["os_group"],
                bgp_local_as=row["bgp_local_as"],
                snmp_version=row["snmp_version"],
                snmp_community=row["snmp_community"],
                snmp_port=row["snmp_port"],
                snmp_timeout=row["snmp_timeout"],
                snmp_retries=row["snmp_retries"],
                snmp_v3_user=row["snmp_v3_user"],
                snmp_v3_auth_key=row["snmp_v3_auth_key"],
                snmp_v3_priv_key=row["snmp_v3_priv_key"],
                vrf_contexts=[VrfContext(name=name) for name in row["contexts"]],
            )
            for row in rows
        ]

    async def fetch_vrf_contexts(self, device_id: int) -> list[VrfContext]:
        """VRF contexts configured for a device."""
        query = f"""
            SELECT context_name
            FROM {TABLE_DEVICE_VRF_CONTEXTS}
            WHERE device_id = $1
            ORDER BY context_name
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, device_id)
            return [VrfContext(name=row["context_name"]) for row in rows]

    async def update_device_local_as(self, device_id: int, local_as: int | None) -> None:
        """
        Set or clear a device's BGP local AS.

        Args:
            device_id: Device ID
            local_as: New local AS, None to clear it
        """
        query = f"UPDATE {TABLE_DEVICES} SET bgp_local_as = $2 WHERE device_id = $1"

        async with self.pool.acquire() as conn:
            await conn.execute(query, device_id, local_as)

    async def upsert_peer(
        self, device_id: int, context_name: str | None, peer: DiscoveredPeer
    ) -> bool:
        """
        Insert or update a BGP peer.

        Args:
            device_id: Device ID
            context_name: VRF context (None for default)
            peer: Observed peer

        Returns:
            True if the peer was inserted, False if it already existed
        """
        query = f"""
            INSERT INTO {TABLE_BGP_PEERS}
                (device_id, context_name, peer_ip, remote_as, astext)
            VALUES
                ($1, $2, $3, $4, $5)
            ON CONFLICT ON CONSTRAINT bgp_peers_device_context_ip_key DO UPDATE SET
                remote_as = EXCLUDED.remote_as,
                astext = EXCLUDED.astext,
                last_seen = NOW()
            RETURNING (xmax = 0) AS inserted
        """

        async with self.pool.acquire() as conn:
            inserted = await conn.fetchval(
                query,
                device_id,
                context_name,
                ipaddress.ip_address(peer.ip),
                peer.remote_as,
                peer.astext,
            )
            return bool(inserted)

    async def delete_peer(self, peer_id: int) -> None:
        """
        Delete a BGP peer and all of its address families.

        Args:
            peer_id: Peer row ID
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    f"DELETE FROM {TABLE_BGP_PEER_ADDRESS_FAMILIES} WHERE peer_id = $1",
                    peer_id,
                )
                await conn.execute(
                    f"DELETE FROM {TABLE_BGP_PEERS} WHERE peer_id = $1", peer_id
                )

    async def fetch_peers(self, device_id: int, context_name: str | None) -> list[BgpPeer]:
        """
        BGP peers persisted for a device and context.

        Args:
            device_id: Device ID
            context_name: VRF context (None for default)

        Returns:
            Persisted peers
        """
        query = f"""
            SELECT peer_id, device_id, context_name, host(peer_ip) AS peer_ip,
                   remote_as, astext, first_seen, last_seen
            FROM {TABLE_BGP_PEERS}
            WHERE device_id = $1 AND {_SAME_CONTEXT}
            ORDER BY peer_id
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, device_id, context_name)
            return [BgpPeer(**dict(row)) for row in rows]

    async def upsert_address_family(
        self,
        device_id: int,
        context_name: str | None,
        peer_ip: str,
        afi: str,
        safi: str,
    ) -> bool:
        """
        Record that a peer carries an address family.

        Returns:
            True if the membership was inserted, False if it already existed
        """
        query = f"""
            INSERT INTO {TABLE_BGP_PEER_ADDRESS_FAMILIES} (peer_id, afi, safi)
            SELECT peer_id, $4, $5
            FROM {TABLE_BGP_PEERS}
            WHERE device_id = $1 AND {_SAME_CONTEXT} AND peer_ip = $3
            ON CONFLICT (peer_id, afi, safi) DO NOTHING
            RETURNING peer_id
        """

        async with self.pool.acquire() as conn:
            peer_id = await conn.fetchval(
                query, device_id, context_name, ipaddress.ip_address(peer_ip), afi, safi
            )
            return peer_id is not None

    async def delete_address_family(
        self,
        device_id: int,
        context_name: str | None,
        peer_ip: str,
        afi: str,
        safi: str,
    ) -> None:
        """Delete one address family membership of a peer."""
        query = f"""
            DELETE FROM {TABLE_BGP_PEER_ADDRESS_FAMILIES} af
            USING {TABLE_BGP_PEERS} p
            WHERE af.peer_id = p.peer_id
              AND p.device_id = $1 AND p.{_SAME_CONTEXT} AND p.peer_ip = $3
              AND af.afi = $4 AND af.safi = $5
        """

        async with self.pool.acquire() as conn:
            await conn.execute(
                query, device_id, context_name, ipaddress.ip_address(peer_ip), afi, safi
            )

    async def fetch_address_families(
        self, device_id: int, context_name: str | None
    ) -> list[AddressFamily]:
        """
        Address family memberships persisted for a device and context.

        Args:
            device_id: Device ID
            context_name: VRF context (None for default)

        Returns:
            Persisted memberships
        """
        query = f"""
            SELECT p.device_id, p.context_name, host(p.peer_ip) AS peer_ip,
                   af.afi, af.safi
            FROM {TABLE_BGP_PEER_ADDRESS_FAMILIES} af
            JOIN {TABLE_BGP_PEERS} p ON p.peer_id = af.peer_id
            WHERE p.device_id = $1 AND p.{_SAME_CONTEXT}
            ORDER BY p.peer_ip, af.afi, af.safi
        """

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, device_id, context_name)
            return [AddressFamily(**dict(row)) for row in rows]
