"""Integration tests for database operations using testcontainers."""

from collections.abc import AsyncIterator, Iterator

import pytest
from testcontainers.postgres import PostgresContainer

from pybgpdisco.database.connection import DatabasePool
from pybgpdisco.database.migrations import MigrationRunner, apply_migrations
from pybgpdisco.database.operations import BgpStore
from pybgpdisco.discovery.reconciler import reconcile
from pybgpdisco.models.bgp_peer import DiscoveredPeer
from pybgpdisco.monitoring.stats import ContextStats

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def postgres_container() -> Iterator[PostgresContainer]:
    """Start a PostgreSQL container for the module."""
    # UNIQUE NULLS NOT DISTINCT needs PostgreSQL 15+
    with PostgresContainer("postgres:16-alpine") as postgres:
        yield postgres


@pytest.fixture
async def db_pool(postgres_container: PostgresContainer) -> AsyncIterator[DatabasePool]:
    """Create database pool, migrate, and start from empty tables."""
    pool = DatabasePool()
    await pool.connect(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database=postgres_container.dbname,
        user=postgres_container.username,
        password=postgres_container.password,
    )

    await apply_migrations(pool.get_pool())
    async with pool.get_pool().acquire() as conn:
        await conn.execute(
            "TRUNCATE bgp_peer_address_families, bgp_peers, device_vrf_contexts, devices "
            "RESTART IDENTITY CASCADE"
        )

    yield pool
    await pool.close()


@pytest.fixture
async def store(db_pool: DatabasePool) -> BgpStore:
    return BgpStore(db_pool.get_pool())


async def add_device(
    store: BgpStore,
    hostname: str,
    os: str = "ios",
    os_group: str | None = "cisco",
    contexts: tuple[str, ...] = (),
    disabled: bool = False,
) -> int:
    async with store.pool.acquire() as conn:
        device_id = await conn.fetchval(
            """
            INSERT INTO devices (hostname, os, os_group, disabled)
            VALUES ($1, $2, $3, $4)
            RETURNING device_id
            """,
            hostname,
            os,
            os_group,
            disabled,
        )
        for name in contexts:
            await conn.execute(
                "INSERT INTO device_vrf_contexts (device_id, context_name) VALUES ($1, $2)",
                device_id,
                name,
            )
    return device_id


class TestMigrations:
    """Test migrations against a real database."""

    @pytest.mark.asyncio
    async def test_reapplying_is_noop(self, db_pool: DatabasePool) -> None:
        assert await MigrationRunner(db_pool.get_pool()).apply_migrations() == 0


class TestDevices:
    """Test device inventory access."""

    @pytest.mark.asyncio
    async def test_fetch_devices_with_contexts(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1", contexts=("red", "blue"))
        r2 = await add_device(store, "r2", os="junos", os_group=None)
        await add_device(store, "r3", disabled=True)

        devices = await store.fetch_devices()

        assert [d.device_id for d in devices] == [r1, r2]
        assert [c.name for c in devices[0].vrf_contexts] == ["blue", "red"]
        assert devices[1].vrf_contexts == []
        assert devices[1].contexts()[0].name is None

    @pytest.mark.asyncio
    async def test_fetch_devices_filtered(self, store: BgpStore) -> None:
        await add_device(store, "r1")
        r2 = await add_device(store, "r2")

        devices = await store.fetch_devices([r2])

        assert [d.hostname for d in devices] == ["r2"]

    @pytest.mark.asyncio
    async def test_fetch_vrf_contexts(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1", contexts=("blue",))

        assert [c.name for c in await store.fetch_vrf_contexts(r1)] == ["blue"]

    @pytest.mark.asyncio
    async def test_update_local_as(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1")

        await store.update_device_local_as(r1, 4200000001)
        assert (await store.fetch_devices([r1]))[0].bgp_local_as == 4200000001

        await store.update_device_local_as(r1, None)
        assert (await store.fetch_devices([r1]))[0].bgp_local_as is None


class TestPeers:
    """Test BGP peer operations."""

    @pytest.mark.asyncio
    async def test_upsert_peer(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1")
        peer = DiscoveredPeer(ip="10.0.0.1", remote_as=65010, astext="")

        assert await store.upsert_peer(r1, None, peer) is True
        assert await store.upsert_peer(r1, None, peer.model_copy(update={"remote_as": 65011})) is False

        persisted = await store.fetch_peers(r1, None)
        assert [(p.peer_ip, p.remote_as, p.context_name) for p in persisted] == [
            ("10.0.0.1", 65011, None)
        ]
        assert persisted[0].last_seen >= persisted[0].first_seen

    @pytest.mark.asyncio
    async def test_contexts_are_separate(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1", contexts=("blue",))
        peer = DiscoveredPeer(ip="2001:db8::1", remote_as=65010)

        assert await store.upsert_peer(r1, None, peer) is True
        assert await store.upsert_peer(r1, "blue", peer) is True

        assert [p.peer_ip for p in await store.fetch_peers(r1, None)] == ["2001:db8::1"]
        assert [p.peer_ip for p in await store.fetch_peers(r1, "blue")] == ["2001:db8::1"]

    @pytest.mark.asyncio
    async def test_delete_peer_removes_families(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1")
        await store.upsert_peer(r1, None, DiscoveredPeer(ip="10.0.0.1", remote_as=65010))
        await store.upsert_address_family(r1, None, "10.0.0.1", "ipv4", "unicast")
        peer_id = (await store.fetch_peers(r1, None))[0].peer_id

        await store.delete_peer(peer_id)

        assert await store.fetch_peers(r1, None) == []
        assert await store.fetch_address_families(r1, None) == []


class TestAddressFamilies:
    """Test address family membership operations."""

    @pytest.mark.asyncio
    async def test_upsert_address_family(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1")
        await store.upsert_peer(r1, None, DiscoveredPeer(ip="10.0.0.1", remote_as=65010))

        assert await store.upsert_address_family(r1, None, "10.0.0.1", "ipv4", "unicast") is True
        assert await store.upsert_address_family(r1, None, "10.0.0.1", "ipv4", "unicast") is False
        assert await store.upsert_address_family(r1, None, "10.0.0.9", "ipv4", "unicast") is False

        families = await store.fetch_address_families(r1, None)
        assert [f.key for f in families] == [("10.0.0.1", "ipv4", "unicast")]

    @pytest.mark.asyncio
    async def test_delete_address_family(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1", contexts=("blue",))
        for context_name in (None, "blue"):
            await store.upsert_peer(
                r1, context_name, DiscoveredPeer(ip="10.0.0.1", remote_as=65010)
            )
            await store.upsert_address_family(r1, context_name, "10.0.0.1", "ipv6", "unicast")

        await store.delete_address_family(r1, None, "10.0.0.1", "ipv6", "unicast")

        assert await store.fetch_address_families(r1, None) == []
        assert len(await store.fetch_address_families(r1, "blue")) == 1


class TestReconcile:
    """Test reconciliation end to end against PostgreSQL."""

    @pytest.mark.asyncio
    async def test_replaced_peer(self, store: BgpStore) -> None:
        r1 = await add_device(store, "r1")
        await reconcile(
            store,
            r1,
            None,
            [
                DiscoveredPeer(ip="10.0.0.1", remote_as=100),
                DiscoveredPeer(ip="10.0.0.2", remote_as=200),
            ],
            {"10.0.0.1": {("ipv4", "unicast")}, "10.0.0.2": {("ipv4", "unicast")}},
            ContextStats(device="r1"),
        )

        stats = ContextStats(device="r1")
        await reconcile(
            store,
            r1,
            None,
            [
                DiscoveredPeer(ip="10.0.0.1", remote_as=100),
                DiscoveredPeer(ip="10.0.0.3", remote_as=300),
            ],
            {"10.0.0.1": {("ipv4", "unicast")}, "10.0.0.3": {("ipv6", "unicast")}},
            stats,
        )

        peers = await store.fetch_peers(r1, None)
        families = await store.fetch_address_families(r1, None)
        assert sorted((p.peer_ip, p.remote_as) for p in peers) == [
            ("10.0.0.1", 100),
            ("10.0.0.3", 300),
        ]
        assert [f.key for f in families] == [
            ("10.0.0.1", "ipv4", "unicast"),
            ("10.0.0.3", "ipv6", "unicast"),
        ]
        assert (stats.peers_added, stats.peers_updated, stats.peers_removed) == (1, 1, 1)
