"""Unit tests for peer record normalization."""

import pytest
from fakes import FakeResolver, inet_index, ipv4_index

from pybgpdisco.discovery.peers import as_number, build_peers, resolve_astext
from pybgpdisco.discovery.strategies import CiscoStrategy, GenericStrategy
from pybgpdisco.models.bgp_peer import DiscoveredPeer


class TestAsNumber:
    """Test AS value coercion."""

    def test_numeric_values(self) -> None:
        assert as_number(65001) == 65001
        assert as_number(b"65002") == 65002
        assert as_number(" 4200000001 ") == 4200000001

    def test_non_numeric_values(self) -> None:
        assert as_number(None) is None
        assert as_number(b"") is None
        assert as_number("AS65001") is None
        assert as_number(True) is None


class TestBuildPeers:
    """Test building peers from walk rows."""

    def test_ipv4_index_rows(self) -> None:
        rows = [
            (ipv4_index("10.0.0.1"), 100),
            (ipv4_index("10.0.0.2"), 200),
        ]

        peers = build_peers(rows, GenericStrategy().decode_peer_index)

        assert peers == [
            DiscoveredPeer(ip="10.0.0.1", remote_as=100),
            DiscoveredPeer(ip="10.0.0.2", remote_as=200),
        ]

    def test_inet_index_rows_with_ipv6(self) -> None:
        rows = [
            (inet_index("10.0.0.1"), 100),
            (inet_index("2001:db8::2"), 200),
        ]

        peers = build_peers(rows, CiscoStrategy().decode_peer_index)

        assert [p.ip for p in peers] == ["10.0.0.1", "2001:db8::2"]

    def test_non_numeric_as_is_skipped(self) -> None:
        rows = [
            (ipv4_index("10.0.0.1"), b"not-an-as"),
            (ipv4_index("10.0.0.2"), 200),
        ]

        peers = build_peers(rows, GenericStrategy().decode_peer_index)

        assert [p.ip for p in peers] == ["10.0.0.2"]

    def test_unparsable_index_is_skipped(self) -> None:
        rows = [
            ((10, 0, 0), 100),
            (ipv4_index("10.0.0.2"), 200),
        ]

        peers = build_peers(rows, GenericStrategy().decode_peer_index)

        assert [p.ip for p in peers] == ["10.0.0.2"]

    def test_unspecified_address_is_skipped(self) -> None:
        rows = [
            (ipv4_index("0.0.0.0"), 100),
            (ipv4_index("10.0.0.2"), 200),
        ]

        peers = build_peers(rows, GenericStrategy().decode_peer_index)

        assert [p.ip for p in peers] == ["10.0.0.2"]

    def test_first_row_wins_for_duplicate_address(self) -> None:
        rows = [
            (ipv4_index("10.0.0.1"), 100),
            (ipv4_index("10.0.0.1"), 999),
        ]

        peers = build_peers(rows, GenericStrategy().decode_peer_index)

        assert peers == [DiscoveredPeer(ip="10.0.0.1", remote_as=100)]

    def test_no_rows(self) -> None:
        assert build_peers([], GenericStrategy().decode_peer_index) == []


class TestResolveAstext:
    """Test AS text attachment."""

    @pytest.mark.asyncio
    async def test_attaches_astext(self) -> None:
        resolver = FakeResolver({15169: "GOOGLE, US"})
        peers = [
            DiscoveredPeer(ip="10.0.0.1", remote_as=15169),
            DiscoveredPeer(ip="10.0.0.2", remote_as=64512),
        ]

        resolved = await resolve_astext(peers, resolver)

        assert [p.astext for p in resolved] == ["GOOGLE, US", ""]
        assert peers[0].astext == ""
