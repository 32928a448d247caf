"""Unit tests for AS text resolution."""

from unittest import mock

import dns.resolver
import pytest

from pybgpdisco.discovery.astext import AsTextResolver, is_private_asn, parse_cymru_txt


def txt_answer(text: str) -> list[mock.MagicMock]:
    """Fake dnspython TXT answer with one record."""
    rdata = mock.MagicMock()
    rdata.strings = [text.encode()]
    return [rdata]


class TestHelpers:
    """Test ASN classification and TXT parsing."""

    def test_private_asns(self) -> None:
        assert is_private_asn(0)
        assert is_private_asn(64512)
        assert is_private_asn(65535)
        assert is_private_asn(4200000000)

    def test_public_asns(self) -> None:
        assert not is_private_asn(13335)
        assert not is_private_asn(4200000000 - 1)

    def test_parse_cymru_txt(self) -> None:
        txt = '"13335 | US | arin | 2010-07-14 | CLOUDFLARENET, US"'
        assert parse_cymru_txt(txt) == "CLOUDFLARENET, US"

    def test_parse_cymru_txt_malformed(self) -> None:
        assert parse_cymru_txt("13335 | US") == ""


class TestAsTextResolver:
    """Test the lookup order and caching."""

    @pytest.mark.asyncio
    async def test_override_wins(self) -> None:
        dns_resolver = mock.MagicMock()
        dns_resolver.resolve = mock.AsyncMock()
        resolver = AsTextResolver(overrides={65001: "LAB"}, resolver=dns_resolver)

        assert await resolver.resolve(65001) == "LAB"
        dns_resolver.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_private_asn_is_not_looked_up(self) -> None:
        dns_resolver = mock.MagicMock()
        dns_resolver.resolve = mock.AsyncMock()
        resolver = AsTextResolver(overrides={}, resolver=dns_resolver)

        assert await resolver.resolve(64600) == ""
        dns_resolver.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_dns_lookup_is_cached(self) -> None:
        dns_resolver = mock.MagicMock()
        dns_resolver.resolve = mock.AsyncMock(
            return_value=txt_answer("15169 | US | arin | 2000-03-30 | GOOGLE, US")
        )
        resolver = AsTextResolver(
            overrides={}, zone="asn.cymru.com", timeout=1.0, resolver=dns_resolver
        )

        assert await resolver.resolve(15169) == "GOOGLE, US"
        assert await resolver.resolve(15169) == "GOOGLE, US"

        dns_resolver.resolve.assert_awaited_once_with(
            "AS15169.asn.cymru.com", "TXT", lifetime=1.0
        )

    @pytest.mark.asyncio
    async def test_failed_lookup_is_not_cached(self) -> None:
        dns_resolver = mock.MagicMock()
        dns_resolver.resolve = mock.AsyncMock(side_effect=dns.resolver.NXDOMAIN())
        resolver = AsTextResolver(overrides={}, resolver=dns_resolver)

        assert await resolver.resolve(13335) == ""
        assert await resolver.resolve(13335) == ""

        assert dns_resolver.resolve.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_dns_error_resolves_empty(self) -> None:
        dns_resolver = mock.MagicMock()
        dns_resolver.resolve = mock.AsyncMock(side_effect=dns.resolver.YXDOMAIN())
        resolver = AsTextResolver(overrides={}, resolver=dns_resolver)

        assert await resolver.resolve(13335) == ""

    @pytest.mark.asyncio
    async def test_missing_resolver_configuration_resolves_empty(self) -> None:
        resolver = AsTextResolver(overrides={})

        with mock.patch(
            "pybgpdisco.discovery.astext.dns.asyncresolver.Resolver",
            side_effect=dns.resolver.NoResolverConfiguration(),
        ):
            assert await resolver.resolve(13335) == ""
