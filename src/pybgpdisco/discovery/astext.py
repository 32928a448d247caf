"""AS number to AS name resolution."""

import dns.asyncresolver
import dns.exception
import structlog

from pybgpdisco.config import settings

logger = structlog.get_logger(__name__)

# RFC 6996 private use and RFC 7300 last ASNs
_PRIVATE_RANGES = (
    (0, 0),
    (64512, 65535),
    (4200000000, 4294967295),
)


def is_private_asn(asn: int) -> bool:
    """Check whether an ASN is reserved or private (no public AS name)."""
    return any(low <= asn <= high for low, high in _PRIVATE_RANGES)


def parse_cymru_txt(txt: str) -> str:
    """
    Extract the AS name from a Team Cymru ASN TXT record.

    Format: ``"23028 | US | arin | 2002-01-04 | TEAMCYMRU - SAUNET, US"``

    Returns:
        AS name, or an empty string if the record is malformed
    """
    fields = txt.replace('"', "").split("|")
    if len(fields) < 5:
        return ""
    return fields[-1].strip()


class AsTextResolver:
    """
    Resolve AS names from static overrides, a cache and DNS.

    Lookups query ``AS<asn>.<zone>`` TXT records. Failures are logged
    and resolve to an empty string; only successful lookups are cached.
    """

    def __init__(
        self,
        overrides: dict[int, str] | None = None,
        zone: str | None = None,
        timeout: float | None = None,
        resolver: dns.asyncresolver.Resolver | None = None,
    ) -> None:
        """
        Initialize AS text resolver.

        Args:
            overrides: Static ASN to name map (default: settings.astext)
            zone: DNS zone to query (default: settings.astext_dns_zone)
            timeout: DNS lifetime in seconds (default: settings.astext_timeout)
            resolver: dnspython async resolver (created if not provided)
        """
        self.overrides = overrides if overrides is not None else dict(settings.astext)
        self.zone = zone or settings.astext_dns_zone
        self.timeout = timeout if timeout is not None else settings.astext_timeout
        self._resolver = resolver
        self._cache: dict[int, str] = {}

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver()
        return self._resolver

    async def resolve(self, asn: int) -> str:
        """
        Resolve the name of an AS.

        Args:
            asn: AS number

        Returns:
            AS name, or an empty string if unknown
        """
        if asn in self.overrides:
            return self.overrides[asn]
        if asn in self._cache:
            return self._cache[asn]
        if is_private_asn(asn):
            return ""

        text = await self._lookup(asn)
        if text:
            self._cache[asn] = text
        return text

    async def _lookup(self, asn: int) -> str:
        name = f"AS{asn}.{self.zone}"
        try:
            answer = await self._get_resolver().resolve(name, "TXT", lifetime=self.timeout)
        except dns.exception.DNSException as e:
            logger.warning("astext_lookup_failed", asn=asn, query=name, error=type(e).__name__)
            return ""

        for rdata in answer:
            txt = b"".join(rdata.strings).decode("utf-8", errors="replace")
            return parse_cymru_txt(txt)
        return ""
