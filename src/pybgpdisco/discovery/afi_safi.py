"""AFI/SAFI code decoding per RFC4760 and the IANA registries."""

from enum import IntEnum


class AddressFamilyIdentifier(IntEnum):
    """Address Family Identifier per RFC4760."""

    IPV4 = 1
    IPV6 = 2
    L2VPN = 25


class SubsequentAddressFamilyIdentifier(IntEnum):
    """Subsequent Address Family Identifier per RFC4760."""

    UNICAST = 1
    MULTICAST = 2
    UNICAST_AND_MULTICAST = 3
    LABELED_UNICAST = 4
    MVPN = 5
    VPLS = 65
    EVPN = 70
    VPN = 128
    RTFILTER = 132
    FLOW = 133


AFI_NAMES: dict[AddressFamilyIdentifier, str] = {
    AddressFamilyIdentifier.IPV4: "ipv4",
    AddressFamilyIdentifier.IPV6: "ipv6",
    AddressFamilyIdentifier.L2VPN: "l2vpn",
}

SAFI_NAMES: dict[SubsequentAddressFamilyIdentifier, str] = {
    SubsequentAddressFamilyIdentifier.UNICAST: "unicast",
    SubsequentAddressFamilyIdentifier.MULTICAST: "multicast",
    SubsequentAddressFamilyIdentifier.UNICAST_AND_MULTICAST: "unicastAndMulticast",
    SubsequentAddressFamilyIdentifier.LABELED_UNICAST: "labeledUnicast",
    SubsequentAddressFamilyIdentifier.MVPN: "mvpn",
    SubsequentAddressFamilyIdentifier.VPLS: "vpls",
    SubsequentAddressFamilyIdentifier.EVPN: "evpn",
    SubsequentAddressFamilyIdentifier.VPN: "vpn",
    SubsequentAddressFamilyIdentifier.RTFILTER: "rtfilter",
    SubsequentAddressFamilyIdentifier.FLOW: "flow",
}


def afi_name(code: int) -> str:
    """Name of an AFI code; unknown codes keep their decimal form."""
    try:
        return AFI_NAMES[AddressFamilyIdentifier(code)]
    except ValueError:
        return str(code)


def safi_name(code: int) -> str:
    """Name of a SAFI code; unknown codes keep their decimal form."""
    try:
        return SAFI_NAMES[SubsequentAddressFamilyIdentifier(code)]
    except ValueError:
        return str(code)


def decode_afi_safi(afi: int, safi: int) -> tuple[str, str]:
    """
    Decode a numeric AFI/SAFI pair.

    Args:
        afi: AFI code
        safi: SAFI code

    Returns:
        Tuple of (afi name, safi name), e.g. ("ipv4", "unicast")
    """
    return afi_name(afi), safi_name(safi)


def parse_afi_safi(value: str) -> tuple[int, int]:
    """
    Split an ``"afi.safi"`` key such as ``"1.1"`` into its codes.

    Raises:
        ValueError: If the value is not two dot separated integers
    """
    afi, safi = value.split(".")
    return int(afi), int(safi)
