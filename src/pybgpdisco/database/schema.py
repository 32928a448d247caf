"""Database schema definitions and table structures."""

from typing import Final

# Table names
TABLE_DEVICES: Final[str] = "devices"
TABLE_DEVICE_VRF_CONTEXTS: Final[str] = "device_vrf_contexts"
TABLE_BGP_PEERS: Final[str] = "bgp_peers"
TABLE_BGP_PEER_ADDRESS_FAMILIES: Final[str] = "bgp_peer_address_families"
TABLE_SCHEMA_MIGRATIONS: Final[str] = "schema_migrations"
