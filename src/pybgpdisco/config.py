"""Application configuration using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discovery
    enable_bgp: bool = Field(default=True, description="Run BGP peer discovery")
    discovery_concurrency: int = Field(
        default=4, ge=1, le=256, description="Devices discovered in parallel"
    )
    device_ids: list[int] | None = Field(
        default=None, description="Restrict discovery to these device IDs"
    )

    # SNMP defaults (devices may override)
    snmp_community: str = Field(default="public", description="SNMP v2c community")
    snmp_version: str = Field(default="v2c", description="SNMP version (v2c, v3)")
    snmp_port: int = Field(default=161, ge=1, le=65535, description="SNMP port")
    snmp_timeout: float = Field(
        default=5.0, gt=0.0, le=120.0, description="SNMP request timeout in seconds"
    )
    snmp_retries: int = Field(default=2, ge=0, le=10, description="SNMP retries")

    # AS text lookup
    astext: dict[int, str] = Field(
        default_factory=dict, description="Static ASN to AS text overrides"
    )
    astext_dns_zone: str = Field(
        default="asn.cymru.com", description="DNS zone queried for AS text TXT records"
    )
    astext_timeout: float = Field(
        default=2.0, gt=0.0, le=30.0, description="AS text DNS lookup timeout"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Database
    db_host: str = Field(default="localhost", description="Database host")
    db_port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    db_user: str = Field(default="bgpdisco", description="Database user")
    db_password: str = Field(default="", description="Database password")
    db_name: str = Field(default="bgpdisco", description="Database name")
    db_pool_min_size: int = Field(
        default=2, ge=1, le=100, description="Database pool minimum size"
    )
    db_pool_max_size: int = Field(
        default=10, ge=1, le=100, description="Database pool maximum size"
    )

    # Sentry (optional)
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN (leave empty to disable)"
    )
    sentry_environment: str = Field(
        default="development", description="Sentry environment"
    )
    sentry_traces_sample_rate: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Sentry traces sample rate"
    )

    @property
    def database_url(self) -> str:
        """Construct PostgreSQL connection URL."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"


# Global settings instance
settings = Settings()
