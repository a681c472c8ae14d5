"""
Edge gateway settings loaded from environment variables.

Uses Pydantic Settings for type-safe configuration with validation.
All settings can be overridden via environment variables or .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Edge gateway configuration.

    Read once when the gateway (or CLI) builds its restorer and provider;
    changes require a restart.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Client IP Restoration
    client_ip_restore_enabled: bool = Field(
        default=False,
        description="Replace the peer address with the proxy's client IP header when trusted",
    )
    client_ip_header: str = Field(
        default="CF-Connecting-IP",
        min_length=1,
        description="Header carrying the original client IP, set by the trusted proxy",
    )

    # Trusted Range Sources
    trusted_ranges_ipv4_url: str = Field(
        default="https://www.cloudflare.com/ips-v4",
        description="URL of the newline-delimited IPv4 prefix listing",
    )
    trusted_ranges_ipv6_url: str = Field(
        default="https://www.cloudflare.com/ips-v6",
        description="URL of the newline-delimited IPv6 prefix listing",
    )
    range_fetch_timeout_seconds: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        description="Timeout for each listing fetch on a cache miss",
    )

    # Range Cache
    range_cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Where the trusted range set is cached (memory = per process)",
    )
    range_cache_key: str = Field(
        default="trusted_ranges:cloudflare",
        description="Cache key holding the trusted range set",
    )

    # Redis Configuration (range_cache_backend=redis)
    redis_host: str = Field(default="localhost", description="Redis hostname")
    redis_port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    redis_db: int = Field(default=0, ge=0, le=15, description="Redis database number")
    redis_password: SecretStr = Field(
        default=SecretStr(""),
        description="Redis password (empty for none)",
    )

    # Logging Configuration
    service_name: str = Field(default="edge_gateway", description="Service name in log records")
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Example:
        >>> settings = get_settings()
        >>> settings.client_ip_header
        'CF-Connecting-IP'
    """
    return Settings()
