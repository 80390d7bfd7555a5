"""
Shared configuration management for the Brokerage Bridge.
"""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PLACEHOLDER_CLIENT_ID = "brokerage-test-client-id"
PLACEHOLDER_CONSUMER_KEY = "brokerage-test-consumer-key"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BRIDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Process
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)


class BridgeConfig(BaseConfig):
    """Bridge-specific configuration."""

    service_name: str = "bridge"

    # Upstream brokerage partner credentials
    brokerage_client_id: Optional[str] = Field(default=None)
    brokerage_consumer_key: Optional[str] = Field(default=None)
    brokerage_base_url: str = Field(default="https://api.snaptrade.com/api/v1")
    upstream_timeout_seconds: float = Field(default=30.0, gt=0)

    # Caller authentication
    shared_secret: Optional[str] = Field(default=None)
    shared_secret_header: str = Field(default="X-Coinage-TS-Secret", min_length=1)

    # Order placement admission control
    placement_min_interval_ms: int = Field(default=1000, gt=0)
    throttle_max_keys: int = Field(default=10000, gt=0)

    @field_validator("brokerage_base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("brokerage_base_url must be a valid URL")
        return value.rstrip("/")

    @model_validator(mode="after")
    def _require_credentials(self) -> "BridgeConfig":
        # Production must crash on missing partner credentials; every other
        # environment boots with deterministic placeholders.
        if self.env.lower() == "production":
            missing = [
                name for name in ("brokerage_client_id", "brokerage_consumer_key")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"{', '.join(missing)} required in production")
        else:
            if not self.brokerage_client_id:
                self.brokerage_client_id = PLACEHOLDER_CLIENT_ID
            if not self.brokerage_consumer_key:
                self.brokerage_consumer_key = PLACEHOLDER_CONSUMER_KEY
        return self


def get_config(**overrides) -> BridgeConfig:
    """Get configuration for the bridge service."""
    return BridgeConfig(**overrides)
