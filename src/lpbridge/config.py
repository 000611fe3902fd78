"""Application configuration using pydantic-settings.

One process serves one bridge domain; the fee schedule and liquidity
source are fixed per deployment.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/lpbridge.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    dry_run: bool = Field(
        default=True, description="Use in-process transport, custody and swap venue"
    )

    # ======================
    # Admin
    # ======================
    admin_token: str = Field(default="", description="Admin API token for protected endpoints")
    owner: str = Field(default="owner", description="Initial pool administrator identity")

    # ======================
    # Domain
    # ======================
    domain_id: int = Field(default=40161, description="Identifier of this bridge domain")
    asset_symbol: str = Field(default="USDT", description="Bridged asset symbol")
    token_decimals: int = Field(default=6, description="Decimals of the bridged asset")

    # ======================
    # Fee schedule
    # ======================
    lp_fee_bps: int = Field(default=5, description="LP fee in basis points (0.05%)")
    protocol_fee_bps: int = Field(default=25, description="Protocol fee in basis points (0.25%)")
    fee_cap: int = Field(
        default=5_000_000, description="Absolute fee cap in base units (5 tokens at 6 decimals)"
    )

    # ======================
    # Messaging
    # ======================
    default_receive_gas: int = Field(
        default=200_000, description="Gas for the destination receive call in enforced options"
    )

    # ======================
    # Destination liquidity source
    # ======================
    liquidity_source: str = Field(
        default="pool", description="Destination liquidity source: 'pool' or 'swap'"
    )
    native_symbol: str = Field(default="ETH", description="Native reserve asset symbol")
    native_decimals: int = Field(default=18, description="Decimals of the native reserve asset")
    slippage_buffer_bps: int = Field(
        default=500, description="Slippage buffer applied to swap estimates (5%)"
    )
    native_price: str = Field(
        default="3900", description="Dry-run price of one native unit in the bridged asset"
    )
    coingecko_api_url: str = Field(
        default="https://api.coingecko.com/api/v3", description="CoinGecko API URL"
    )
    coingecko_native_id: str = Field(default="ethereum", description="CoinGecko id of the native asset")

    # ======================
    # Concurrency
    # ======================
    lock_timeout: Optional[float] = Field(
        default=30.0, description="Seconds to wait for the domain execution lock"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "admin_token": "***" if self.admin_token else "(not set)",
            "domain": {
                "id": self.domain_id,
                "asset": self.asset_symbol,
                "decimals": self.token_decimals,
                "owner": self.owner,
            },
            "fees": {
                "lp_bps": self.lp_fee_bps,
                "protocol_bps": self.protocol_fee_bps,
                "cap": self.fee_cap,
            },
            "liquidity_source": {
                "type": self.liquidity_source,
                "native": self.native_symbol,
                "slippage_buffer_bps": self.slippage_buffer_bps,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
