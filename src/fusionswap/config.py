"""Application configuration using pydantic-settings.

Timelock durations are protocol constants per swap direction: source-chain
escrows come from FusionOrder fills, destination-chain escrows from
DutchAuction fills.
"""

from functools import lru_cache

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
        default="sqlite+aiosqlite:///./data/fusionswap.db",
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
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # Assets
    # ======================
    safety_deposit_asset: str = Field(
        default="NATIVE", description="Asset used for safety deposits"
    )

    # ======================
    # Timelocks (seconds)
    # ======================
    max_timelock_duration: int = Field(
        default=30 * 24 * 3600, description="Upper bound accepted for any single phase"
    )

    src_finality_duration: int = Field(default=12, ge=0)
    src_exclusive_withdrawal_duration: int = Field(default=120, ge=0)
    src_public_withdrawal_duration: int = Field(default=100, ge=0)
    src_private_cancellation_duration: int = Field(default=100, ge=0)

    dst_finality_duration: int = Field(default=12, ge=0)
    dst_exclusive_withdrawal_duration: int = Field(default=100, ge=0)
    dst_public_withdrawal_duration: int = Field(default=100, ge=0)
    dst_private_cancellation_duration: int = Field(default=100, ge=0)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def source_durations(self) -> tuple[int, int, int, int]:
        """Timelock durations for escrows created from FusionOrder fills."""
        return (
            self.src_finality_duration,
            self.src_exclusive_withdrawal_duration,
            self.src_public_withdrawal_duration,
            self.src_private_cancellation_duration,
        )

    @property
    def destination_durations(self) -> tuple[int, int, int, int]:
        """Timelock durations for escrows created from DutchAuction fills."""
        return (
            self.dst_finality_duration,
            self.dst_exclusive_withdrawal_duration,
            self.dst_public_withdrawal_duration,
            self.dst_private_cancellation_duration,
        )

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "safety_deposit_asset": self.safety_deposit_asset,
            "timelocks": {
                "source": list(self.source_durations),
                "destination": list(self.destination_durations),
                "max_duration": self.max_timelock_duration,
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
