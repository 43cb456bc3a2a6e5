"""Configuration management for the English auction simulator."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# The .env file lives at the project root, next to setup.py
PROJECT_DIR = Path(__file__).parent.parent
ENV_FILE_PATH = PROJECT_DIR / ".env"
SCENARIO_DIR = Path(__file__).parent / "simulation" / "scenarios"


class ChainConfig(BaseSettings):
    """In-process chain configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHAIN_",
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    genesis_time: Optional[int] = Field(
        default=None,
        description="Unix timestamp the manual clock starts at (wall clock if unset)"
    )
    genesis_balance_eth: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Default ETH balance for scenario accounts without an explicit balance"
    )


class AuctionConfig(BaseSettings):
    """Main configuration class for the auction simulator."""

    model_config = SettingsConfigDict(
        env_prefix="AUCTION_",
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Auction defaults
    default_duration_minutes: int = Field(default=60, gt=0, description="Auction duration when a scenario omits it")

    # Chain configuration
    chain: ChainConfig = Field(default_factory=ChainConfig)

    # Scenario files
    scenario_dir: Path = Field(default=SCENARIO_DIR, description="Directory with bundled YAML scenarios")

    # Logging / environment
    log_level: str = Field(default="INFO", description="Root log level for the scenario runner")
    environment: str = Field(default="development", description="Environment (development, production)")
    debug: bool = Field(default=True, description="Debug mode")

    @classmethod
    def from_env(cls) -> "AuctionConfig":
        """Create configuration from environment variables."""
        return cls()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def display(self):
        """Display current configuration."""
        print("Configuration:")
        print(f"  Default duration: {self.default_duration_minutes} min")
        print(f"  Genesis time: {self.chain.genesis_time or 'wall clock'}")
        print(f"  Genesis balance: {self.chain.genesis_balance_eth} ETH")
        print(f"  Scenario dir: {self.scenario_dir}")
        print(f"  Log level: {self.log_level}")
        print(f"  Environment: {self.environment}")
        print(f"  Debug: {self.debug}")


# Global configuration instance
config = AuctionConfig.from_env()
