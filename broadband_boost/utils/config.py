"""
BroadbandBoost - Configuration Management

This module handles loading and validating configuration from environment variables
and configuration files.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


ACCESS_COMPARISON_STRICT = "strict"
ACCESS_COMPARISON_INCLUSIVE = "inclusive"


@dataclass
class EligibilityPolicy:
    """
    Policy constants applied by the eligibility predicate.

    Every threshold the engine compares against lives here so that either
    observed variant of the business rules can be selected without code changes.
    """
    # Hard usage floor (customer avg_usage_percentage must be strictly above)
    usage_floor_pct: float = 50.0

    # Uplink saturation ceiling (uplink avg utilization must be strictly below)
    uplink_ceiling_pct: float = 91.0
    enforce_uplink_ceiling: bool = True

    # Cooldowns
    upgrade_cooldown_months: int = 6
    promo_cooldown_months: int = 2

    supported_technologies: Tuple[str, ...] = ("XGS-PON", "25XGS-PON")
    active_status: str = "Active"

    # Access rollup vs standard: "strict" (<) or "inclusive" (<=)
    access_comparison: str = ACCESS_COMPARISON_STRICT

    def __post_init__(self):
        """Validate policy values."""
        if self.access_comparison not in (ACCESS_COMPARISON_STRICT, ACCESS_COMPARISON_INCLUSIVE):
            raise ValueError(
                f"access_comparison must be '{ACCESS_COMPARISON_STRICT}' or "
                f"'{ACCESS_COMPARISON_INCLUSIVE}', got '{self.access_comparison}'"
            )
        if self.upgrade_cooldown_months < 0 or self.promo_cooldown_months < 0:
            raise ValueError("Cooldown months must not be negative")
        self.supported_technologies = tuple(self.supported_technologies)


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: str
    database: str = "BROADBAND"
    schema: str = "TEAM_PULSE_NEST"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


@dataclass
class OperationalConfig:
    """Configuration for operational parameters."""
    # Caller-imposed timeout for each external data fetch
    fetch_timeout_seconds: float = 30.0

    # Rollups fan out to threads above this many devices
    parallel_threshold: int = 10
    max_workers: int = field(default_factory=lambda: min(os.cpu_count() or 4, 8))


@dataclass
class Config:
    """
    Main configuration class that aggregates all configuration sections.

    Loads configuration from environment variables with .env file support.
    Snowflake settings are optional and only loaded when SNF_ACCOUNT is set.
    """
    policy: EligibilityPolicy = field(default_factory=EligibilityPolicy)
    operational: OperationalConfig = field(default_factory=OperationalConfig)
    snowflake: Optional[SnowflakeConfig] = None

    # Paths
    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_dir: Path = field(default_factory=lambda: Path("data/logs"))

    def __post_init__(self):
        """Load configuration from environment after initialization."""
        # Load .env file if it exists
        env_file = Path(".env")
        if env_file.exists():
            load_dotenv(env_file)

        # Load eligibility policy
        self.policy = EligibilityPolicy(
            usage_floor_pct=float(os.getenv("USAGE_FLOOR_PCT", "50")),
            uplink_ceiling_pct=float(os.getenv("UPLINK_CEILING_PCT", "91")),
            enforce_uplink_ceiling=self._get_bool_env("ENFORCE_UPLINK_CEILING", True),
            upgrade_cooldown_months=int(os.getenv("UPGRADE_COOLDOWN_MONTHS", "6")),
            promo_cooldown_months=int(os.getenv("PROMO_COOLDOWN_MONTHS", "2")),
            supported_technologies=self._get_list_env(
                "SUPPORTED_TECHNOLOGIES", ("XGS-PON", "25XGS-PON")
            ),
            active_status=os.getenv("ACTIVE_ACCOUNT_STATUS", "Active"),
            access_comparison=os.getenv("ACCESS_COMPARISON", ACCESS_COMPARISON_STRICT)
        )

        # Load operational configuration
        self.operational = OperationalConfig(
            fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "30")),
            parallel_threshold=int(os.getenv("PARALLEL_THRESHOLD", "10")),
            max_workers=int(os.getenv("MAX_WORKERS", str(min(os.cpu_count() or 4, 8))))
        )

        # Snowflake is only needed when the warehouse repository is used
        if os.getenv("SNF_ACCOUNT"):
            self.snowflake = self._load_snowflake_config()

        self.data_dir = Path(os.getenv("DATA_DIR", str(self.data_dir)))
        self.log_dir = Path(os.getenv("LOG_DIR", str(self.log_dir)))

    def require_snowflake(self) -> SnowflakeConfig:
        """
        Get Snowflake configuration, loading it from the environment if needed.

        Returns:
            SnowflakeConfig instance

        Raises:
            ValueError: If a required Snowflake variable is not set
        """
        if self.snowflake is None:
            self.snowflake = self._load_snowflake_config()
        return self.snowflake

    def _load_snowflake_config(self) -> SnowflakeConfig:
        """Build Snowflake configuration from environment variables."""
        return SnowflakeConfig(
            account=self._get_required_env("SNF_ACCOUNT"),
            user=self._get_required_env("SNF_USER"),
            password=self._get_required_env("SNF_PASSWORD"),
            database=os.getenv("SNF_DATABASE", "BROADBAND"),
            schema=os.getenv("SNF_SCHEMA", "TEAM_PULSE_NEST"),
            warehouse=os.getenv("SNF_WAREHOUSE", "COMPUTE_WH"),
            role=os.getenv("SNF_ROLE")
        )

    def _get_required_env(self, key: str) -> str:
        """
        Get a required environment variable.

        Args:
            key: Environment variable name

        Returns:
            Environment variable value

        Raises:
            ValueError: If the environment variable is not set
        """
        value = os.getenv(key)
        if value is None:
            raise ValueError(f"Required environment variable {key} is not set")
        return value

    @staticmethod
    def _get_bool_env(key: str, default: bool) -> bool:
        """Parse a boolean environment variable (true/false, 1/0, yes/no)."""
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_list_env(key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
        """Parse a comma-separated environment variable."""
        value = os.getenv(key)
        if not value:
            return default
        return tuple(item.strip() for item in value.split(",") if item.strip())
