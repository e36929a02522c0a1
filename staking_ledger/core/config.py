"""Ledger configuration."""
import os
import platform
from pathlib import Path
from typing import Optional
import yaml
from loguru import logger
from pydantic import BaseModel, Field, model_validator

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def get_data_dir() -> Path:
    """Get the directory holding records and balances."""
    override = os.getenv("STAKING_LEDGER_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        return Path(os.getenv('APPDATA', Path.home())) / 'staking-ledger'
    elif platform.system() == 'Darwin':  # macOS
        return Path.home() / 'Library' / 'Application Support' / 'staking-ledger'
    else:  # Linux and others
        return Path.home() / '.config' / 'staking-ledger'


class RewardConfig(BaseModel):
    """Simple-interest reward rate and claim penalty."""
    annual_rate_numerator: int = Field(default=5, ge=0)
    annual_rate_denominator: int = Field(default=100, gt=0)
    seconds_per_year: int = Field(default=SECONDS_PER_YEAR, gt=0)
    # Fraction of the reward paid out when the penalty applies (9/10 = 10% forfeit)
    penalty_payout_numerator: int = Field(default=9, ge=0)
    penalty_payout_denominator: int = Field(default=10, gt=0)

    @model_validator(mode="after")
    def _payout_not_above_reward(self) -> "RewardConfig":
        if self.penalty_payout_numerator > self.penalty_payout_denominator:
            raise ValueError("penalty payout fraction must not exceed 1")
        return self


class LedgerConfig(BaseModel):
    """Ledger configuration."""
    data_dir: Path = Field(default_factory=get_data_dir)
    custodian_id: str = "custodian"
    log_level: str = "INFO"
    reward: RewardConfig = Field(default_factory=RewardConfig)

    @property
    def records_dir(self) -> Path:
        return self.data_dir / "records"

    @property
    def balances_file(self) -> Path:
        return self.data_dir / "balances.json"


def load_config(config_path: Optional[Path] = None) -> LedgerConfig:
    """Load and validate configuration.

    Args:
        config_path: Path to a YAML configuration file

    Returns:
        Validated configuration, or the defaults if the file cannot be used
    """
    if config_path is None:
        return LedgerConfig()
    try:
        with open(config_path) as f:
            config_dict = yaml.safe_load(f) or {}
        return LedgerConfig(**config_dict)
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        logger.info("Using default configuration")
        return LedgerConfig()
