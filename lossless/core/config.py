"""
Auction house configuration.

Defines the bid economics and operational paths. Values can be overridden
through ``LOSSLESS_*`` variables, read from the process environment or a
``.env`` file.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from lossless.core.errors import InvalidParameter

ENV_PREFIX = "LOSSLESS_"


@dataclass
class AuctionConfig:
    """Auction-wide configuration parameters"""

    # Bid economics
    bonus_percent: int = 10  # Paid to the outbid bidder, as % of the new bid
    min_increment_percent: int = 11  # Required raise over the current bid
    percent_base: int = 100

    # Operational
    log_level: str = "INFO"
    log_to_file: bool = False

    # Paths
    data_dir: Path = Path("data")
    log_dir: Path = Path("logs")
    db_name: str = "auctions.db"

    def __post_init__(self):
        """Reject economics that cannot keep escrow solvent"""
        if self.percent_base <= 0:
            raise InvalidParameter(f"percent_base must be positive, got {self.percent_base}")
        if self.bonus_percent < 0:
            raise InvalidParameter(f"bonus_percent must be non-negative, got {self.bonus_percent}")
        # The increment must pay for the bonus and leave something for the seller
        if self.min_increment_percent <= self.bonus_percent:
            raise InvalidParameter(
                f"min_increment_percent ({self.min_increment_percent}) must exceed "
                f"bonus_percent ({self.bonus_percent})"
            )

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    def ensure_dirs(self) -> None:
        """Create data and log directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_to_file:
            self.log_dir.mkdir(exist_ok=True, parents=True)


def _coerce(name: str, raw: str, default):
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise InvalidParameter(f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}")
    if isinstance(default, Path):
        return Path(raw).expanduser()
    return raw


def load_config(env_file: Optional[str] = None) -> AuctionConfig:
    """
    Load configuration from a .env file and the environment.

    Process environment wins over the file.

    Args:
        env_file: Optional path to a .env file

    Returns:
        AuctionConfig instance
    """
    values = {}
    if env_file:
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ)

    defaults = AuctionConfig()
    overrides = {}
    for f in fields(AuctionConfig):
        raw = values.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is not None:
            overrides[f.name] = _coerce(f.name, raw, getattr(defaults, f.name))

    return AuctionConfig(**overrides)
