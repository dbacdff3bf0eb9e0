"""Ledger configuration."""

from .loader import config_from_dict, load_config
from .schema import LedgerConfig

__all__ = ["LedgerConfig", "config_from_dict", "load_config"]
