"""Load ledger configuration from YAML, layered over the bundled defaults.

A user file only needs the sections it changes: mappings are merged key by
key onto ``defaults.yaml``, while lists (``pools``, ``minters``) replace the
default list as a whole.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .schema import LedgerConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with overrides applied; nested mappings merge recursively."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_overrides(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(yaml_path: Optional[Union[str, Path]] = None) -> LedgerConfig:
    """
    Load configuration, merging a user file onto the defaults.

    Args:
        yaml_path: Path to a (possibly partial) YAML file; None loads the defaults

    Returns:
        Validated LedgerConfig
    """
    data = _read_yaml(DEFAULTS_PATH)
    if yaml_path is not None:
        data = merge_overrides(data, _read_yaml(yaml_path))
    return LedgerConfig.from_dict(data)


def config_from_dict(data: Dict[str, Any], merge_defaults: bool = False) -> LedgerConfig:
    """Validate a config dictionary, optionally layered over the defaults."""
    if merge_defaults:
        data = merge_overrides(_read_yaml(DEFAULTS_PATH), data)
    return LedgerConfig.from_dict(data)
