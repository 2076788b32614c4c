"""Configuration loader with YAML and environment variable support.

Reads ~/.config/versemint/config.yaml and applies VERSEMINT_* overrides.

Environment variables:
- VERSEMINT_LEDGER_ENDPOINT: Override ledger.endpoint
- VERSEMINT_LEDGER_NETWORK: Override ledger.network
- VERSEMINT_LEDGER_TIME_TRAVEL: Override ledger.time_travel ("1"/"true"/"yes")
- VERSEMINT_MINTER_ADDRESS: Override minter.address
- VERSEMINT_DEPLOYMENTS_DIRECTORY: Override deployments.directory
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from versemint.models.config import Config, check_permissions

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "versemint" / "config.yaml"

SECTIONS = ("ledger", "minter", "deployments")


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to config file. If None, uses ~/.config/versemint/config.yaml

    Returns:
        Validated Config object

    Raises:
        FileNotFoundError: If there is neither a config file nor any override
        PermissionError: If the config file is group/world accessible
        ValueError: If the file is not a mapping of sections or the resulting
            configuration is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        check_permissions(config_path)
        with config_path.open() as f:
            data = yaml.safe_load(f)
    else:
        data = None

    data = _normalize(data, config_path)
    data = _apply_env_overrides(data)

    if not data["ledger"] and not data["minter"]:
        raise FileNotFoundError(
            f"Configuration file not found at {config_path} and no VERSEMINT_* environment variables set.\n\n"
            f"Either set environment variables or create the file with the following format:\n\n"
            f"ledger:\n"
            f"  endpoint: http://localhost:8545\n"
            f"  network: localhost\n"
            f"  time_travel: true\n\n"
            f"minter:\n"
            f"  address: 0xYOUR_ADDRESS\n\n"
            f"deployments:\n"
            f"  directory: deployments\n"
        )

    return Config(**data)


def _normalize(data: Any, config_path: Path) -> Dict[str, Any]:
    """Check the YAML document is a mapping of mappings.

    An empty document or an empty section (``ledger:`` with nothing under
    it) counts as not configured.

    Raises:
        ValueError: If the document or one of its sections is not a mapping
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration file {config_path} must contain a mapping, "
            f"got {type(data).__name__}"
        )

    for section in SECTIONS:
        value = data.get(section)
        if value is None:
            data[section] = {}
        elif not isinstance(value, dict):
            raise ValueError(
                f"Section '{section}' in {config_path} must be a mapping, "
                f"got {type(value).__name__}"
            )
    return data


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data.

    Environment variables use the format VERSEMINT_SECTION_KEY, so
    VERSEMINT_LEDGER_ENDPOINT sets data['ledger']['endpoint'].
    """
    if env_endpoint := os.getenv("VERSEMINT_LEDGER_ENDPOINT"):
        data["ledger"]["endpoint"] = env_endpoint

    if env_network := os.getenv("VERSEMINT_LEDGER_NETWORK"):
        data["ledger"]["network"] = env_network

    if env_time_travel := os.getenv("VERSEMINT_LEDGER_TIME_TRAVEL"):
        data["ledger"]["time_travel"] = env_time_travel.lower() in ("1", "true", "yes")

    if env_address := os.getenv("VERSEMINT_MINTER_ADDRESS"):
        data["minter"]["address"] = env_address

    if env_directory := os.getenv("VERSEMINT_DEPLOYMENTS_DIRECTORY"):
        data["deployments"]["directory"] = env_directory

    return data
