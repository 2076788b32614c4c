"""Configuration models for versemint."""

import os
import stat
from pathlib import Path

from pydantic import BaseModel, Field, HttpUrl, field_validator

from versemint.models.deployments import ADDRESS_PATTERN


class LedgerConfig(BaseModel):
    """Configuration for the ledger gateway connection."""

    endpoint: HttpUrl = Field(
        ...,
        description="JSON-RPC endpoint of the ledger gateway"
    )

    network: str = Field(
        default="localhost",
        min_length=1,
        description="Network name, selects deployments/<network>.json"
    )

    time_travel: bool = Field(
        default=False,
        description="Advance the test-network clock instead of sleeping out the commitment age"
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds"
    )

    model_config = {"frozen": True}


class MinterConfig(BaseModel):
    """Account that commits and mints."""

    address: str = Field(..., description="0x-prefixed 20-byte submitter address")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not ADDRESS_PATTERN.match(v):
            raise ValueError(
                f"Minter address is not a 20-byte hex address: {v}\n"
                f"Expected something like 0x5FbDB2315678afecb367f032d93F642f64180aa3"
            )
        return v

    model_config = {"frozen": True}


class DeploymentsConfig(BaseModel):
    """Where deployment registry files live."""

    directory: str = Field(
        default="deployments",
        description="Directory containing <network>.json registry files"
    )

    def registry_path(self, network: str) -> Path:
        return Path(self.directory).expanduser() / f"{network}.json"

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for versemint."""

    ledger: LedgerConfig = Field(..., description="Ledger gateway settings")
    minter: MinterConfig = Field(..., description="Submitting account")
    deployments: DeploymentsConfig = Field(
        default_factory=DeploymentsConfig,
        description="Deployment registry settings"
    )

    model_config = {"frozen": True}


def check_permissions(path: Path) -> None:
    """Raise PermissionError if path is accessible by group or others."""
    mode = os.stat(path).st_mode
    if mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise PermissionError(
            f"Config file has overly permissive permissions: {oct(mode)}\n"
            f"Run: chmod 600 {path}"
        )
