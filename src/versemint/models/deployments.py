"""Deployment registry: contract addresses per chain id."""

import json
import re
from pathlib import Path

from pydantic import BaseModel, Field, RootModel, ValidationError, field_validator

from versemint.services.exceptions import DeploymentLookupError, InvalidDeployments

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ContractDeploymentInfo(BaseModel):
    """Where one contract is deployed."""

    address: str

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if not ADDRESS_PATTERN.match(v):
            raise ValueError(f"Not a 20-byte hex address: {v}")
        return v

    model_config = {"frozen": True}


class ChainDeploymentsInfo(BaseModel):
    """Both collection contracts on one chain."""

    phrases: ContractDeploymentInfo = Field(..., alias="Phrases")
    verses: ContractDeploymentInfo = Field(..., alias="Verses")

    model_config = {"frozen": True, "populate_by_name": True}


class DeploymentsInfo(RootModel[dict[str, ChainDeploymentsInfo]]):
    """Registry file contents, keyed by chain id as a string."""

    @classmethod
    def load(cls, path: Path) -> "DeploymentsInfo":
        """
        Load a deployment registry from JSON.

        Raises:
            FileNotFoundError: If the registry file does not exist
            InvalidDeployments: If the file is not a valid registry
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Deployments file not found at {path}\n"
                f"Expected a JSON object mapping chain id to "
                f'{{"Phrases": {{"address": ...}}, "Verses": {{"address": ...}}}}'
            )
        try:
            return cls.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            raise InvalidDeployments(f"Invalid deployments info in {path}: {e}") from e

    def for_chain(self, chain_id: int) -> ChainDeploymentsInfo:
        """
        Select the deployments of one chain.

        Raises:
            DeploymentLookupError: If the registry has no entry for chain_id
        """
        deployments = self.root.get(str(chain_id))
        if deployments is None:
            raise DeploymentLookupError(chain_id)
        return deployments
