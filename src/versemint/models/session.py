"""Commit-reveal session state.

A MintSession carries everything needed to finish a mint once its
commitments are on the ledger, secrets included, so it can be checkpointed
after every transition and resumed after a crash.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from versemint.models.prepared import PreparedVerse


class MintState(str, Enum):
    """States of the commit-reveal protocol."""

    PLANNED = "planned"
    COMMITTED = "committed"
    MATURED = "matured"
    MINTED = "minted"
    ABORTED = "aborted"


class IdRange(BaseModel):
    """Half-open range of token ids assigned by one mint."""

    start_id_incl: int = Field(..., ge=1)
    end_id_excl: int = Field(..., ge=1)

    model_config = {"frozen": True}

    def ids(self) -> list[int]:
        return list(range(self.start_id_incl, self.end_id_excl))

    def __len__(self) -> int:
        return self.end_id_excl - self.start_id_incl


class MintResult(BaseModel):
    """What a completed mint produced."""

    phrase_ids: Optional[IdRange] = None
    verse_ids: Optional[IdRange] = None
    phrase_token_uris: dict[int, str] = Field(default_factory=dict)
    verse_token_uris: dict[int, str] = Field(default_factory=dict)


class MintSession(BaseModel):
    """Mutable protocol state of one mint run."""

    state: MintState = MintState.PLANNED
    sender: str
    snapshot_height: int = Field(..., ge=0)
    prepared_phrases: list[str] = Field(default_factory=list)
    prepared_verses: list[PreparedVerse] = Field(default_factory=list)
    phrase_secrets: list[str] = Field(default_factory=list)
    verse_secrets: list[str] = Field(default_factory=list)

    min_commitment_age: Optional[int] = None
    commit_tx_hash: Optional[str] = None
    commit_block: Optional[int] = None
    mint_tx_hash: Optional[str] = None
    mint_block: Optional[int] = None

    phrase_ids: Optional[IdRange] = None
    verse_ids: Optional[IdRange] = None
    error: Optional[str] = Field(
        default=None,
        description="Fault that aborted the session"
    )

    model_config = {"frozen": False}

    @property
    def has_verses(self) -> bool:
        return bool(self.prepared_verses)
