"""Values exchanged with the ledger."""

from enum import Enum

from pydantic import BaseModel, Field


class Collection(str, Enum):
    """The two token collections on the ledger."""

    PHRASES = "Phrases"
    VERSES = "Verses"


class LedgerElement(BaseModel):
    """A verse element as stored on the ledger: a kind tag and a value."""

    kind: str = Field(..., description="0x-prefixed 32-byte kind tag")
    value: int = Field(..., ge=0)

    model_config = {"frozen": True}


class LedgerVerse(BaseModel):
    """A verse record read from the ledger."""

    elements: list[LedgerElement] = Field(default_factory=list)
    base_ids: list[int] = Field(default_factory=list, alias="baseIds")

    model_config = {"frozen": True, "populate_by_name": True}


class TxReceipt(BaseModel):
    """Receipt of an included transaction."""

    tx_hash: str = Field(..., alias="hash")
    block_number: int | None = Field(default=None, alias="blockNumber")
    gas_used: int = Field(default=0, alias="gasUsed")

    model_config = {"frozen": True, "populate_by_name": True}


class MintedEvent(BaseModel):
    """A mint-completion event emitted by one of the collections."""

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    minter: str
    start_id_incl: int = Field(..., alias="startIdIncl")
    end_id_excl: int = Field(..., alias="endIdExcl")

    model_config = {"frozen": True, "populate_by_name": True}
