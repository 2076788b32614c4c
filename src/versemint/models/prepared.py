"""Planner output: the batch in the canonical form submitted to the ledger."""

from typing import Literal, Union

from pydantic import BaseModel, Field

from versemint.models.mint_config import MintConfigVerse
from versemint.services.commitments import verse_protected_value


class NewResolvedPhrase(BaseModel):
    """A requested phrase with no existing counterpart on the ledger."""

    new: Literal[True] = True
    value: str = Field(..., description="32-byte content slot (0x-prefixed hex)")
    orig: str = Field(..., description="Phrase text as written in the mint spec")

    model_config = {"frozen": True}


class ExistingResolvedPhrase(BaseModel):
    """A requested phrase that is already on the ledger."""

    new: Literal[False] = False
    value: int = Field(..., ge=1, description="Existing phrase id")
    orig: str

    model_config = {"frozen": True}


ResolvedPhrase = Union[NewResolvedPhrase, ExistingResolvedPhrase]


class PreparedElement(BaseModel):
    """A reference in canonical form: kind tag plus numeric value."""

    kind: str = Field(..., description="0x-prefixed 32-byte kind tag")
    value: int = Field(..., ge=0)

    model_config = {"frozen": True}


class PreparedVerse(BaseModel):
    """A verse in canonical form, ready for commitment and reveal."""

    elements: list[PreparedElement]
    bases: list[PreparedElement] = Field(default_factory=list)

    model_config = {"frozen": True}

    def element_pairs(self) -> list[tuple[str, int]]:
        return [(element.kind, element.value) for element in self.elements]

    def protected_value(self) -> str:
        """Digest of the ordered element pairs, the value a verse commitment binds."""
        return verse_protected_value(self.element_pairs())


class PreparedBatch(BaseModel):
    """Everything the commit-reveal coordinator needs, derived and verified."""

    snapshot_height: int = Field(..., ge=0, description="Pinned pre-write block height")
    resolved_phrases: list[ResolvedPhrase] = Field(default_factory=list)
    prepared_phrases: list[str] = Field(
        default_factory=list,
        description="Content slots of genuinely new phrases, in spec order"
    )
    verses: list[MintConfigVerse] = Field(
        default_factory=list,
        description="Spec verses with new-phrase references rewritten"
    )
    prepared_verses: list[PreparedVerse] = Field(default_factory=list)
    verse_contents: list[str] = Field(
        default_factory=list,
        description="Locally derived content of each verse, verified against the spec"
    )

    model_config = {"frozen": True}

    @property
    def new_phrases(self) -> list[str]:
        return [resolved.orig for resolved in self.resolved_phrases if resolved.new]

    @property
    def existing_phrases(self) -> list[str]:
        return [resolved.orig for resolved in self.resolved_phrases if not resolved.new]

    @property
    def is_empty(self) -> bool:
        return not self.prepared_phrases and not self.prepared_verses
