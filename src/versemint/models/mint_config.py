"""Mint spec models: the operator's declaration of what to mint."""

import json
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, ValidationError

from versemint.services.exceptions import InvalidMintConfig


class PhraseIdRef(BaseModel):
    """Reference to a phrase that already exists on the ledger."""

    kind: Literal["phraseId"] = "phraseId"
    value: int = Field(..., ge=0, description="On-chain phrase id (decimal string or int)")

    model_config = {"frozen": True}


class VerseIdRef(BaseModel):
    """Reference to a verse that already exists on the ledger."""

    kind: Literal["verseId"] = "verseId"
    value: int = Field(..., ge=0, description="On-chain verse id (decimal string or int)")

    model_config = {"frozen": True}


class NewPhraseIndexRef(BaseModel):
    """Reference to a phrase of this batch by its index in `phrases`."""

    kind: Literal["newPhraseIndex"] = "newPhraseIndex"
    value: int = Field(..., strict=True, description="Index into the batch phrase list")

    model_config = {"frozen": True}


class NewVerseIndexRef(BaseModel):
    """Reference to an earlier verse of this batch by its index in `verses`."""

    kind: Literal["newVerseIndex"] = "newVerseIndex"
    value: int = Field(..., strict=True, description="Index into the batch verse list")

    model_config = {"frozen": True}


ElementRef = Annotated[
    Union[PhraseIdRef, VerseIdRef, NewPhraseIndexRef, NewVerseIndexRef],
    Field(discriminator="kind"),
]

BaseRef = Annotated[
    Union[VerseIdRef, NewVerseIndexRef],
    Field(discriminator="kind"),
]


class MintConfigVerse(BaseModel):
    """A verse to be minted."""

    elements: list[ElementRef] = Field(..., description="Ordered content elements")
    bases: list[BaseRef] = Field(
        ...,
        description="Verses this verse extends (bookkeeping only, not content)"
    )
    expected_content: str = Field(
        ...,
        alias="expectedContent",
        description="Content the operator believes this verse resolves to"
    )

    model_config = {"frozen": True, "populate_by_name": True}


class MintConfig(BaseModel):
    """Root of a mint spec file."""

    phrases: list[str] = Field(..., description="Phrase texts to mint, deduplicated against the ledger")
    verses: list[MintConfigVerse] = Field(..., description="Verses to mint, in submission order")

    model_config = {"frozen": True}

    @classmethod
    def load(cls, path: Path) -> "MintConfig":
        """
        Load a mint spec from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidMintConfig: If the JSON is malformed or has the wrong shape
        """
        text = path.read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidMintConfig(f"Invalid mint config: {path} is not valid JSON ({e})") from e
        return cls.parse_data(data)

    @classmethod
    def parse_data(cls, data: object) -> "MintConfig":
        """Validate already-decoded JSON data into a MintConfig."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidMintConfig(f"Invalid mint config: {e}") from e
