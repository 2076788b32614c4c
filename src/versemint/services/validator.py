"""Structural checks on a mint spec before anything touches the ledger."""

from dataclasses import dataclass

from versemint.models.mint_config import (
    MintConfig,
    NewPhraseIndexRef,
    NewVerseIndexRef,
)
from versemint.services.commitments import format_bytes32
from versemint.services.exceptions import (
    BadPhraseRef,
    EmptyVerse,
    ForwardOrSelfVerseRef,
    PhraseEmpty,
    PhraseTooLong,
    SingleElementVerse,
)
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Phrase texts encoded into their 32-byte slots, in spec order."""

    phrases_bytes32: list[str]


def validate_config(config: MintConfig) -> ValidationResult:
    """
    Validate a mint spec.

    Checks run in declaration order and the first failure is raised:
    every phrase is non-empty and fits its slot, every verse has more than
    one element, every new-phrase reference points into the phrase list and
    every new-verse reference (element or base) of verse i points below i.

    Raises:
        ConfigError: The subclass naming the failed rule and item index
    """
    phrases_bytes32 = []
    for i, phrase in enumerate(config.phrases):
        if not phrase:
            raise PhraseEmpty(i)
        try:
            phrases_bytes32.append(format_bytes32(phrase))
        except ValueError:
            raise PhraseTooLong(i, len(phrase.encode("utf-8"))) from None

    for i, verse in enumerate(config.verses):
        if not verse.elements:
            raise EmptyVerse(i)
        if len(verse.elements) == 1:
            raise SingleElementVerse(i)

        for j, element in enumerate(verse.elements):
            if isinstance(element, NewPhraseIndexRef):
                if not 0 <= element.value < len(config.phrases):
                    raise BadPhraseRef(i, j, element.value)
            elif isinstance(element, NewVerseIndexRef):
                if not 0 <= element.value < i:
                    raise ForwardOrSelfVerseRef(i, j, element.value)

        for j, base in enumerate(verse.bases):
            if isinstance(base, NewVerseIndexRef) and not 0 <= base.value < i:
                raise ForwardOrSelfVerseRef(i, j, base.value, field="base")

    logger.info(
        "mint_config_validated",
        phrase_count=len(config.phrases),
        verse_count=len(config.verses),
    )
    return ValidationResult(phrases_bytes32=phrases_bytes32)
