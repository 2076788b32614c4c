"""Batch planning: dedupe phrases, rewrite references, verify verse content.

The planner turns a validated mint spec into a PreparedBatch. Before any
commitment exists it re-derives the content every new verse will have once
minted and refuses to continue if that differs from what the operator
declared, so a stale spec or a ledger change since authoring never gets
minted by accident.

New verses are not folded against verses that already exist on the ledger;
a batch verse whose elements match an existing verse is minted again.
"""

import asyncio

from versemint.ledger.base import LedgerSnapshot
from versemint.models.mint_config import (
    BaseRef,
    ElementRef,
    MintConfig,
    MintConfigVerse,
    NewPhraseIndexRef,
    NewVerseIndexRef,
    PhraseIdRef,
    VerseIdRef,
)
from versemint.models.prepared import (
    ExistingResolvedPhrase,
    NewResolvedPhrase,
    PreparedBatch,
    PreparedElement,
    PreparedVerse,
    ResolvedPhrase,
)
from versemint.services.commitments import (
    NEW_PHRASE_IDX_EL_KIND,
    NEW_VERSE_IDX_EL_KIND,
    PHRASE_ID_EL_KIND,
    VERSE_ID_EL_KIND,
)
from versemint.services.exceptions import ContentMismatch
from versemint.services.resolver import ContentResolver
from versemint.services.validator import ValidationResult
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


def prepare_element(element: ElementRef | BaseRef) -> PreparedElement:
    """Translate a spec reference into its tagged canonical form."""
    if isinstance(element, PhraseIdRef):
        return PreparedElement(kind=PHRASE_ID_EL_KIND, value=element.value)
    if isinstance(element, VerseIdRef):
        return PreparedElement(kind=VERSE_ID_EL_KIND, value=element.value)
    if isinstance(element, NewPhraseIndexRef):
        return PreparedElement(kind=NEW_PHRASE_IDX_EL_KIND, value=element.value)
    if isinstance(element, NewVerseIndexRef):
        return PreparedElement(kind=NEW_VERSE_IDX_EL_KIND, value=element.value)
    raise AssertionError(f"Unreachable element reference: {element!r}")


def prepare_verse(verse: MintConfigVerse) -> PreparedVerse:
    return PreparedVerse(
        elements=[prepare_element(element) for element in verse.elements],
        bases=[prepare_element(base) for base in verse.bases],
    )


class BatchPlanner:
    """
    Plans one mint batch against a pinned ledger snapshot.

    Example:
        >>> snapshot = await LedgerSnapshot.capture(ledger)
        >>> batch = await BatchPlanner(snapshot).plan(config, validate_config(config))
        >>> batch.verse_contents
        ['ab']
    """

    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot

    async def plan(self, config: MintConfig, validation: ValidationResult) -> PreparedBatch:
        """
        Build the prepared batch for a validated mint spec.

        Raises:
            ContentMismatch: If a derived verse content differs from its
                declared expectedContent
            InvariantViolation: If ledger state read while resolving existing
                references is inconsistent
            NetworkFault: If a ledger read fails
        """
        resolved_phrases = await self.resolve_phrases(config, validation)

        prepared_phrases: list[str] = []
        prepared_texts: list[str] = []
        prepared_positions: dict[int, int] = {}
        for i, resolved in enumerate(resolved_phrases):
            if isinstance(resolved, NewResolvedPhrase):
                prepared_positions[i] = len(prepared_phrases)
                prepared_phrases.append(resolved.value)
                prepared_texts.append(resolved.orig)

        verses = [
            self.rewrite_verse(verse, resolved_phrases, prepared_positions)
            for verse in config.verses
        ]
        prepared_verses = [prepare_verse(verse) for verse in verses]

        verse_contents: list[str] = []
        if verses:
            verse_contents = await self.derive_contents(verses, prepared_texts)

        logger.info(
            "batch_planned",
            height=self.snapshot.height,
            new_phrases=len(prepared_phrases),
            existing_phrases=len(resolved_phrases) - len(prepared_phrases),
            verses=len(prepared_verses),
        )
        return PreparedBatch(
            snapshot_height=self.snapshot.height,
            resolved_phrases=resolved_phrases,
            prepared_phrases=prepared_phrases,
            verses=verses,
            prepared_verses=prepared_verses,
            verse_contents=verse_contents,
        )

    async def resolve_phrases(
        self, config: MintConfig, validation: ValidationResult
    ) -> list[ResolvedPhrase]:
        """Classify each requested phrase as new or already on the ledger."""
        phrase_ids = await asyncio.gather(
            *(self.snapshot.phrase_id(slot) for slot in validation.phrases_bytes32)
        )
        resolved: list[ResolvedPhrase] = []
        for text, slot, phrase_id in zip(config.phrases, validation.phrases_bytes32, phrase_ids):
            if phrase_id == 0:
                resolved.append(NewResolvedPhrase(value=slot, orig=text))
            else:
                resolved.append(ExistingResolvedPhrase(value=phrase_id, orig=text))
        return resolved

    @staticmethod
    def rewrite_verse(
        verse: MintConfigVerse,
        resolved_phrases: list[ResolvedPhrase],
        prepared_positions: dict[int, int],
    ) -> MintConfigVerse:
        """
        Point new-phrase references at existing ids or prepared positions.

        A reference to a phrase that already exists becomes a phraseId
        reference; one to a genuinely new phrase is renumbered to that
        phrase's position in the prepared phrase list.
        """
        elements: list[ElementRef] = []
        for element in verse.elements:
            if isinstance(element, NewPhraseIndexRef):
                resolved = resolved_phrases[element.value]
                if isinstance(resolved, ExistingResolvedPhrase):
                    elements.append(PhraseIdRef(value=resolved.value))
                else:
                    elements.append(NewPhraseIndexRef(value=prepared_positions[element.value]))
            else:
                elements.append(element)
        return verse.model_copy(update={"elements": elements})

    async def derive_contents(
        self, verses: list[MintConfigVerse], prepared_texts: list[str]
    ) -> list[str]:
        """
        Derive and verify the content of each batch verse, in batch order.

        Earlier verses are fully derived before later ones, so a new-verse
        reference always finds its target's content.
        """
        resolver = await ContentResolver.create(self.snapshot, render_placeholders=False)
        contents: list[str] = []

        async def element_content(element: ElementRef) -> str:
            if isinstance(element, PhraseIdRef):
                return await resolver.resolve_phrase(element.value)
            if isinstance(element, VerseIdRef):
                return await resolver.resolve_verse(element.value)
            if isinstance(element, NewPhraseIndexRef):
                return prepared_texts[element.value]
            if isinstance(element, NewVerseIndexRef):
                return contents[element.value]
            raise AssertionError(f"Unreachable element reference: {element!r}")

        for i, verse in enumerate(verses):
            parts = await asyncio.gather(*(element_content(e) for e in verse.elements))
            content = "".join(parts)
            if content != verse.expected_content:
                logger.error(
                    "verse_content_mismatch",
                    verse_index=i,
                    expected=verse.expected_content,
                    actual=content,
                )
                raise ContentMismatch(i, verse.expected_content, content)
            logger.debug("verse_content_verified", verse_index=i, content=content)
            contents.append(content)
        return contents
