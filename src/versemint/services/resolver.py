"""Content resolution for phrases and verses at a pinned ledger snapshot.

A verse's content is the concatenation of its elements' contents, so
resolution walks the verse graph depth-first. Sibling elements are resolved
concurrently; each branch carries its own copy of the ancestor set, so a
verse that reaches itself through on-chain ids resolves to a marker instead
of recursing forever.
"""

import asyncio
from typing import AbstractSet

from versemint.ledger.base import LedgerSnapshot
from versemint.models.ledger import Collection, LedgerElement
from versemint.services.commitments import ELEMENT_KINDS, PHRASE_ID_EL_KIND, VERSE_ID_EL_KIND
from versemint.services.exceptions import InvariantViolation
from versemint.utils.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PHRASE = "[PLACEHOLDER PHRASE]"
PLACEHOLDER_VERSE = "[PLACEHOLDER VERSE]"
INFINITE_RECURSION = "[INFINITE RECURSION]"


def future_marker(kind: Collection, node_id: int) -> str:
    noun = "PHRASE" if kind is Collection.PHRASES else "VERSE"
    return f"[FUTURE {noun} {node_id}]"


class ContentResolver:
    """
    Resolves the current content of any phrase or verse id.

    All reads go through one LedgerSnapshot, and the supplies that decide
    whether an id exists are read once when the resolver is created.

    With render_placeholders=False the placeholder phrase and verse (id 0)
    resolve to their literal on-chain content, the empty string, which is
    what a verse containing them actually concatenates to.
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot,
        phrases_supply: int,
        verses_supply: int,
        render_placeholders: bool = True,
    ):
        self.snapshot = snapshot
        self.phrases_supply = phrases_supply
        self.verses_supply = verses_supply
        self.render_placeholders = render_placeholders

    @classmethod
    async def create(
        cls, snapshot: LedgerSnapshot, render_placeholders: bool = True
    ) -> "ContentResolver":
        """Read both supplies at the snapshot height and build a resolver."""
        phrases_supply, verses_supply = await asyncio.gather(
            snapshot.total_supply(Collection.PHRASES),
            snapshot.total_supply(Collection.VERSES),
        )
        logger.debug(
            "resolver_created",
            height=snapshot.height,
            phrases_supply=phrases_supply,
            verses_supply=verses_supply,
        )
        return cls(snapshot, phrases_supply, verses_supply, render_placeholders)

    async def resolve(
        self,
        node_id: int,
        kind: Collection,
        ancestors: AbstractSet[int] = frozenset(),
    ) -> str:
        if kind is Collection.PHRASES:
            return await self.resolve_phrase(node_id)
        if kind is Collection.VERSES:
            return await self.resolve_verse(node_id, ancestors)
        raise AssertionError(f"Unreachable node kind: {kind!r}")

    async def resolve_phrase(self, phrase_id: int) -> str:
        """
        Resolve one phrase.

        Raises:
            InvariantViolation: If the placeholder or an unminted id has
                content, or a minted id has none
        """
        phrase = await self.snapshot.get_phrase(phrase_id)

        if phrase_id == 0:
            if phrase != "":
                raise InvariantViolation("Expected placeholder phrase content to be empty.")
            return PLACEHOLDER_PHRASE if self.render_placeholders else ""

        # No token has id 0, so the highest existing id equals the supply.
        if phrase_id <= self.phrases_supply:
            if phrase == "":
                raise InvariantViolation(
                    f"Expected content of existent phrase {phrase_id} not to be empty."
                )
            return phrase

        if phrase != "":
            raise InvariantViolation(
                f"Expected content of non-existent phrase {phrase_id} to be empty."
            )
        return future_marker(Collection.PHRASES, phrase_id)

    async def resolve_verse(
        self, verse_id: int, ancestors: AbstractSet[int] = frozenset()
    ) -> str:
        """
        Resolve one verse by concatenating its resolved elements.

        Args:
            verse_id: Verse to resolve
            ancestors: Verse ids on the path from the root of this resolution

        Raises:
            InvariantViolation: If the verse record contradicts its id's status
        """
        if verse_id in ancestors:
            logger.debug("verse_cycle_detected", verse_id=verse_id)
            return INFINITE_RECURSION

        verse = await self.snapshot.get_verse(verse_id)

        if verse_id == 0:
            if verse.elements:
                raise InvariantViolation("Expected placeholder verse to have no elements.")
            if verse.base_ids:
                raise InvariantViolation("Expected placeholder verse to have no bases.")
            return PLACEHOLDER_VERSE if self.render_placeholders else ""

        if verse_id <= self.verses_supply:
            if not verse.elements:
                raise InvariantViolation(
                    f"Expected existent verse {verse_id} to have elements."
                )
            branch_ancestors = frozenset(ancestors) | {verse_id}
            contents = await asyncio.gather(
                *(self._resolve_element(element, branch_ancestors) for element in verse.elements)
            )
            return "".join(contents)

        if verse.elements:
            raise InvariantViolation(
                f"Expected non-existent verse {verse_id} to have no elements."
            )
        if verse.base_ids:
            raise InvariantViolation(
                f"Expected non-existent verse {verse_id} to have no bases."
            )
        return future_marker(Collection.VERSES, verse_id)

    async def _resolve_element(
        self, element: LedgerElement, ancestors: frozenset[int]
    ) -> str:
        if element.kind == PHRASE_ID_EL_KIND:
            return await self.resolve_phrase(element.value)
        if element.kind == VERSE_ID_EL_KIND:
            return await self.resolve_verse(element.value, ancestors)
        kind = ELEMENT_KINDS.get(element.kind, element.kind)
        raise InvariantViolation(f"Unexpected verse element kind: {kind}")
