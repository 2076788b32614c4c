"""In-process ledger with the same contract semantics as the live collections.

Every write mines one block. Reads at a height only see tokens minted at or
before that height, so snapshots behave as they do on a real chain. The
clock can be advanced directly, like a development node's
evm_setNextBlockTimestamp.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from versemint.ledger.base import Ledger
from versemint.models.ledger import (
    Collection,
    LedgerElement,
    LedgerVerse,
    MintedEvent,
    TxReceipt,
)
from versemint.models.prepared import PreparedElement, PreparedVerse
from versemint.services.commitments import (
    NEW_PHRASE_IDX_EL_KIND,
    NEW_VERSE_IDX_EL_KIND,
    PHRASE_ID_EL_KIND,
    VERSE_ID_EL_KIND,
    format_bytes32,
    hash_bytes,
    make_commitment,
    parse_bytes32,
)
from versemint.services.exceptions import NetworkFault
from versemint.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHAIN_ID = 31337
DEFAULT_MIN_COMMITMENT_AGE = 60
GENESIS_TIMESTAMP = 1_700_000_000


@dataclass
class _Token:
    minted_at: int
    slot: str = ""
    verse: LedgerVerse = field(default_factory=LedgerVerse)


class InMemoryLedger(Ledger):
    """
    Phrases and Verses collections held in memory.

    Example:
        >>> ledger = InMemoryLedger()
        >>> await ledger.seed_phrase("hello")
        1
        >>> await ledger.get_phrase(1, await ledger.block_number())
        'hello'
    """

    def __init__(
        self,
        chain_id: int = DEFAULT_CHAIN_ID,
        phrases_min_commitment_age: int = DEFAULT_MIN_COMMITMENT_AGE,
        verses_min_commitment_age: int = DEFAULT_MIN_COMMITMENT_AGE,
        supports_time_travel: bool = True,
        token_uri_base: str = "memory://",
    ):
        self._chain_id = chain_id
        self._min_ages = {
            Collection.PHRASES: phrases_min_commitment_age,
            Collection.VERSES: verses_min_commitment_age,
        }
        self.supports_time_travel = supports_time_travel
        self.token_uri_base = token_uri_base

        self._timestamps: list[int] = [GENESIS_TIMESTAMP]
        self._next_timestamp: Optional[int] = None
        self._phrases: list[_Token] = []
        self._verses: list[_Token] = []
        self._phrase_ids: dict[str, int] = {}
        self._commitments: dict[tuple[Collection, str], int] = {}
        self._events: list[tuple[Collection, MintedEvent]] = []
        self.transactions: list[str] = []

    # Blocks and time

    def _pending_timestamp(self) -> int:
        if self._next_timestamp is not None:
            return self._next_timestamp
        return self._timestamps[-1] + 1

    def _mine(self, method: str) -> TxReceipt:
        self._timestamps.append(self._pending_timestamp())
        self._next_timestamp = None
        block = len(self._timestamps) - 1
        self.transactions.append(method)
        tx_hash = hash_bytes(f"{method}:{block}:{len(self.transactions)}".encode("utf-8"))
        return TxReceipt(tx_hash=tx_hash, block_number=block, gas_used=21000)

    async def chain_id(self) -> int:
        return self._chain_id

    async def block_number(self) -> int:
        return len(self._timestamps) - 1

    async def block_timestamp(self, block: int) -> int:
        if not 0 <= block < len(self._timestamps):
            raise NetworkFault("getBlock", f"unknown block {block}")
        return self._timestamps[block]

    async def advance_time(self, timestamp: int) -> None:
        if timestamp <= self._timestamps[-1]:
            raise NetworkFault(
                "evm_setNextBlockTimestamp",
                f"timestamp {timestamp} is not after the latest block",
            )
        self._next_timestamp = timestamp
        self._mine("evm_mine")

    # Reads

    def _visible(self, tokens: list[_Token], token_id: int, block: int) -> Optional[_Token]:
        if 1 <= token_id <= len(tokens) and tokens[token_id - 1].minted_at <= block:
            return tokens[token_id - 1]
        return None

    async def get_phrase(self, phrase_id: int, block: int) -> str:
        token = self._visible(self._phrases, phrase_id, block)
        return parse_bytes32(token.slot) if token else ""

    async def get_verse(self, verse_id: int, block: int) -> LedgerVerse:
        token = self._visible(self._verses, verse_id, block)
        return token.verse if token else LedgerVerse()

    async def total_supply(self, collection: Collection, block: int) -> int:
        tokens = self._phrases if collection is Collection.PHRASES else self._verses
        return sum(1 for token in tokens if token.minted_at <= block)

    async def phrase_id(self, slot: str, block: int) -> int:
        phrase_id = self._phrase_ids.get(slot, 0)
        if phrase_id and self._visible(self._phrases, phrase_id, block):
            return phrase_id
        return 0

    async def min_commitment_age(self, collection: Collection, block: int) -> int:
        return self._min_ages[collection]

    async def minted_events(
        self, collection: Collection, sender: str, from_block: int, to_block: int
    ) -> list[MintedEvent]:
        return [
            event
            for c, event in self._events
            if c is collection
            and event.minter.lower() == sender.lower()
            and from_block <= event.block_number <= to_block
        ]

    async def token_uri(self, collection: Collection, token_id: int) -> str:
        tokens = self._phrases if collection is Collection.PHRASES else self._verses
        if not self._visible(tokens, token_id, len(self._timestamps) - 1):
            raise NetworkFault("tokenURI", f"{collection.value} token {token_id} does not exist")
        return f"{self.token_uri_base}{collection.value.lower()}/{token_id}"

    # Writes

    async def commit_phrases(self, sender: str, commitments: list[str]) -> TxReceipt:
        return self._commit(sender, {Collection.PHRASES: commitments}, "commit(bytes32[])")

    async def commit(
        self,
        sender: str,
        phrase_commitments: list[str],
        verse_commitments: list[str],
    ) -> TxReceipt:
        return self._commit(
            sender,
            {Collection.PHRASES: phrase_commitments, Collection.VERSES: verse_commitments},
            "commit(bytes32[],bytes32[])",
        )

    def _commit(self, sender: str, commitments: dict[Collection, list[str]], method: str) -> TxReceipt:
        timestamp = self._pending_timestamp()
        for collection, values in commitments.items():
            for commitment in values:
                self._commitments[(collection, commitment)] = timestamp
        receipt = self._mine(method)
        logger.debug("memory_ledger_commit", sender=sender, block=receipt.block_number)
        return receipt

    async def mint_phrases(self, sender: str, values: list[str], secrets: list[str]) -> TxReceipt:
        return await self.mint(sender, values, secrets, [], [])

    async def mint(
        self,
        sender: str,
        phrase_values: list[str],
        phrase_secrets: list[str],
        verses: list[PreparedVerse],
        verse_secrets: list[str],
    ) -> TxReceipt:
        method = "mint(bytes32[],bytes32[],tuple[],bytes32[])" if verses else "mint(bytes32[],bytes32[])"
        timestamp = self._pending_timestamp()

        if len(phrase_values) != len(phrase_secrets) or len(verses) != len(verse_secrets):
            raise NetworkFault(method, "reverted: values and secrets differ in length")

        used: list[tuple[Collection, str]] = []
        for value, secret in zip(phrase_values, phrase_secrets):
            used.append(self._check_commitment(
                method, Collection.PHRASES, make_commitment(sender, value, secret), timestamp
            ))
            try:
                text = parse_bytes32(value)
            except ValueError as e:
                raise NetworkFault(method, f"reverted: {e}") from e
            if not text:
                raise NetworkFault(method, "reverted: phrase is empty")
            if value in self._phrase_ids:
                raise NetworkFault(method, f"reverted: phrase {text!r} already exists")
        if len(set(phrase_values)) != len(phrase_values):
            raise NetworkFault(method, "reverted: duplicate phrase in batch")

        phrase_start = len(self._phrases) + 1
        verse_start = len(self._verses) + 1
        stored_verses = []
        for position, (verse, secret) in enumerate(zip(verses, verse_secrets)):
            used.append(self._check_commitment(
                method,
                Collection.VERSES,
                make_commitment(sender, verse.protected_value(), secret),
                timestamp,
            ))
            stored_verses.append(self._store_verse(
                method, verse, position, phrase_start, len(phrase_values), verse_start
            ))

        for key in used:
            del self._commitments[key]
        receipt = self._mine(method)
        block = receipt.block_number

        for value in phrase_values:
            self._phrases.append(_Token(minted_at=block, slot=value))
            self._phrase_ids[value] = len(self._phrases)
        for stored in stored_verses:
            self._verses.append(_Token(minted_at=block, verse=stored))

        if phrase_values:
            self._emit(Collection.PHRASES, receipt, sender, phrase_start, len(self._phrases) + 1)
        if verses:
            self._emit(Collection.VERSES, receipt, sender, verse_start, len(self._verses) + 1)
        return receipt

    def _check_commitment(
        self, method: str, collection: Collection, commitment: str, timestamp: int
    ) -> tuple[Collection, str]:
        key = (collection, commitment)
        committed_at = self._commitments.get(key)
        if committed_at is None:
            raise NetworkFault(method, f"reverted: no {collection.value} commitment found")
        if timestamp < committed_at + self._min_ages[collection]:
            raise NetworkFault(method, f"reverted: {collection.value} commitment too new")
        return key

    def _store_verse(
        self,
        method: str,
        verse: PreparedVerse,
        position: int,
        phrase_start: int,
        phrase_count: int,
        verse_start: int,
    ) -> LedgerVerse:
        if len(verse.elements) < 2:
            raise NetworkFault(method, "reverted: verse needs more than one element")

        def to_id(element: PreparedElement) -> LedgerElement:
            if element.kind == PHRASE_ID_EL_KIND:
                if element.value > len(self._phrases):
                    raise NetworkFault(method, f"reverted: phrase {element.value} does not exist")
                return LedgerElement(kind=PHRASE_ID_EL_KIND, value=element.value)
            if element.kind == VERSE_ID_EL_KIND:
                if element.value > len(self._verses):
                    raise NetworkFault(method, f"reverted: verse {element.value} does not exist")
                return LedgerElement(kind=VERSE_ID_EL_KIND, value=element.value)
            if element.kind == NEW_PHRASE_IDX_EL_KIND:
                if element.value >= phrase_count:
                    raise NetworkFault(method, f"reverted: bad new phrase index {element.value}")
                return LedgerElement(kind=PHRASE_ID_EL_KIND, value=phrase_start + element.value)
            if element.kind == NEW_VERSE_IDX_EL_KIND:
                if element.value >= position:
                    raise NetworkFault(method, f"reverted: bad new verse index {element.value}")
                return LedgerElement(kind=VERSE_ID_EL_KIND, value=verse_start + element.value)
            raise NetworkFault(method, f"reverted: unknown element kind {element.kind}")

        return LedgerVerse(
            elements=[to_id(element) for element in verse.elements],
            base_ids=[to_id(base).value for base in verse.bases],
        )

    def _emit(self, collection: Collection, receipt: TxReceipt, sender: str, start: int, end: int) -> None:
        self._events.append((collection, MintedEvent(
            tx_hash=receipt.tx_hash,
            block_number=receipt.block_number,
            minter=sender,
            start_id_incl=start,
            end_id_excl=end,
        )))

    # Fixtures

    async def seed_phrase(self, text: str) -> int:
        """Mint a phrase directly, bypassing commit-reveal."""
        slot = format_bytes32(text)
        receipt = self._mine("seedPhrase")
        self._phrases.append(_Token(minted_at=receipt.block_number, slot=slot))
        self._phrase_ids[slot] = len(self._phrases)
        return len(self._phrases)

    async def seed_verse(
        self,
        elements: Iterable[tuple[str, int]],
        base_ids: Iterable[int] = (),
    ) -> int:
        """
        Mint a verse directly from (kind tag, id) pairs, without any checks.

        References to ids that do not exist yet are stored as given, which is
        how a verse can end up referring to itself.
        """
        verse = LedgerVerse(
            elements=[LedgerElement(kind=kind, value=value) for kind, value in elements],
            base_ids=list(base_ids),
        )
        receipt = self._mine("seedVerse")
        self._verses.append(_Token(minted_at=receipt.block_number, verse=verse))
        return len(self._verses)
