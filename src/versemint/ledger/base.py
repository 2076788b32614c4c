"""Ledger interface consumed by the mint pipeline.

The ledger hosts the Phrases and Verses collections. Reads take an explicit
block height so that a planning pass sees one consistent view; writes return
the receipt of the included transaction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from versemint.models.ledger import Collection, LedgerVerse, MintedEvent, TxReceipt
from versemint.models.prepared import PreparedVerse


class Ledger(ABC):
    """Read and write surface of the two token collections."""

    supports_time_travel: bool = False

    @abstractmethod
    async def chain_id(self) -> int: ...

    @abstractmethod
    async def block_number(self) -> int: ...

    @abstractmethod
    async def block_timestamp(self, block: int) -> int: ...

    @abstractmethod
    async def get_phrase(self, phrase_id: int, block: int) -> str:
        """Phrase content at block, decoded from its slot ("" if unset)."""

    @abstractmethod
    async def get_verse(self, verse_id: int, block: int) -> LedgerVerse: ...

    @abstractmethod
    async def total_supply(self, collection: Collection, block: int) -> int: ...

    @abstractmethod
    async def phrase_id(self, slot: str, block: int) -> int:
        """Id of the phrase with this content slot at block, 0 if absent."""

    @abstractmethod
    async def min_commitment_age(self, collection: Collection, block: int) -> int: ...

    @abstractmethod
    async def commit_phrases(self, sender: str, commitments: list[str]) -> TxReceipt: ...

    @abstractmethod
    async def commit(
        self,
        sender: str,
        phrase_commitments: list[str],
        verse_commitments: list[str],
    ) -> TxReceipt: ...

    @abstractmethod
    async def mint_phrases(
        self, sender: str, values: list[str], secrets: list[str]
    ) -> TxReceipt: ...

    @abstractmethod
    async def mint(
        self,
        sender: str,
        phrase_values: list[str],
        phrase_secrets: list[str],
        verses: list[PreparedVerse],
        verse_secrets: list[str],
    ) -> TxReceipt: ...

    @abstractmethod
    async def minted_events(
        self, collection: Collection, sender: str, from_block: int, to_block: int
    ) -> list[MintedEvent]: ...

    @abstractmethod
    async def token_uri(self, collection: Collection, token_id: int) -> str: ...

    async def advance_time(self, timestamp: int) -> None:
        """Mine a block at timestamp. Only available on test networks."""
        raise NotImplementedError(f"{type(self).__name__} cannot advance time")

    async def aclose(self) -> None:
        """Release transport resources."""


@dataclass(frozen=True)
class LedgerSnapshot:
    """A ledger pinned at one block height.

    Every read made through a snapshot uses the same height, so reads issued
    concurrently cannot observe different ledger states.
    """

    ledger: Ledger
    height: int

    @classmethod
    async def capture(cls, ledger: Ledger) -> "LedgerSnapshot":
        """Pin the ledger at its current block."""
        return cls(ledger, await ledger.block_number())

    async def get_phrase(self, phrase_id: int) -> str:
        return await self.ledger.get_phrase(phrase_id, self.height)

    async def get_verse(self, verse_id: int) -> LedgerVerse:
        return await self.ledger.get_verse(verse_id, self.height)

    async def total_supply(self, collection: Collection) -> int:
        return await self.ledger.total_supply(collection, self.height)

    async def phrase_id(self, slot: str) -> int:
        return await self.ledger.phrase_id(slot, self.height)
