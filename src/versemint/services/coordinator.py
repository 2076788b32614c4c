"""Commit-reveal coordination of a prepared batch.

Minting happens in two transactions. The first commits to hashes binding
the submitter, each prepared value and a fresh secret; the second, sent only
after the collections' minimum commitment age has passed, reveals the values
with their secrets. An observer of the pending commit learns nothing it could
front-run.

    PLANNED -> COMMITTED -> MATURED -> MINTED
        \\_________\\___________\\_______> ABORTED

Secrets are generated once, when the session is created, and live in the
session until the reveal. Nothing is retried automatically: a fault moves the
session to ABORTED and recovery is a fresh plan.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

from versemint.ledger.base import Ledger
from versemint.models.ledger import Collection, TxReceipt
from versemint.models.prepared import PreparedBatch
from versemint.models.session import IdRange, MintResult, MintSession, MintState
from versemint.services.checkpoint import load_session, save_session
from versemint.services.commitments import make_commitment, new_secret
from versemint.services.exceptions import InvariantViolation, ProtocolTimingFault
from versemint.utils.logging import get_logger
from versemint.utils.time import current_time, wait_for

logger = get_logger(__name__)


class CommitRevealCoordinator:
    """
    Drives one MintSession through the commit-reveal protocol.

    When checkpoint_path is set the session is written there before the
    commit is submitted and after every transition.
    """

    def __init__(
        self,
        ledger: Ledger,
        session: MintSession,
        checkpoint_path: Optional[Path] = None,
    ):
        self.ledger = ledger
        self.session = session
        self.checkpoint_path = checkpoint_path

    @classmethod
    def from_batch(
        cls,
        ledger: Ledger,
        batch: PreparedBatch,
        sender: str,
        checkpoint_path: Optional[Path] = None,
    ) -> "CommitRevealCoordinator":
        """
        Start a session for a batch, generating one secret per prepared value.

        Raises:
            ValueError: If the batch has nothing to mint
        """
        if batch.is_empty:
            raise ValueError("Batch has no new phrases or verses to mint")
        session = MintSession(
            sender=sender,
            snapshot_height=batch.snapshot_height,
            prepared_phrases=list(batch.prepared_phrases),
            prepared_verses=list(batch.prepared_verses),
            phrase_secrets=[new_secret() for _ in batch.prepared_phrases],
            verse_secrets=[new_secret() for _ in batch.prepared_verses],
        )
        return cls(ledger, session, checkpoint_path)

    @classmethod
    def resume(cls, ledger: Ledger, checkpoint_path: Path) -> "CommitRevealCoordinator":
        """
        Continue a checkpointed session.

        Raises:
            ProtocolTimingFault: If the session was aborted
        """
        session = load_session(checkpoint_path)
        if session.state is MintState.ABORTED:
            raise ProtocolTimingFault(
                f"Session in {checkpoint_path} was aborted ({session.error}); "
                f"start a fresh plan"
            )
        logger.info("session_resumed", path=str(checkpoint_path), state=session.state.value)
        return cls(ledger, session, checkpoint_path)

    @property
    def state(self) -> MintState:
        return self.session.state

    def phrase_commitments(self) -> list[str]:
        return [
            make_commitment(self.session.sender, value, secret)
            for value, secret in zip(self.session.prepared_phrases, self.session.phrase_secrets)
        ]

    def verse_commitments(self) -> list[str]:
        return [
            make_commitment(self.session.sender, verse.protected_value(), secret)
            for verse, secret in zip(self.session.prepared_verses, self.session.verse_secrets)
        ]

    async def run(self) -> MintResult:
        """Advance from the current state to MINTED and read back token URIs."""
        if self.state is MintState.PLANNED:
            await self.commit()
        if self.state is MintState.COMMITTED:
            await self.wait_for_maturity()
        if self.state is MintState.MATURED:
            await self.reveal()
        return await self.read_back()

    async def commit(self) -> TxReceipt:
        """PLANNED -> COMMITTED: submit all commitments in one transaction."""
        return await self._transition(MintState.PLANNED, MintState.COMMITTED, self._commit)

    async def wait_for_maturity(self) -> None:
        """COMMITTED -> MATURED: wait out the minimum commitment age."""
        await self._transition(MintState.COMMITTED, MintState.MATURED, self._wait_for_maturity)

    async def reveal(self) -> TxReceipt:
        """MATURED -> MINTED: reveal values and secrets, record minted id ranges."""
        return await self._transition(MintState.MATURED, MintState.MINTED, self._reveal)

    async def read_back(self) -> MintResult:
        """Fetch token URIs of every minted id."""
        if self.state is not MintState.MINTED:
            raise ProtocolTimingFault(f"Cannot read back a session in state {self.state.value}")

        phrase_ids = self.session.phrase_ids.ids() if self.session.phrase_ids else []
        verse_ids = self.session.verse_ids.ids() if self.session.verse_ids else []
        uris = await asyncio.gather(
            *(self.ledger.token_uri(Collection.PHRASES, i) for i in phrase_ids),
            *(self.ledger.token_uri(Collection.VERSES, i) for i in verse_ids),
        )
        return MintResult(
            phrase_ids=self.session.phrase_ids,
            verse_ids=self.session.verse_ids,
            phrase_token_uris=dict(zip(phrase_ids, uris[: len(phrase_ids)])),
            verse_token_uris=dict(zip(verse_ids, uris[len(phrase_ids):])),
        )

    async def _transition(
        self,
        expected: MintState,
        target: MintState,
        action: Callable[[], Awaitable],
    ):
        if self.state is not expected:
            raise ProtocolTimingFault(
                f"Cannot move to {target.value} from {self.state.value}"
            )
        try:
            result = await action()
        except Exception as e:
            self._abort(e)
            raise
        self.session.state = target
        self._save()
        logger.info("session_transition", state=target.value)
        return result

    def _abort(self, error: Exception) -> None:
        logger.warning(
            "session_aborted",
            state=self.state.value,
            error_type=type(error).__name__,
            error=str(error),
        )
        self.session.state = MintState.ABORTED
        self.session.error = f"{type(error).__name__}: {error}"
        self._save()

    def _save(self) -> None:
        if self.checkpoint_path is not None:
            save_session(self.session, self.checkpoint_path)

    async def _commit(self) -> TxReceipt:
        session = self.session
        collections = [Collection.PHRASES]
        if session.has_verses:
            collections.append(Collection.VERSES)
        ages = await asyncio.gather(
            *(self.ledger.min_commitment_age(c, session.snapshot_height) for c in collections)
        )
        session.min_commitment_age = max(ages)

        # Secrets must be on disk before their commitments are on the ledger.
        self._save()

        if session.has_verses:
            receipt = await self.ledger.commit(
                session.sender, self.phrase_commitments(), self.verse_commitments()
            )
        else:
            receipt = await self.ledger.commit_phrases(session.sender, self.phrase_commitments())

        if receipt.block_number is None:
            raise ProtocolTimingFault(f"Commit transaction {receipt.tx_hash} was not included")

        session.commit_tx_hash = receipt.tx_hash
        session.commit_block = receipt.block_number
        logger.info(
            "commit_submitted",
            tx_hash=receipt.tx_hash,
            block=receipt.block_number,
            gas_used=receipt.gas_used,
            phrases=len(session.prepared_phrases),
            verses=len(session.prepared_verses),
            min_commitment_age=session.min_commitment_age,
        )
        return receipt

    async def _wait_for_maturity(self) -> None:
        session = self.session
        if session.commit_block is None or session.min_commitment_age is None:
            raise ProtocolTimingFault("Session has no recorded commit to wait on")

        commit_timestamp = await self.ledger.block_timestamp(session.commit_block)
        await wait_for(self.ledger, session.min_commitment_age + 1, commit_timestamp)

        now = await current_time(self.ledger)
        if now < commit_timestamp + session.min_commitment_age:
            raise ProtocolTimingFault(
                f"Commitment is {now - commit_timestamp}s old, "
                f"needs {session.min_commitment_age}s"
            )

    async def _reveal(self) -> TxReceipt:
        session = self.session
        if session.has_verses:
            receipt = await self.ledger.mint(
                session.sender,
                session.prepared_phrases,
                session.phrase_secrets,
                session.prepared_verses,
                session.verse_secrets,
            )
        else:
            receipt = await self.ledger.mint_phrases(
                session.sender, session.prepared_phrases, session.phrase_secrets
            )

        if receipt.block_number is None:
            raise ProtocolTimingFault(f"Mint transaction {receipt.tx_hash} was not included")

        session.mint_tx_hash = receipt.tx_hash
        session.mint_block = receipt.block_number

        expected = {Collection.PHRASES: len(session.prepared_phrases)}
        if session.has_verses:
            expected[Collection.VERSES] = len(session.prepared_verses)
        ranges = await asyncio.gather(
            *(self._minted_range(c, receipt, count) for c, count in expected.items())
        )
        session.phrase_ids = ranges[0]
        if session.has_verses:
            session.verse_ids = ranges[1]

        logger.info(
            "mint_submitted",
            tx_hash=receipt.tx_hash,
            block=receipt.block_number,
            gas_used=receipt.gas_used,
            phrase_ids=session.phrase_ids.ids() if session.phrase_ids else [],
            verse_ids=session.verse_ids.ids() if session.verse_ids else [],
        )
        return receipt

    async def _minted_range(
        self, collection: Collection, receipt: TxReceipt, expected: int
    ) -> Optional[IdRange]:
        events = await self.ledger.minted_events(
            collection, self.session.sender, receipt.block_number, receipt.block_number
        )
        event = next((e for e in events if e.tx_hash == receipt.tx_hash), None)
        if event is None:
            if expected:
                raise InvariantViolation(
                    f"No {collection.value} mint event found for transaction {receipt.tx_hash}"
                )
            return None
        if event.end_id_excl - event.start_id_incl != expected:
            raise InvariantViolation(
                f"{collection.value} mint event covers ids "
                f"[{event.start_id_incl}, {event.end_id_excl}), expected {expected} ids"
            )
        if expected == 0:
            return None
        return IdRange(start_id_incl=event.start_id_incl, end_id_excl=event.end_id_excl)
