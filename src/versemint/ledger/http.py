"""JSON-RPC client for a ledger gateway.

The gateway exposes the two collection contracts as JSON-RPC 2.0 methods
named "<Collection>.<function>", with params
{"address": ..., "args": [...], "blockTag": ..., "from": ...}. It signs
writes for the "from" account and answers with the included receipt.
Development nodes also accept evm_setNextBlockTimestamp and evm_mine.

No request is retried: a failed write may or may not have been included,
and resubmitting commitments is a decision for the operator.
"""

import itertools
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from versemint.ledger.base import Ledger
from versemint.models.config import LedgerConfig
from versemint.models.deployments import ChainDeploymentsInfo
from versemint.models.ledger import Collection, LedgerVerse, MintedEvent, TxReceipt
from versemint.models.prepared import PreparedVerse
from versemint.services.commitments import parse_bytes32
from versemint.services.exceptions import NetworkFault
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


class HttpLedger(Ledger):
    """
    Ledger reached over HTTP.

    Create it unbound to read the chain id, then bind() it to that chain's
    deployments before using any collection method.
    """

    def __init__(
        self,
        config: LedgerConfig,
        deployments: Optional[ChainDeploymentsInfo] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.deployments = deployments
        self.supports_time_travel = config.time_travel
        self.timeout = httpx.Timeout(config.timeout, connect=10.0)
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._ids = itertools.count(1)

    def bind(self, deployments: ChainDeploymentsInfo) -> None:
        self.deployments = deployments

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpLedger":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _address(self, collection: Collection) -> str:
        if self.deployments is None:
            raise RuntimeError("HttpLedger is not bound to any deployments")
        if collection is Collection.PHRASES:
            return self.deployments.phrases.address
        return self.deployments.verses.address

    async def _rpc(self, method: str, params: Any, log_params: bool = True) -> Any:
        request_id = next(self._ids)
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}

        logger.debug(
            "ledger_rpc_request",
            request_id=request_id,
            method=method,
            params=params if log_params else "<redacted>",
        )

        try:
            response = await self._client.post(str(self.config.endpoint), json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error("ledger_rpc_failed", request_id=request_id, method=method, error=str(e))
            raise NetworkFault(method, str(e)) from e
        except ValueError as e:
            raise NetworkFault(method, f"invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise NetworkFault(method, "malformed JSON-RPC response")
        if data.get("error"):
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            logger.error("ledger_rpc_error", request_id=request_id, method=method, error=message)
            raise NetworkFault(method, message)

        return data.get("result")

    async def _call(
        self, collection: Collection, function: str, *args: Any, block: Optional[int] = None
    ) -> Any:
        params: dict[str, Any] = {"address": self._address(collection), "args": list(args)}
        if block is not None:
            params["blockTag"] = block
        return await self._rpc(f"{collection.value}.{function}", params)

    async def _send(
        self, collection: Collection, function: str, sender: str, *args: Any
    ) -> TxReceipt:
        method = f"{collection.value}.{function}"
        params = {"address": self._address(collection), "from": sender, "args": list(args)}
        result = await self._rpc(method, params, log_params=False)
        try:
            receipt = TxReceipt.model_validate(result)
        except ValidationError as e:
            raise NetworkFault(method, f"malformed receipt: {e}") from e
        logger.info(
            "ledger_tx_included",
            method=method,
            tx_hash=receipt.tx_hash,
            block=receipt.block_number,
            gas_used=receipt.gas_used,
        )
        return receipt

    @staticmethod
    def _as_int(method: str, value: Any) -> int:
        try:
            return int(value, 0) if isinstance(value, str) else int(value)
        except (TypeError, ValueError) as e:
            raise NetworkFault(method, f"expected an integer, got {value!r}") from e

    async def chain_id(self) -> int:
        return self._as_int("chainId", await self._rpc("chainId", []))

    async def block_number(self) -> int:
        return self._as_int("blockNumber", await self._rpc("blockNumber", []))

    async def block_timestamp(self, block: int) -> int:
        result = await self._rpc("getBlock", [block])
        if not isinstance(result, dict) or "timestamp" not in result:
            raise NetworkFault("getBlock", f"block {block} not found")
        return self._as_int("getBlock", result["timestamp"])

    async def get_phrase(self, phrase_id: int, block: int) -> str:
        slot = await self._call(Collection.PHRASES, "phrases", phrase_id, block=block)
        try:
            return parse_bytes32(slot)
        except (TypeError, ValueError) as e:
            raise NetworkFault("Phrases.phrases", f"invalid phrase slot {slot!r}: {e}") from e

    async def get_verse(self, verse_id: int, block: int) -> LedgerVerse:
        result = await self._call(Collection.VERSES, "getVerse", verse_id, block=block)
        try:
            return LedgerVerse.model_validate(result)
        except ValidationError as e:
            raise NetworkFault("Verses.getVerse", f"malformed verse: {e}") from e

    async def total_supply(self, collection: Collection, block: int) -> int:
        result = await self._call(collection, "totalSupply", block=block)
        return self._as_int(f"{collection.value}.totalSupply", result)

    async def phrase_id(self, slot: str, block: int) -> int:
        result = await self._call(Collection.PHRASES, "phraseIds", slot, block=block)
        return self._as_int("Phrases.phraseIds", result)

    async def min_commitment_age(self, collection: Collection, block: int) -> int:
        result = await self._call(collection, "MIN_COMMITMENT_AGE", block=block)
        return self._as_int(f"{collection.value}.MIN_COMMITMENT_AGE", result)

    async def commit_phrases(self, sender: str, commitments: list[str]) -> TxReceipt:
        return await self._send(Collection.PHRASES, "commit(bytes32[])", sender, commitments)

    async def commit(
        self,
        sender: str,
        phrase_commitments: list[str],
        verse_commitments: list[str],
    ) -> TxReceipt:
        return await self._send(
            Collection.VERSES,
            "commit(bytes32[],bytes32[])",
            sender,
            phrase_commitments,
            verse_commitments,
        )

    async def mint_phrases(self, sender: str, values: list[str], secrets: list[str]) -> TxReceipt:
        return await self._send(Collection.PHRASES, "mint(bytes32[],bytes32[])", sender, values, secrets)

    async def mint(
        self,
        sender: str,
        phrase_values: list[str],
        phrase_secrets: list[str],
        verses: list[PreparedVerse],
        verse_secrets: list[str],
    ) -> TxReceipt:
        return await self._send(
            Collection.VERSES,
            "mint",
            sender,
            phrase_values,
            phrase_secrets,
            [verse.model_dump() for verse in verses],
            verse_secrets,
        )

    async def minted_events(
        self, collection: Collection, sender: str, from_block: int, to_block: int
    ) -> list[MintedEvent]:
        event_name = "PhrasesMinted" if collection is Collection.PHRASES else "VersesMinted"
        method = f"{collection.value}.queryFilter"
        result = await self._call(collection, "queryFilter", event_name, sender, from_block, to_block)
        try:
            return [MintedEvent.model_validate(event) for event in result or []]
        except (TypeError, ValidationError) as e:
            raise NetworkFault(method, f"malformed {event_name} event: {e}") from e

    async def token_uri(self, collection: Collection, token_id: int) -> str:
        result = await self._call(collection, "tokenURI", token_id)
        if not isinstance(result, str):
            raise NetworkFault(f"{collection.value}.tokenURI", f"expected a string, got {result!r}")
        return result

    async def advance_time(self, timestamp: int) -> None:
        if not self.supports_time_travel:
            raise NotImplementedError("Time travel is disabled for this ledger")
        await self._rpc("evm_setNextBlockTimestamp", [timestamp])
        await self._rpc("evm_mine", [])
