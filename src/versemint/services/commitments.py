"""Canonical encodings and commitment hashing.

Phrase content lives in a fixed 32-byte slot: UTF-8 bytes, NUL-terminated,
right-padded with zeros. Element kind tags, verse values and commitments
are Keccak-256 digests rendered as 0x-prefixed hex, matching what the
minting contracts compute on chain.
"""

import secrets
from typing import Iterable

from eth_abi import encode
from eth_abi.packed import encode_packed
from web3 import Web3

SLOT_SIZE = 32

# Longest phrase that still leaves room for the NUL terminator
MAX_PHRASE_BYTES = SLOT_SIZE - 1

ADDRESS_SIZE = 20

ELEMENTS_ABI_TYPE = "(bytes32,uint256)[]"


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


def _unhex(value: str, size: int | None = None) -> bytes:
    raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
    if size is not None and len(raw) != size:
        raise ValueError(f"Expected {size} bytes, got {len(raw)}: {value}")
    return raw


def hash_bytes(data: bytes) -> str:
    """Keccak-256 digest of data as 0x-prefixed hex."""
    return Web3.to_hex(Web3.keccak(data))


def hash_name(name: str) -> str:
    """Kind tag for a name: digest of its UTF-8 bytes."""
    return Web3.to_hex(Web3.keccak(text=name))


PHRASE_ID_EL_KIND = hash_name("PHRASE_ID_EL_KIND")
VERSE_ID_EL_KIND = hash_name("VERSE_ID_EL_KIND")
NEW_PHRASE_IDX_EL_KIND = hash_name("NEW_PHRASE_IDX_EL_KIND")
NEW_VERSE_IDX_EL_KIND = hash_name("NEW_VERSE_IDX_EL_KIND")

ELEMENT_KINDS = {
    PHRASE_ID_EL_KIND: "phraseId",
    VERSE_ID_EL_KIND: "verseId",
    NEW_PHRASE_IDX_EL_KIND: "newPhraseIndex",
    NEW_VERSE_IDX_EL_KIND: "newVerseIndex",
}


def format_bytes32(text: str) -> str:
    """
    Encode text into its 32-byte content slot.

    Raises:
        ValueError: If the UTF-8 encoding is longer than MAX_PHRASE_BYTES
    """
    raw = text.encode("utf-8")
    if len(raw) > MAX_PHRASE_BYTES:
        raise ValueError(f"bytes32 string must be less than 32 bytes, got {len(raw)}")
    return _hex(raw.ljust(SLOT_SIZE, b"\x00"))


def parse_bytes32(slot: str) -> str:
    """
    Decode a 32-byte content slot back into text.

    Raises:
        ValueError: If the slot has no NUL terminator or is not 32 bytes
    """
    raw = _unhex(slot, SLOT_SIZE)
    end = raw.find(b"\x00")
    if end == -1:
        raise ValueError("Invalid bytes32 string - no null terminator")
    return raw[:end].decode("utf-8")


def encode_elements(pairs: Iterable[tuple[str, int]]) -> bytes:
    """ABI encoding of an ordered list of (kind tag, value) pairs as one
    `(bytes32,uint256)[]` argument."""
    return encode(
        [ELEMENTS_ABI_TYPE],
        [[(_unhex(kind, SLOT_SIZE), value) for kind, value in pairs]],
    )


def verse_protected_value(pairs: Iterable[tuple[str, int]]) -> str:
    """Value committed to for a verse: digest of its encoded elements."""
    return hash_bytes(encode_elements(pairs))


def make_commitment(sender: str, value: str, secret: str) -> str:
    """Commitment binding a submitter, a 32-byte value and a 32-byte secret.

    Keccak-256 over the tightly packed (address, bytes32, bytes32).
    """
    return hash_bytes(
        encode_packed(
            ["address", "bytes32", "bytes32"],
            [
                _unhex(sender, ADDRESS_SIZE),
                _unhex(value, SLOT_SIZE),
                _unhex(secret, SLOT_SIZE),
            ],
        )
    )


def new_secret() -> str:
    """Fresh 32-byte secret from the OS CSPRNG."""
    return _hex(secrets.token_bytes(32))
