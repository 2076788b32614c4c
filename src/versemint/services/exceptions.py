"""Exceptions raised by the versemint pipeline.

Every exception derives from MintError and is terminal for the current run:
recovery means a new run with a corrected mint spec or fresh secrets.
"""

from typing import Optional


class MintError(Exception):
    """Base class for all mint pipeline failures."""


class ConfigError(MintError):
    """Raised when the mint spec is malformed. Nothing is submitted.

    Attributes:
        item_index: Index of the offending phrase or verse, if any
        message: Human-readable error message
    """

    def __init__(self, message: str, item_index: Optional[int] = None):
        self.item_index = item_index
        self.message = message
        super().__init__(message)


class InvalidMintConfig(ConfigError):
    """Mint spec file does not have the expected shape."""


class PhraseEmpty(ConfigError):
    def __init__(self, index: int):
        super().__init__(f"Phrase {index} is empty.", index)


class PhraseTooLong(ConfigError):
    def __init__(self, index: int, byte_length: int):
        self.byte_length = byte_length
        super().__init__(
            f"Phrase {index} is {byte_length} bytes as UTF-8 and does not fit "
            f"into a 32-byte slot.",
            index,
        )


class EmptyVerse(ConfigError):
    def __init__(self, index: int):
        super().__init__(f"Verse {index} must not be empty.", index)


class SingleElementVerse(ConfigError):
    def __init__(self, index: int):
        super().__init__(f"Verse {index} must have more than one element.", index)


class BadPhraseRef(ConfigError):
    def __init__(self, index: int, element_index: int, value: int):
        self.element_index = element_index
        self.value = value
        super().__init__(
            f"Verse {index} element {element_index} refers to a new phrase "
            f"by invalid index: {value}",
            index,
        )


class ForwardOrSelfVerseRef(ConfigError):
    def __init__(self, index: int, position: int, value: int, field: str = "element"):
        self.position = position
        self.value = value
        self.field = field
        super().__init__(
            f"Verse {index} {field} {position} refers to a new verse "
            f"by invalid index: {value}",
            index,
        )


class InvariantViolation(MintError):
    """Ledger state contradicts protocol assumptions.

    Indicates a disagreement between the ledger and this client; never
    recoverable within the run.
    """


class ContentMismatch(MintError):
    """Locally derived verse content differs from the declared content.

    Attributes:
        verse_index: Index of the verse in the mint spec
        expected: Content declared in the mint spec
        actual: Content derived from the batch and the ledger snapshot
    """

    def __init__(self, verse_index: int, expected: str, actual: str):
        self.verse_index = verse_index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected content of verse {verse_index} differs from resolved "
            f"content of verse to be minted: expected {expected!r}, "
            f"resolved {actual!r}"
        )


class DeploymentLookupError(MintError, LookupError):
    """No deployment entry exists for the active chain."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"Failed to retrieve deployments for chain id: {chain_id}")


class InvalidDeployments(MintError):
    """Deployment registry file does not have the expected shape."""


class ProtocolTimingFault(MintError):
    """Commit-reveal timing broke down (lost transaction, early reveal, bad state)."""


class NetworkFault(MintError):
    """A ledger read or write failed or was reverted.

    Attributes:
        method: Ledger operation that failed
    """

    def __init__(self, method: str, message: str):
        self.method = method
        self.message = message
        super().__init__(f"{method}: {message}")
