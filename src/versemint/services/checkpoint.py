"""Persisting commit-reveal sessions.

A checkpoint is the session serialized as JSON. It holds secrets, so it is
written owner-only and replaced atomically on every transition.
"""

import os
from pathlib import Path

from pydantic import ValidationError

from versemint.models.session import MintSession
from versemint.services.exceptions import ProtocolTimingFault
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


def atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to file with temp-file-rename pattern.

    1. Write to a temporary file in the same directory (mode 0600)
    2. fsync to ensure data is on disk
    3. Atomic rename to replace the original file

    Raises:
        OSError: On file I/O errors
    """
    temp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"

    try:
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        # On POSIX systems, this is atomic even if target exists
        temp_path.replace(path)

        logger.debug("atomic_write_success", path=str(path), size=len(content))

    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        logger.error("atomic_write_failed", path=str(path), error=str(e))
        raise


def save_session(session: MintSession, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    atomic_write(path, session.model_dump_json(indent=2))
    logger.debug("session_checkpointed", path=str(path), state=session.state.value)


def load_session(path: Path) -> MintSession:
    """
    Load a session checkpoint.

    Raises:
        FileNotFoundError: If the checkpoint does not exist
        ProtocolTimingFault: If the checkpoint is unreadable, since its
            secrets can no longer be trusted
    """
    text = path.read_text(encoding="utf-8")
    try:
        return MintSession.model_validate_json(text)
    except ValidationError as e:
        raise ProtocolTimingFault(f"Checkpoint {path} is corrupt: {e}") from e
