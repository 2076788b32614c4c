"""Shared test fixtures for all test modules."""

import pytest
from structlog.testing import capture_logs

from versemint.ledger.memory import InMemoryLedger
from versemint.models.mint_config import MintConfig
from versemint.services.pipeline import plan_mint

SENDER = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@pytest.fixture(autouse=True)
def log_events():
    """Capture structlog events instead of printing them to stdout."""
    with capture_logs() as events:
        yield events


@pytest.fixture
def sender():
    """Submitter address used for commits and mints."""
    return SENDER


@pytest.fixture
def ledger():
    """
    Fresh in-memory ledger with a 60 second commitment age and time travel.

    Tests seed it with existing phrases and verses as needed.
    """
    return InMemoryLedger()


@pytest.fixture
def plan(ledger):
    """Async helper that validates and plans a mint spec dict against `ledger`."""

    async def _plan(data):
        return await plan_mint(ledger, MintConfig.parse_data(data))

    return _plan
