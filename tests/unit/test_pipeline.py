"""Unit tests for ledger opening and planning wiring."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from versemint.models.config import Config, DeploymentsConfig, LedgerConfig, MinterConfig
from versemint.services.exceptions import DeploymentLookupError
from versemint.services.pipeline import open_ledger

PHRASES = "0x" + "aa" * 20
VERSES = "0x" + "bb" * 20


@pytest.fixture
def config(tmp_path):
    (tmp_path / "localhost.json").write_text(json.dumps({
        "31337": {"Phrases": {"address": PHRASES}, "Verses": {"address": VERSES}},
    }))
    return Config(
        ledger=LedgerConfig(endpoint="http://localhost:8545"),
        minter=MinterConfig(address="0x5FbDB2315678afecb367f032d93F642f64180aa3"),
        deployments=DeploymentsConfig(directory=str(tmp_path)),
    )


def fake_http_ledger(chain_id):
    ledger = Mock()
    ledger.chain_id = AsyncMock(return_value=chain_id)
    ledger.aclose = AsyncMock()
    return ledger


class TestOpenLedger:
    """Test connecting and binding to deployments."""

    @pytest.mark.asyncio
    async def test_binds_chain_deployments(self, config):
        ledger = fake_http_ledger(31337)
        with patch("versemint.services.pipeline.HttpLedger", return_value=ledger) as cls:
            opened = await open_ledger(config)

        assert opened is ledger
        cls.assert_called_once_with(config.ledger)
        bound = ledger.bind.call_args.args[0]
        assert bound.phrases.address == PHRASES
        ledger.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_chain_closes_ledger(self, config):
        ledger = fake_http_ledger(1)
        with patch("versemint.services.pipeline.HttpLedger", return_value=ledger):
            with pytest.raises(DeploymentLookupError):
                await open_ledger(config)

        ledger.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_registry_closes_ledger(self, config, tmp_path):
        (tmp_path / "localhost.json").unlink()
        ledger = fake_http_ledger(31337)
        with patch("versemint.services.pipeline.HttpLedger", return_value=ledger):
            with pytest.raises(FileNotFoundError):
                await open_ledger(config)

        ledger.aclose.assert_awaited_once()
