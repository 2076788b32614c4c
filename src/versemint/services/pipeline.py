"""Wiring of the mint stages: ledger connection, validation and planning."""

from versemint.ledger.base import Ledger, LedgerSnapshot
from versemint.ledger.http import HttpLedger
from versemint.models.config import Config
from versemint.models.deployments import DeploymentsInfo
from versemint.models.mint_config import MintConfig
from versemint.models.prepared import PreparedBatch
from versemint.services.planner import BatchPlanner
from versemint.services.validator import validate_config
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


async def open_ledger(config: Config) -> Ledger:
    """
    Connect to the configured ledger and bind it to this chain's deployments.

    Raises:
        NetworkFault: If the chain id cannot be read
        FileNotFoundError: If the network's deployments file is missing
        InvalidDeployments: If the deployments file is malformed
        DeploymentLookupError: If the file has no entry for the chain
    """
    ledger = HttpLedger(config.ledger)
    try:
        chain_id = await ledger.chain_id()
        registry = DeploymentsInfo.load(config.deployments.registry_path(config.ledger.network))
        ledger.bind(registry.for_chain(chain_id))
    except BaseException:
        await ledger.aclose()
        raise
    logger.info("ledger_opened", network=config.ledger.network, chain_id=chain_id)
    return ledger


async def plan_mint(ledger: Ledger, mint_config: MintConfig) -> PreparedBatch:
    """Validate the mint spec, pin the ledger and plan the batch.

    Validation runs before the first ledger read; the snapshot is captured
    once and used for every read of the plan.
    """
    validation = validate_config(mint_config)
    snapshot = await LedgerSnapshot.capture(ledger)
    logger.info("snapshot_captured", height=snapshot.height)
    return await BatchPlanner(snapshot).plan(mint_config, validation)
