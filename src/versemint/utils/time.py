"""Waiting out the minimum commitment age."""

import asyncio
import time

from versemint.ledger.base import Ledger
from versemint.utils.logging import get_logger

logger = get_logger(__name__)


async def wait_for(ledger: Ledger, seconds: int, since_timestamp: int) -> None:
    """
    Wait until `seconds` have passed since `since_timestamp`.

    On a test network the ledger's clock is advanced directly by mining a
    block at the target time; on a live network this sleeps.
    """
    target = since_timestamp + seconds
    if ledger.supports_time_travel:
        latest = await ledger.block_timestamp(await ledger.block_number())
        if latest >= target:
            logger.info("commitment_age_elapsed", target_timestamp=target, block_timestamp=latest)
            return
        logger.info("ledger_time_advanced", target_timestamp=target)
        await ledger.advance_time(target)
        return

    remaining = max(0.0, target - time.time())
    logger.info("commitment_age_wait", seconds=round(remaining, 1), target_timestamp=target)
    await asyncio.sleep(remaining)


async def current_time(ledger: Ledger) -> int:
    """Time that a transaction submitted now would observe."""
    if ledger.supports_time_travel:
        return await ledger.block_timestamp(await ledger.block_number())
    return int(time.time())
