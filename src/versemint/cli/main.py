#!/usr/bin/env python3
"""versemint CLI - commit-reveal minting of phrases and verses.

This is the main entry point for the versemint command-line tool.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from versemint import __version__
from versemint.cli import progress
from versemint.config.loader import load_config
from versemint.ledger.base import Ledger, LedgerSnapshot
from versemint.models.config import Config
from versemint.models.ledger import Collection
from versemint.models.mint_config import MintConfig
from versemint.models.session import MintResult, MintState
from versemint.services.coordinator import CommitRevealCoordinator
from versemint.services.exceptions import MintError
from versemint.services.pipeline import open_ledger, plan_mint
from versemint.services.resolver import ContentResolver
from versemint.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

SESSIONS_DIR = Path.home() / ".cache" / "versemint" / "sessions"


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (default: ~/.config/versemint/config.yaml)",
)
@click.option("--verbose", is_flag=True, help="Show tracebacks on failure")
@click.version_option(__version__, prog_name="versemint")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool):
    """versemint - mint phrase and verse tokens with commit-reveal.

    Validates a mint spec, checks every verse's content against the ledger
    before anything is written, then commits, waits out the commitment age
    and reveals.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


def _load_config(ctx: click.Context) -> Config:
    try:
        config = load_config(ctx.obj["config_path"])
    except FileNotFoundError as e:
        progress.show_error(str(e))
        ctx.exit(1)
    except (PermissionError, ValueError) as e:
        progress.show_error(f"Failed to load configuration: {e}")
        ctx.exit(1)
    configure_logging()
    return config


def _run(ctx: click.Context, coro) -> None:
    """Run a command coroutine, turning pipeline failures into exit code 1."""
    try:
        asyncio.run(coro)
    except (MintError, OSError, ValueError) as e:
        logger.error("command_failed", error_type=type(e).__name__, error=str(e))
        progress.show_error(str(e))
        if ctx.obj["verbose"]:
            import traceback

            traceback.print_exc()
        ctx.exit(1)


def _default_checkpoint(spec: Path) -> Path:
    stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    return SESSIONS_DIR / f"{spec.stem}-{stamp}.json"


async def _finish(coordinator: CommitRevealCoordinator) -> MintResult:
    if coordinator.checkpoint_path is not None:
        click.echo(f"Session checkpoint: {coordinator.checkpoint_path}")
    progress.show_committing()
    result = await coordinator.run()
    progress.show_result(result)
    return result


@cli.command()
@click.option(
    "-s", "--spec",
    "spec_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file containing the mint spec",
)
@click.option("--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--checkpoint",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Where to keep the session for resuming (default: ~/.cache/versemint/sessions/)",
)
@click.pass_context
def mint(ctx: click.Context, spec_path: Path, assume_yes: bool, checkpoint: Optional[Path]):
    """Validate, plan and mint the batch described by a mint spec.

    Examples:
        versemint mint --spec mint.json
        versemint mint --spec mint.json --yes --checkpoint session.json
    """
    config = _load_config(ctx)

    async def run() -> None:
        mint_config = MintConfig.load(spec_path)
        ledger = await open_ledger(config)
        try:
            progress.show_signer(await ledger.chain_id(), config.minter.address)
            batch = await plan_mint(ledger, mint_config)
            progress.show_plan(batch)
            if batch.is_empty:
                progress.show_warning("Nothing to mint: every phrase already exists and there are no verses.")
                return
            if not assume_yes and not click.confirm("\nDo you want to proceed?"):
                click.echo("Aborted before committing.")
                return
            coordinator = CommitRevealCoordinator.from_batch(
                ledger,
                batch,
                config.minter.address,
                checkpoint_path=checkpoint or _default_checkpoint(spec_path),
            )
            await _finish(coordinator)
        finally:
            await ledger.aclose()

    _run(ctx, run())


@cli.command()
@click.option(
    "-s", "--spec",
    "spec_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file containing the mint spec",
)
@click.pass_context
def check(ctx: click.Context, spec_path: Path):
    """Validate and plan a mint spec without writing anything.

    Examples:
        versemint check --spec mint.json
    """
    config = _load_config(ctx)

    async def run() -> None:
        mint_config = MintConfig.load(spec_path)
        ledger = await open_ledger(config)
        try:
            batch = await plan_mint(ledger, mint_config)
        finally:
            await ledger.aclose()
        progress.show_plan(batch)
        click.echo("\n✓ Mint spec is consistent with the ledger")

    _run(ctx, run())


@cli.command()
@click.argument("kind", type=click.Choice(["phrase", "verse"]))
@click.argument("node_id", type=click.IntRange(min=0))
@click.option("--block", type=click.IntRange(min=0), default=None, help="Block height (default: latest)")
@click.pass_context
def resolve(ctx: click.Context, kind: str, node_id: int, block: Optional[int]):
    """Print the content of a phrase or verse.

    Examples:
        versemint resolve verse 12
        versemint resolve phrase 3 --block 1500
    """
    config = _load_config(ctx)

    async def run() -> None:
        ledger: Ledger = await open_ledger(config)
        try:
            if block is None:
                snapshot = await LedgerSnapshot.capture(ledger)
            else:
                snapshot = LedgerSnapshot(ledger, block)
            resolver = await ContentResolver.create(snapshot)
            collection = Collection.PHRASES if kind == "phrase" else Collection.VERSES
            content = await resolver.resolve(node_id, collection)
        finally:
            await ledger.aclose()
        click.echo(content)

    _run(ctx, run())


@cli.command()
@click.argument("checkpoint", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def resume(ctx: click.Context, checkpoint: Path, assume_yes: bool):
    """Continue a mint session interrupted after its commit.

    Examples:
        versemint resume ~/.cache/versemint/sessions/mint-20260101T120000.json
    """
    config = _load_config(ctx)

    async def run() -> None:
        ledger = await open_ledger(config)
        try:
            coordinator = CommitRevealCoordinator.resume(ledger, checkpoint)
            click.echo(f"Resuming session in state: {coordinator.state.value}")
            if (
                coordinator.state is not MintState.MINTED
                and not assume_yes
                and not click.confirm("Do you want to continue?")
            ):
                click.echo("Session left as it was.")
                return
            await _finish(coordinator)
        finally:
            await ledger.aclose()

    _run(ctx, run())


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
