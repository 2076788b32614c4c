"""Operator-facing output for CLI operations."""

import click

from versemint.models.prepared import PreparedBatch
from versemint.models.session import MintResult


def show_signer(chain_id: int, address: str) -> None:
    click.echo(f"Signing on chain id {chain_id} as {address}")


def show_plan(batch: PreparedBatch) -> None:
    """Show what a batch will and will not mint.

    Args:
        batch: Planned and verified batch
    """
    click.echo(f"\nPlanned against block {batch.snapshot_height}")
    if batch.new_phrases:
        click.echo("The following phrases will be minted:")
        for phrase in batch.new_phrases:
            click.echo(f"  + {phrase!r}")
    if batch.existing_phrases:
        click.echo("The following phrases already exist and will not be minted:")
        for phrase in batch.existing_phrases:
            click.echo(f"  = {phrase!r}")
    if batch.verse_contents:
        click.echo("Verses containing the following content will be minted:")
        for i, content in enumerate(batch.verse_contents):
            click.echo(f"  {i}: {content!r}")


def show_committing() -> None:
    click.echo(
        "\nBefore minting, the phrases and/or verses are committed. "
        "This helps to prevent front-running."
    )


def show_result(result: MintResult) -> None:
    """Show minted ids and their token URIs."""
    click.echo("\n✓ Minted successfully")
    if result.phrase_ids:
        click.echo(f"Minted phrase ids: {result.phrase_ids.ids()}")
        for token_id, uri in result.phrase_token_uris.items():
            click.echo(f"  phrase {token_id}: {uri}")
    if result.verse_ids:
        click.echo(f"Minted verse ids: {result.verse_ids.ids()}")
        for token_id, uri in result.verse_token_uris.items():
            click.echo(f"  verse {token_id}: {uri}")


def show_error(message: str) -> None:
    click.echo(f"Error: {message}", err=True)


def show_warning(message: str) -> None:
    click.echo(f"Warning: {message}", err=True)
