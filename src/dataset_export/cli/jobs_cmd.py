"""Maintenance job CLI commands, meant to be run periodically by a scheduler."""

import asyncio

import typer

jobs_app = typer.Typer()


@jobs_app.command("delete-expired")
def delete_expired() -> None:
    """Delete exports whose expire time has passed."""
    deleted = asyncio.run(_delete_expired())
    typer.echo(f"Deleted {deleted} expired exports")


async def _delete_expired() -> int:
    from dataset_export.core.components import build_components
    from dataset_export.core.config import get_settings

    async with build_components(get_settings(), start_producer=False) as components:
        return await components.management.delete_expired_exports()


@jobs_app.command("republish-requested")
def republish_requested() -> None:
    """Republish trigger events of exports that are still REQUESTED."""
    published = asyncio.run(_republish_requested())
    typer.echo(f"Republished {published} requested exports")


async def _republish_requested() -> int:
    from dataset_export.core.components import build_components
    from dataset_export.core.config import get_settings

    async with build_components(get_settings()) as components:
        return await components.management.republish_requested_exports()
