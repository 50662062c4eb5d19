"""Typer CLI root application with serve and consume commands."""

import asyncio

import typer

from dataset_export.core.config import get_settings
from dataset_export.core.logging import setup_logging

app = typer.Typer(name="dataset-export", help="Image dataset export service CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run(
        "dataset_export.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def consume() -> None:
    """Consume export-created events and process each export."""
    asyncio.run(_consume())


async def _consume() -> None:
    """Async implementation of consume."""
    from dataset_export.core.components import build_components

    settings = get_settings()
    async with build_components(settings, start_producer=False) as components:
        consumer = components.create_consumer()
        typer.echo(f"Consuming {settings.kafka_export_created_topic} as {settings.kafka_consumer_group}")
        await consumer.run()


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from dataset_export.cli.db_cmd import db_app
    from dataset_export.cli.jobs_cmd import jobs_app
    from dataset_export.cli.storage_cmd import storage_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(jobs_app, name="jobs", help="Periodic maintenance jobs")
    app.add_typer(storage_app, name="storage", help="Object storage commands")


_register_subcommands()
