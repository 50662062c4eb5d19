"""Object storage CLI commands."""

import asyncio

import typer

storage_app = typer.Typer()


@storage_app.command("ensure-bucket")
def ensure_bucket() -> None:
    """Create the export bucket if it does not exist."""
    from dataset_export.core.config import get_settings
    from dataset_export.lib.storage import BlobStore, create_s3_client

    settings = get_settings()
    client = create_s3_client(
        endpoint_url=settings.s3_endpoint_url,
        access_key_id=settings.s3_access_key_id,
        secret_access_key=settings.s3_secret_access_key,
        region_name=settings.s3_region,
    )
    asyncio.run(BlobStore(client, settings.s3_export_bucket).ensure_bucket())
    typer.echo(f"Bucket {settings.s3_export_bucket} is ready")
