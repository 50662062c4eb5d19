"""Export ledger migrations, driven through Alembic's command API."""

from typing import TYPE_CHECKING

import typer
from loguru import logger

if TYPE_CHECKING:
    from alembic.config import Config

db_app = typer.Typer()

ALEMBIC_CONFIG = "alembic.ini"

_config_option = typer.Option(ALEMBIC_CONFIG, "--config", "-c", help="Path to alembic.ini")


def _alembic_config(path: str) -> "Config":
    from alembic.config import Config

    return Config(path)


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    config: str = _config_option,
) -> None:
    """Migrate the export table forward to ``revision``."""
    from alembic import command

    logger.info("Upgrading database to {}", revision)
    command.upgrade(_alembic_config(config), revision)
    logger.info("Database now at {}", revision)


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    config: str = _config_option,
) -> None:
    """Roll the export table back to ``revision``."""
    from alembic import command

    logger.warning("Downgrading database to {}", revision)
    command.downgrade(_alembic_config(config), revision)
    logger.info("Database now at {}", revision)


@db_app.command()
def current(config: str = _config_option) -> None:
    """Print the revision the database is at."""
    from alembic import command

    command.current(_alembic_config(config), verbose=True)


@db_app.command()
def history(config: str = _config_option) -> None:
    """List known revisions, newest first."""
    from alembic import command

    command.history(_alembic_config(config))
