"""Main entry point for the wikidump command line."""

import click

from wikidump import __version__
from wikidump.cli.analyze import analyze
from wikidump.cli.extract import extract
from wikidump.utils.config import Config
from wikidump.utils.logger import configure_logging


@click.group()
@click.version_option(__version__)
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
def cli(log_level: str | None) -> None:
    """Stream pages out of MediaWiki XML dumps and analyze their wikitext."""
    configure_logging(log_level or Config.get_optional("LOG_LEVEL", "INFO") or "INFO")


cli.add_command(extract)
cli.add_command(analyze)


if __name__ == "__main__":
    cli()
