"""CLI command for extracting page documents from a wiki dump."""

import json
from typing import TYPE_CHECKING, Any

import click
import structlog
from tqdm import tqdm

from wikidump.ingestion.dump_source import DumpSource
from wikidump.ingestion.pipeline import IndexingPipeline
from wikidump.utils.config import MIN_DIGEST_LENGTH, Config
from wikidump.utils.exceptions import ConfigurationError, DumpSourceError

if TYPE_CHECKING:
    from wikidump.ingestion.pipeline import IndexingStatistics

logger = structlog.get_logger(__name__)


def _display_summary(stats: "IndexingStatistics") -> None:
    """Display run summary on stderr."""
    click.echo(err=True)
    click.echo("=" * 60, err=True)
    click.echo("Extraction Complete!", err=True)
    click.echo("=" * 60, err=True)
    click.echo(f"  Pages Processed: {stats.pages_processed}", err=True)
    click.echo(f"  Pages Failed: {stats.pages_failed}", err=True)
    if stats.stopped_at is not None:
        click.echo(f"  Stopped At Page: {stats.stopped_at}", err=True)
    click.echo(f"  Duration: {int(stats.duration_seconds)}s", err=True)


@click.command()
@click.argument("locator", required=False)
@click.option(
    "--output",
    "-o",
    default="-",
    show_default=True,
    help="JSON Lines output file ('-' for stdout)",
)
@click.option("--limit", type=int, default=None, help="Stop after this many pages (0 = all)")
@click.option(
    "--max-digest-length",
    type=click.IntRange(min=MIN_DIGEST_LENGTH),
    default=None,
    help="Maximum length of the digest field (default: 100)",
)
@click.option(
    "--total-entity-size-limit",
    type=click.IntRange(min=0),
    default=None,
    help="Maximum decompressed bytes to read, 0 disables (default: 100000000)",
)
@click.option(
    "--read-interval",
    type=float,
    default=None,
    help="Seconds to pause after a failed page (default: 0)",
)
@click.option("--no-progress", is_flag=True, help="Disable the progress bar")
def extract(  # noqa: PLR0913
    locator: str | None,
    output: str,
    limit: int | None,
    max_digest_length: int | None,
    total_entity_size_limit: int | None,
    read_interval: float | None,
    no_progress: bool,
) -> None:
    """Extract one JSON document per page from a MediaWiki XML dump.

    LOCATOR is a path or URL; ``.gz`` and ``.bz2`` dumps are decompressed on
    the fly. Unset options fall back to WIKIDUMP_* environment variables.

    Examples:

        \b
        # First 10 pages of a local dump
        wikidump extract enwiki-latest-pages-articles.xml.bz2 --limit 10

        \b
        # Whole dump to a file
        wikidump extract dump.xml.gz -o pages.jsonl
    """
    try:
        config = Config()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise click.Abort() from e

    locator = locator or config.dump_url
    source = DumpSource(
        locator,
        total_size_limit=(
            config.total_entity_size_limit
            if total_entity_size_limit is None
            else total_entity_size_limit
        ),
    )
    click.echo(f"Extracting pages from: {locator}", err=True)

    with click.open_file(output, "w", encoding="utf-8") as out, tqdm(
        unit="page", disable=no_progress, file=click.get_text_stream("stderr")
    ) as progress:

        def write_document(document: dict[str, Any]) -> None:
            out.write(json.dumps(document, ensure_ascii=False) + "\n")
            progress.update(1)

        pipeline = IndexingPipeline(
            write_document,
            limit=config.limit if limit is None else limit,
            max_digest_length=(
                config.max_digest_length if max_digest_length is None else max_digest_length
            ),
            read_interval=config.read_interval if read_interval is None else read_interval,
        )

        try:
            stats = pipeline.run(source)
        except DumpSourceError as e:
            logger.error("extraction_failed", error=str(e), exc_info=True)
            click.echo(f"Error: {e}", err=True)
            raise click.Abort() from e
        except KeyboardInterrupt:
            click.echo("\nExtraction interrupted by user", err=True)
            raise click.Abort() from None

    _display_summary(stats)


if __name__ == "__main__":
    extract()
