"""Per-page indexing loop built on the streaming extractor."""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote_plus

import structlog

from wikidump.ingestion.dump_source import DumpSource
from wikidump.ingestion.models import PageRecord
from wikidump.ingestion.wiki_xml_parser import PageAction, WikiXMLParser
from wikidump.utils.exceptions import IndexingAbortedError

ELLIPSIS = "..."

logger = structlog.get_logger(__name__)


def strip_title(title: str) -> str:
    """Remove trailing newlines and spaces left over from the dump layout."""
    return title.rstrip("\n ")


def abbreviate(text: str, max_length: int) -> str:
    """Shorten ``text`` to ``max_length`` characters, ending in ``...``.

    Args:
        text: Text to shorten
        max_length: Maximum length of the result, at least 4

    Raises:
        ValueError: If max_length is too small to hold the ellipsis
    """
    if max_length <= len(ELLIPSIS):
        raise ValueError(f"max_length must be greater than {len(ELLIPSIS)}, got {max_length}")
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def encode_title(title: str) -> str:
    """Form-encode a title, leaving ``*`` as is and escaping ``~``.

    This is the classic ``application/x-www-form-urlencoded`` alphabet, where
    only letters, digits and ``-_.*`` stay literal.
    """
    return quote_plus(title, safe="*").replace("~", "%7E")


def build_document(page: PageRecord, max_digest_length: int = 100) -> dict[str, Any]:
    """Map a page to the flat document handed to a sink.

    Args:
        page: Extracted page
        max_digest_length: Maximum length of the ``digest`` field

    Returns:
        Dictionary with id, title, content, encoded_title, digest, format,
        model and timestamp (ISO 8601 or None)
    """
    title = strip_title(page.title)
    content = page.text()
    return {
        "id": page.id,
        "title": title,
        "content": content,
        "encoded_title": encode_title(title),
        "digest": abbreviate(content, max_digest_length),
        "format": page.format,
        "model": page.model,
        "timestamp": page.timestamp.isoformat() if page.timestamp else None,
    }


@dataclass
class IndexingStatistics:
    """Statistics for one indexing run.

    Attributes:
        pages_processed: Pages handed to the sink successfully
        pages_failed: Pages whose document could not be built or stored
        failures: (page id, error class name) for every failed page
        stopped_at: Page id at which the run was stopped early, if any
        start_time: Start time as unix timestamp
        end_time: End time as unix timestamp
        duration_seconds: Total processing duration
    """

    pages_processed: int = 0
    pages_failed: int = 0
    failures: list[tuple[str | None, str]] = field(default_factory=list)
    stopped_at: str | None = None
    start_time: float = 0.0
    end_time: float = 0.0
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to dictionary for JSON serialization."""
        return {
            "pages_processed": self.pages_processed,
            "pages_failed": self.pages_failed,
            "failures": [{"id": page_id, "error": error} for page_id, error in self.failures],
            "stopped_at": self.stopped_at,
            "duration_seconds": int(self.duration_seconds),
            "start_time": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.start_time)),
            "end_time": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(self.end_time)),
        }


class IndexingPipeline:
    """Builds a document for every page of a dump and passes it to a sink.

    A failing page is logged and counted but does not end the run. The run
    ends early when ``limit`` pages have been handled or when the sink raises
    :class:`IndexingAbortedError`.
    """

    def __init__(
        self,
        sink: Callable[[dict[str, Any]], None],
        limit: int = 0,
        max_digest_length: int = 100,
        read_interval: float = 0.0,
        parser: WikiXMLParser | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            sink: Receives one document per page
            limit: Stop after this many pages (0 = no limit)
            max_digest_length: Maximum length of the digest field
            read_interval: Seconds to pause after a failed page
            parser: Extractor to use (a new WikiXMLParser by default)
        """
        self.sink = sink
        self.limit = limit
        self.max_digest_length = max_digest_length
        self.read_interval = read_interval
        self.parser = parser or WikiXMLParser()
        self.stats = IndexingStatistics()
        self.logger = logger.bind(component="indexing_pipeline")

    def run(self, source: DumpSource) -> IndexingStatistics:
        """Index every page of ``source``.

        Args:
            source: Dump to read

        Returns:
            IndexingStatistics for this run

        Raises:
            DumpSourceError: If the dump cannot be read or parsed
        """
        self.stats = IndexingStatistics(start_time=time.time())
        self.logger.info("indexing_started", locator=source.locator, limit=self.limit)

        try:
            result = self.parser.extract(source, self._process_page)
            self.stats.stopped_at = result.stopped_at
        finally:
            self.stats.end_time = time.time()
            self.stats.duration_seconds = self.stats.end_time - self.stats.start_time

        self.logger.info("indexing_complete", **self.stats.to_dict())
        return self.stats

    def _process_page(self, page: PageRecord) -> PageAction:
        try:
            document = build_document(page, self.max_digest_length)
            self.logger.debug("document_prepared", page_id=page.id, title=document["title"])
            self.sink(document)
            self.stats.pages_processed += 1
        except IndexingAbortedError as e:
            self.logger.info("indexing_aborted", page_id=page.id, reason=e.message)
            return PageAction.STOP
        except Exception as e:
            self.logger.warning(
                "page_indexing_failed",
                page_id=page.id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self.stats.pages_failed += 1
            self.stats.failures.append((page.id, type(e).__name__))
            if self.read_interval > 0:
                time.sleep(self.read_interval)

        handled = self.stats.pages_processed + self.stats.pages_failed
        if self.limit > 0 and handled >= self.limit:
            self.logger.info("indexing_limit_reached", handled=handled, limit=self.limit)
            return PageAction.STOP
        return PageAction.CONTINUE
