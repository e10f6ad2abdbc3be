"""Wiki XML parser for streaming MediaWiki XML exports."""

from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum

import structlog
from lxml import etree

from wikidump.ingestion.dump_source import DumpSource
from wikidump.ingestion.models import PageRecord
from wikidump.ingestion.page_handler import PageEventHandler
from wikidump.utils.exceptions import DumpParseError

PROGRESS_INTERVAL = 1000

logger = structlog.get_logger(__name__)


class PageAction(Enum):
    """What a page callback wants the extractor to do next."""

    CONTINUE = "continue"
    STOP = "stop"


class ExtractionStatus(Enum):
    """How an extraction pass ended without a source failure."""

    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of :meth:`WikiXMLParser.extract`.

    Attributes:
        status: COMPLETED when the dump was read to the end, STOPPED when the
            callback asked to stop
        pages_processed: Number of pages handed to the callback
        stopped_at: Id of the page whose callback requested the stop
    """

    status: ExtractionStatus
    pages_processed: int
    stopped_at: str | None = None

    @property
    def stopped(self) -> bool:
        return self.status is ExtractionStatus.STOPPED


PageCallback = Callable[[PageRecord], PageAction | None]


class WikiXMLParser:
    """Streaming extractor for MediaWiki XML exports.

    Bytes from a :class:`DumpSource` are pushed into an lxml feed parser whose
    target assembles one :class:`PageRecord` per ``<page>`` element. Only the
    page under construction (plus the pages finished by the current chunk) is
    held in memory, so memory use does not grow with the dump.
    """

    def __init__(self) -> None:
        """Initialize the WikiXMLParser."""
        self.logger = logger.bind(component="wiki_xml_parser")
        self.pages_extracted = 0

    def iter_pages(self, source: DumpSource) -> Iterator[PageRecord]:
        """Yield pages from ``source`` in document order.

        The generator owns ``source`` for its lifetime: it is opened on the
        first ``next()`` and closed when the generator finishes, is closed or
        is garbage collected. It cannot be restarted.

        Input is read one chunk (``source.chunk_size`` bytes, 64 KiB by
        default) at a time, so the parser may run up to one chunk ahead of the
        consumer: pages completed by that chunk are queued and handed out one
        by one before the next read. A consumer that stops early discards the
        queued pages unseen; nothing beyond the current chunk is read.

        Args:
            source: Dump to read

        Yields:
            PageRecord for each completed page element

        Raises:
            DumpSourceError: If the dump cannot be read or decompressed
            DumpParseError: If the markup is malformed or truncated
        """
        pending: deque[PageRecord] = deque()
        handler = PageEventHandler(pending.append)
        parser = etree.XMLParser(
            target=handler,
            resolve_entities=False,
            no_network=True,
            huge_tree=True,
        )

        self.logger.info("extraction_started", locator=source.locator)
        with source:
            for chunk in source.iter_chunks():
                self._feed(parser, chunk, source)
                while pending:
                    yield self._count(pending.popleft())

            self._close_parser(parser, source)
            while pending:
                yield self._count(pending.popleft())

        self.logger.info("extraction_complete", pages_extracted=self.pages_extracted)

    def extract(self, source: DumpSource, callback: PageCallback) -> ExtractionResult:
        """Run ``callback`` on every page of ``source``.

        The callback runs synchronously; the next page is not read until it
        returns. Returning ``PageAction.STOP`` ends the pass without reading
        further. Exceptions raised by the callback propagate unchanged.

        Args:
            source: Dump to read
            callback: Called with each page; returns a PageAction or None

        Returns:
            ExtractionResult describing a completed or stopped pass

        Raises:
            DumpSourceError: If the dump cannot be read or decompressed
            DumpParseError: If the markup is malformed or truncated
        """
        pages = self.iter_pages(source)
        processed = 0
        try:
            for page in pages:
                action = callback(page)
                processed += 1
                if action is PageAction.STOP:
                    self.logger.info(
                        "extraction_stopped", page_id=page.id, pages_processed=processed
                    )
                    return ExtractionResult(
                        status=ExtractionStatus.STOPPED,
                        pages_processed=processed,
                        stopped_at=page.id,
                    )
        finally:
            pages.close()

        return ExtractionResult(status=ExtractionStatus.COMPLETED, pages_processed=processed)

    def _count(self, page: PageRecord) -> PageRecord:
        self.pages_extracted += 1
        if self.pages_extracted % PROGRESS_INTERVAL == 0:
            self.logger.info("extraction_progress", pages_extracted=self.pages_extracted)
        return page

    def _feed(self, parser: etree.XMLParser, chunk: bytes, source: DumpSource) -> None:
        try:
            parser.feed(chunk)
        except etree.XMLSyntaxError as e:
            self.logger.error("xml_syntax_error", locator=source.locator, error=str(e))
            raise DumpParseError(f"Could not parse wiki dump {source.locator}: {e}") from e

    def _close_parser(self, parser: etree.XMLParser, source: DumpSource) -> None:
        try:
            parser.close()
        except etree.XMLSyntaxError as e:
            self.logger.error("xml_syntax_error", locator=source.locator, error=str(e))
            raise DumpParseError(f"Could not parse wiki dump {source.locator}: {e}") from e
