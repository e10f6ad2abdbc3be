"""Event-driven page assembly for MediaWiki XML exports."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

from wikidump.ingestion.models import PageRecord

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
PAGE_ELEMENT = "page"

logger = structlog.get_logger(__name__)


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix lxml puts on qualified tags."""
    if tag.startswith("{"):
        return tag.rpartition("}")[2]
    return tag


def parse_timestamp(value: str) -> datetime | None:
    """Parse a dump timestamp such as ``2023-01-15T10:30:00Z`` as UTC.

    Returns:
        Timezone-aware datetime, or None if ``value`` does not match
    """
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        logger.warning("timestamp_parse_failed", value=value)
        return None


@dataclass
class _PageBuffer:
    """Field accumulators for the page currently being built."""

    title: list[str] = field(default_factory=list)
    body: list[str] = field(default_factory=list)
    # Scalar fields collect the open element's text and commit on its end tag
    pending: dict[str, list[str]] = field(default_factory=dict)
    id: str | None = None
    format: str | None = None
    model: str | None = None
    timestamp: datetime | None = None

    def reset(self) -> None:
        self.title.clear()
        self.body.clear()
        self.pending.clear()
        self.id = None
        self.format = None
        self.model = None
        self.timestamp = None

    def snapshot(self) -> PageRecord:
        return PageRecord(
            title="".join(self.title),
            body="".join(self.body),
            id=self.id,
            format=self.format,
            model=self.model,
            timestamp=self.timestamp,
        )


class PageEventHandler:
    """lxml parser target that turns start/data/end events into PageRecords.

    Character data is routed by the most recently *opened* element. The
    current field is not cleared on an end tag, so whitespace between
    ``</title>`` and the next start tag still lands in the title; trimming is
    left to consumers.

    ``id`` is write-once per page: the page id precedes the revision id in
    exports and wins. ``format`` and ``model`` keep the last non-blank value.
    """

    _SCALAR_FIELDS = frozenset({"id", "format", "model", "timestamp"})

    def __init__(self, on_page: Callable[[PageRecord], Any]) -> None:
        """Initialize the handler.

        Args:
            on_page: Called synchronously with each finished page
        """
        self.on_page = on_page
        self.pages_built = 0
        self._buffer = _PageBuffer()
        self._in_page = False
        self._current_field: str | None = None

    @property
    def in_page(self) -> bool:
        """True between a page start tag and its end tag."""
        return self._in_page

    def start(self, tag: str, attrib: Any) -> None:
        name = local_name(tag)
        self._current_field = name
        if name == PAGE_ELEMENT:
            self._buffer.reset()
            self._in_page = True
        elif self._in_page and name in self._SCALAR_FIELDS:
            self._buffer.pending[name] = []

    def data(self, text: str) -> None:
        if not self._in_page:
            return

        name = self._current_field
        if name == "title":
            self._buffer.title.append(text)
        elif name == "text":
            self._buffer.body.append(text)
        elif name in self._SCALAR_FIELDS:
            self._buffer.pending.setdefault(name, []).append(text)

    def end(self, tag: str) -> None:
        if not self._in_page:
            return

        name = local_name(tag)
        if name == PAGE_ELEMENT:
            self._finish_page()
        elif name in self._SCALAR_FIELDS:
            self._commit(name)

    def close(self) -> int:
        """Called by lxml when the document ends.

        Returns:
            Number of pages handed to ``on_page``
        """
        return self.pages_built

    def _commit(self, name: str) -> None:
        value = "".join(self._buffer.pending.pop(name, [])).strip()
        if not value:
            return

        if name == "id":
            if self._buffer.id is None:
                self._buffer.id = value
        elif name == "format":
            self._buffer.format = value
        elif name == "model":
            self._buffer.model = value
        elif name == "timestamp":
            timestamp = parse_timestamp(value)
            if timestamp is not None:
                self._buffer.timestamp = timestamp

    def _finish_page(self) -> None:
        page = self._buffer.snapshot()
        self._buffer.reset()
        self._in_page = False
        self.pages_built += 1
        self.on_page(page)
