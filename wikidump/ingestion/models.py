"""Data models for wiki dump extraction."""

from dataclasses import dataclass
from datetime import datetime
from functools import cached_property

from wikidump.ingestion.wikitext_parser import WikiTextParser


@dataclass(frozen=True)
class PageRecord:
    """Represents one page element of a wiki dump.

    Attributes:
        title: Page title exactly as accumulated from the dump (not trimmed)
        body: Raw wikitext of the page revision
        id: First non-blank id seen inside the page element
        format: Content format, e.g. ``text/x-wiki``
        model: Content model, e.g. ``wikitext``
        timestamp: Revision timestamp (UTC), None if absent or unparsable
    """

    title: str = ""
    body: str = ""
    id: str | None = None
    format: str | None = None
    model: str | None = None
    timestamp: datetime | None = None

    @cached_property
    def wikitext(self) -> WikiTextParser:
        """Analyzer over ``body``, built on first use."""
        return WikiTextParser(self.body)

    def is_redirect(self) -> bool:
        return self.wikitext.is_redirect()

    def redirect_page(self) -> str | None:
        return self.wikitext.redirect_target()

    def is_stub(self) -> bool:
        return self.wikitext.is_stub()

    def is_disambiguation_page(self) -> bool:
        """Check the title suffix as well as the body's disambiguation template."""
        return "(disambiguation)" in self.title or self.wikitext.is_disambiguation()

    def is_special_page(self) -> bool:
        """Category:, Wikipedia:, File: and other namespaced pages."""
        return ":" in self.title

    def text(self) -> str:
        """Plain-text rendering of the body."""
        return self.wikitext.plain_text()

    def categories(self) -> list[str]:
        return self.wikitext.categories()

    def links(self) -> list[str]:
        return self.wikitext.links()

    def infobox(self) -> str | None:
        return self.wikitext.infobox()

    def translated_title(self, language_code: str) -> str | None:
        return self.wikitext.translated_title(language_code)
