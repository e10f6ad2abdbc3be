"""Wiki dump ingestion: dump sources, page extraction and wikitext analysis."""

from wikidump.ingestion.dump_source import DumpSource
from wikidump.ingestion.models import PageRecord
from wikidump.ingestion.wiki_xml_parser import (
    ExtractionResult,
    ExtractionStatus,
    PageAction,
    WikiXMLParser,
)
from wikidump.ingestion.wikitext_parser import WikiTextParser

__all__ = [
    "DumpSource",
    "ExtractionResult",
    "ExtractionStatus",
    "PageAction",
    "PageRecord",
    "WikiTextParser",
    "WikiXMLParser",
]
