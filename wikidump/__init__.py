"""Streaming extraction and wikitext analysis for MediaWiki XML dumps."""

__version__ = "0.1.0"
