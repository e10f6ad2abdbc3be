"""Pytest configuration and shared fixtures."""

import bz2
import gzip
from collections.abc import Callable
from pathlib import Path

import pytest

# Pretty-printed MediaWiki export, as produced by Special:Export and dumps
SAMPLE_EXPORT = """<?xml version="1.0" encoding="UTF-8"?>
<mediawiki xmlns="http://www.mediawiki.org/xml/export-0.11/" version="0.11" xml:lang="en">
  <siteinfo>
    <sitename>Wikipedia</sitename>
    <dbname>enwiki</dbname>
  </siteinfo>
  <page>
    <title>Blood Angels</title>
    <ns>0</ns>
    <id>1</id>
    <revision>
      <id>1001</id>
      <timestamp>2024-01-15T12:00:00Z</timestamp>
      <model>wikitext</model>
      <format>text/x-wiki</format>
      <text xml:space="preserve">{{Infobox chapter
|name=Blood Angels
|founding=First{{cite book|title=Codex}}
}}
[[Category:Space Marines]]
[[Category:Loyalists|Blood]]
[[fr:Anges de Sang]]
The '''Blood Angels''' are led by [[Sanguinius]] from [[Baal]].
{{space-marine-stub}}</text>
    </revision>
  </page>
  <page>
    <title>Angels of Blood</title>
    <ns>0</ns>
    <id>2</id>
    <redirect title="Blood Angels" />
    <revision>
      <id>1002</id>
      <timestamp>2024-01-16T10:00:00Z</timestamp>
      <model>wikitext</model>
      <format>text/x-wiki</format>
      <text xml:space="preserve">#REDIRECT [[Blood Angels]]</text>
    </revision>
  </page>
  <page>
    <title>Mercury (disambiguation)</title>
    <ns>0</ns>
    <id>3</id>
    <revision>
      <id>1003</id>
      <timestamp>not-a-timestamp</timestamp>
      <model>wikitext</model>
      <format>text/x-wiki</format>
      <text xml:space="preserve">'''Mercury''' may refer to:
* [[Mercury (planet)]]
* [[Mercury (element)]]
{{disambig}}</text>
    </revision>
  </page>
</mediawiki>
"""


@pytest.fixture
def sample_export() -> str:
    """Return a three-page MediaWiki export."""
    return SAMPLE_EXPORT


@pytest.fixture
def write_dump(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes XML to a dump file in ``tmp_path``.

    The file is gzip- or bzip2-compressed when the name ends in ``.gz`` or
    ``.bz2``.

    Args:
        tmp_path: Pytest temporary directory fixture

    Returns:
        Function ``(xml, name="dump.xml") -> Path``
    """

    def _write(xml: str, name: str = "dump.xml") -> Path:
        data = xml.encode("utf-8")
        if name.endswith(".gz"):
            data = gzip.compress(data)
        elif name.endswith(".bz2"):
            data = bz2.compress(data)
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write
