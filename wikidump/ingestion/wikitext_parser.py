"""Regex-based analysis of raw MediaWiki markup.

The plain-text rendering is a fixed, single-pass sequence of regex rewrites.
It does not understand nesting: ``{{a {{b}} c}}`` loses only ``{{a {{b}}``.
Indexed output depends on the exact result, so the rewrites must not be
"improved" without re-indexing.
"""

import re

REDIRECT_PATTERN = re.compile(r"#REDIRECT\s+\[\[(.*?)\]\]", re.IGNORECASE)
STUB_MARKER = "-stub}}"
# The first letter of a page name is case-insensitive
DISAMBIGUATION_PATTERN = re.compile(r"\{\{[Dd]isambig(uation)?\}\}")
CATEGORY_PATTERN = re.compile(r"\[\[[Cc]ategory:(.*?)\]\]", re.MULTILINE)
LINK_PATTERN = re.compile(r"\[\[(.*?)\]\]", re.DOTALL)

INFOBOX_MARKER = "{{Infobox"
CITE_MARKER = "{{cite"

_REF_PATTERN = re.compile(r"<ref>.*?</ref>", re.DOTALL)
_REF_WITH_ATTRS_PATTERN = re.compile(r"<ref.*?>.*?</ref>", re.DOTALL)
_TAG_PATTERN = re.compile(r"</?.*?>", re.DOTALL)
_TEMPLATE_PATTERN = re.compile(r"\{\{.*?\}\}", re.DOTALL)
# Leftmost match: a plain link followed later by a namespaced one is removed with it
_NAMESPACED_LINK_PATTERN = re.compile(r"\[\[.*?:.*?\]\]", re.DOTALL)
_WIKILINK_PATTERN = re.compile(r"\[\[(.*?)\]\]", re.DOTALL)
_PIPED_FRAGMENT_PATTERN = re.compile(r"\s(.*?)\|(\w+\s)", re.ASCII)
_EXTERNAL_LINK_PATTERN = re.compile(r"\[.*?\]")
_APOSTROPHES_PATTERN = re.compile(r"'+")

_UNSET = object()


def decode_angle_entities(text: str) -> str:
    """Decode ``&gt;`` and ``&lt;`` (in that order) and nothing else."""
    return text.replace("&gt;", ">").replace("&lt;", "<")


def find_brace_block(text: str, marker: str) -> tuple[int, int] | None:
    """Locate the first ``marker`` and the brace that closes its block.

    The scan starts right after ``marker`` with a depth of 2, one for each
    opening brace of ``{{``. Every ``{`` raises the depth, every ``}`` lowers
    it, and the scan stops on the character that brings it to zero.

    Args:
        text: Text to scan
        marker: Literal opening sequence, starting with ``{{``

    Returns:
        ``(start, end)`` where ``start`` is the marker offset and ``end`` the
        offset of the closing brace, or ``len(text)`` if the block never
        closes. None if the marker does not occur.
    """
    start = text.find(marker)
    if start < 0:
        return None

    depth = 2
    end = start + len(marker)
    while end < len(text):
        char = text[end]
        if char == "}":
            depth -= 1
        elif char == "{":
            depth += 1
        if depth == 0:
            break
        end += 1
    return start, end


def strip_citations(text: str) -> str:
    """Remove every ``{{cite ...}}`` block together with the character before it."""
    while True:
        span = find_brace_block(text, CITE_MARKER)
        if span is None:
            return text
        start, end = span
        text = text[: max(start - 1, 0)] + text[end + 1 :]


class WikiTextParser:
    """Derives page facts from a single page's raw wikitext.

    Redirect, stub and disambiguation flags are computed on construction so
    callers can gate on them cheaply. Categories, links, infobox and plain
    text are computed on first access and cached; large dumps rely on the
    cache rather than recomputation.
    """

    def __init__(self, wikitext: str) -> None:
        """Scan ``wikitext`` for the redirect, stub and disambiguation markers.

        Args:
            wikitext: Raw markup of one page
        """
        self._wikitext = wikitext
        self._categories: list[str] | None = None
        self._links: list[str] | None = None
        self._infobox: object = _UNSET
        self._plain_text: str | None = None

        match = REDIRECT_PATTERN.search(wikitext)
        self._redirect = match is not None
        self._redirect_target = match.group(1) if match else None
        self._stub = STUB_MARKER in wikitext
        self._disambiguation = DISAMBIGUATION_PATTERN.search(wikitext) is not None

    def text(self) -> str:
        """Return the raw wikitext this parser was built from."""
        return self._wikitext

    def is_redirect(self) -> bool:
        return self._redirect

    def redirect_target(self) -> str | None:
        """Return the target of ``#REDIRECT [[...]]``, verbatim, or None."""
        return self._redirect_target

    def is_stub(self) -> bool:
        return self._stub

    def is_disambiguation(self) -> bool:
        return self._disambiguation

    def categories(self) -> list[str]:
        """Return category names in order of appearance, duplicates kept.

        ``[[Category:People|Smith, John]]`` contributes ``"People"``; the sort
        key after the pipe is dropped.
        """
        if self._categories is None:
            self._categories = [
                match.group(1).split("|")[0]
                for match in CATEGORY_PATTERN.finditer(self._wikitext)
            ]
        return self._categories

    def links(self) -> list[str]:
        """Return internal link targets in order of appearance, duplicates kept.

        Targets containing a colon (categories, files, interlanguage links and
        other namespaces) are skipped. The redirect target bracket is an
        ordinary link here and is included unless it is namespaced.
        """
        if self._links is None:
            links = []
            for match in LINK_PATTERN.finditer(self._wikitext):
                inner = match.group(1)
                # [[|]] has no segments at all
                if inner and not inner.strip("|"):
                    continue
                target = inner.split("|")[0]
                if ":" not in target:
                    links.append(target)
            self._links = links
        return self._links

    def infobox(self) -> str | None:
        """Return the cleaned raw ``{{Infobox ...}}`` block, or None."""
        if self._infobox is _UNSET:
            self._infobox = self._parse_infobox()
        return self._infobox  # type: ignore[return-value]

    def _parse_infobox(self) -> str | None:
        span = find_brace_block(self._wikitext, INFOBOX_MARKER)
        if span is None:
            return None

        start, end = span
        infobox = self._wikitext[start : end + 1]
        infobox = strip_citations(infobox)

        # strip any html formatting
        infobox = decode_angle_entities(infobox)
        infobox = _REF_WITH_ATTRS_PATTERN.sub(" ", infobox)
        return _TAG_PATTERN.sub(" ", infobox)

    def plain_text(self) -> str:
        """Render an approximate plain-text version of the page.

        Applied in order: decode ``&gt;``/``&lt;``, drop ``<ref>`` spans and
        then any tag, drop ``{{...}}`` (first ``}}`` wins), drop namespaced
        ``[[x:y]]`` links, unwrap remaining ``[[...]]``, collapse a leftover
        ``text|word `` fragment to ``word ``, drop ``[...]`` external links and
        finally delete every apostrophe.
        """
        if self._plain_text is None:
            text = decode_angle_entities(self._wikitext)
            text = _REF_PATTERN.sub(" ", text)
            text = _TAG_PATTERN.sub(" ", text)
            text = _TEMPLATE_PATTERN.sub(" ", text)
            text = _NAMESPACED_LINK_PATTERN.sub(" ", text)
            text = _WIKILINK_PATTERN.sub(r"\1", text)
            text = _PIPED_FRAGMENT_PATTERN.sub(r" \2", text)
            text = _EXTERNAL_LINK_PATTERN.sub(" ", text)
            self._plain_text = _APOSTROPHES_PATTERN.sub("", text)
        return self._plain_text

    def translated_title(self, language_code: str) -> str | None:
        """Return the title from a line that is exactly ``[[<code>:<title>]]``.

        Args:
            language_code: Interlanguage prefix such as ``en`` or ``ja``

        Returns:
            The first matching title, or None
        """
        pattern = re.compile(
            r"^\[\[" + re.escape(language_code) + r":(.*?)\]\]$", re.MULTILINE
        )
        match = pattern.search(self._wikitext)
        return match.group(1) if match else None
