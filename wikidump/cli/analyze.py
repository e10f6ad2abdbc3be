"""CLI command for inspecting the facts derived from one page of wikitext."""

import json
from pathlib import Path

import click

from wikidump.ingestion.wikitext_parser import WikiTextParser


@click.command()
@click.argument("wikitext_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--lang",
    "languages",
    multiple=True,
    help="Interlanguage code to look up a translated title for (repeatable)",
)
@click.option("--no-text", is_flag=True, help="Omit the plain-text rendering")
def analyze(wikitext_file: Path, languages: tuple[str, ...], no_text: bool) -> None:
    """Print redirect, stub, category, link and infobox facts for a wikitext file."""
    parser = WikiTextParser(wikitext_file.read_text(encoding="utf-8"))

    facts: dict[str, object] = {
        "redirect": parser.is_redirect(),
        "redirect_target": parser.redirect_target(),
        "stub": parser.is_stub(),
        "disambiguation": parser.is_disambiguation(),
        "categories": parser.categories(),
        "links": parser.links(),
        "infobox": parser.infobox(),
    }
    if languages:
        facts["translated_titles"] = {code: parser.translated_title(code) for code in languages}
    if not no_text:
        facts["plain_text"] = parser.plain_text()

    click.echo(json.dumps(facts, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    analyze()
