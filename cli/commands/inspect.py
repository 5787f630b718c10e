"""Offline inspection commands: classify a link or extract metadata from a saved page."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from urlextractor.observability import configure_logging
from urlextractor.scraper.classifier import classify_link_type
from urlextractor.scraper.extractor import extract_metadata

inspect_app = typer.Typer(help="Classify links and extract metadata without fetching.")


@inspect_app.callback()
def inspect_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolver and parser details to stderr."),
) -> None:
    """Classify links and extract metadata without fetching."""
    configure_logging("DEBUG" if verbose else "WARNING", json_format=False)


def _read_file(path: Path) -> str:
    if not path.exists():
        typer.echo(f"❌ File not found: {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8", errors="replace")


@inspect_app.command("classify")
def inspect_classify(
    url: str = typer.Argument(..., help="URL to classify."),
    title: str = typer.Option("", "--title", help="Page title."),
    description: str = typer.Option("", "--description", help="Page description."),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Saved HTML of the page, used for content markers."
    ),
) -> None:
    """Print the link type of URL."""
    html = _read_file(html_file) if html_file else ""
    typer.echo(classify_link_type(url, title, description, html).value)


@inspect_app.command("extract")
def inspect_extract(
    path: Path = typer.Argument(..., help="Saved HTML file."),
    base_url: str = typer.Option(..., "--base-url", help="URL the page was fetched from."),
) -> None:
    """Print the title, description and images found in a saved HTML page."""
    metadata = extract_metadata(_read_file(path), base_url)
    typer.echo(json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False))
