"""URL extractor CLI: entry-point for running and exercising the service.

Usage:
    python cli/main.py --help

Commands:
    serve      → run the HTTP API under uvicorn
    fetch      → run one proxy fetch and print the response envelope
    inspect    → classify a URL / extract metadata from a saved page
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from urlextractor.xxx
# import ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import List, Optional

import typer

from cli.commands.inspect import inspect_app
from urlextractor.config import settings
from urlextractor.links import build_link_record
from urlextractor.observability import configure_logging
from urlextractor.service import execute_request

app = typer.Typer(
    name="url-extractor",
    help="URL extractor CLI.",
    no_args_is_help=True,
)
app.add_typer(inspect_app, name="inspect")


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise typer.BadParameter(f"Expected 'Name: value', got {raw!r}", param_hint="--header")
    return name.strip(), value.strip()


def _parse_data(raw: Optional[str]):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("serve")
def serve(
    host: str = typer.Option(None, help="Bind address (default: settings.host)."),
    port: int = typer.Option(None, help="Port (default: settings.port)."),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API."""
    import uvicorn  # noqa: PLC0415

    bind_host = host or settings.host
    bind_port = port or settings.port
    display_host = "localhost" if bind_host in ("0.0.0.0", "127.0.0.1") else bind_host
    typer.echo(f"🚀 Serving on {bind_host}:{bind_port}")
    typer.echo(f"📋 Health check: http://{display_host}:{bind_port}/health")
    typer.echo(f"🔗 Execute endpoint: http://{display_host}:{bind_port}/execute")
    uvicorn.run("urlextractor.api.app:app", host=bind_host, port=bind_port, reload=reload)


@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="URL to fetch."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    header: List[str] = typer.Option([], "--header", "-H", help="Extra header 'Name: value' (repeatable)."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Request body (JSON or raw text)."),
    as_link: bool = typer.Option(False, "--as-link", help="Print the link record instead of the envelope."),
    tag: List[str] = typer.Option([], "--tag", "-t", help="Tag for --as-link (repeatable)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log each attempt to stderr."),
) -> None:
    """Fetch URL with retries and print the JSON envelope."""
    configure_logging("INFO" if verbose else "WARNING", json_format=False)
    params = {
        "url": url,
        "method": method,
        "headers": dict(_parse_header(h) for h in header),
        "data": _parse_data(data),
    }
    status_code, envelope = asyncio.run(execute_request(params))

    if as_link and envelope.success:
        record = build_link_record(envelope.data, tags=tag, fetched_at=envelope.timestamp)
        typer.echo(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    else:
        typer.echo(json.dumps(envelope.model_dump(), indent=2, ensure_ascii=False))

    if status_code != 200:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
