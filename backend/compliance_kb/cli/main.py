"""CLI entrypoint for the compliance knowledge base."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import requests
import typer

app = typer.Typer(name="ckb", help="Compliance knowledge base command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"
# Sync and analysis requests may run up to the server's five minute limit.
LONG_TIMEOUT = 310


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("CKB_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, timeout: float = 60, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=timeout, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json().get("error", resp.text)
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def sync(
    folder_id: Optional[str] = typer.Option(None, "--folder-id", help="Drive folder; defaults to the server setting"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Sync a Google Drive folder into the vector index."""
    params = {"folderId": folder_id} if folder_id else None
    _echo(_request("POST", "/ingest/sync", host=host, timeout=LONG_TIMEOUT, params=params))


@app.command("ingest-local")
def ingest_local(
    path: Path = typer.Argument(..., help="Folder readable by the server"),
    include: Optional[str] = typer.Option(None, "--include", help="Include glob"),
    exclude: Optional[str] = typer.Option(None, "--exclude", help="Exclude glob"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ingest every supported file below a local folder."""
    payload = {"path": str(path.expanduser()), "include_glob": include, "exclude_glob": exclude}
    _echo(_request("POST", "/ingest/local", host=host, timeout=LONG_TIMEOUT, json=payload))


@app.command()
def preview(
    file_id: str = typer.Argument(..., help="Identifier of an indexed file"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Print the reassembled text of an indexed file."""
    payload = _request("POST", "/documents/preview", host=host, json={"fileId": file_id}).json()
    if not payload.get("success"):
        typer.echo(payload.get("error", "Preview unavailable"), err=True)
        raise typer.Exit(code=1)
    typer.echo(payload["preview"])


@app.command()
def chat(
    message: str = typer.Argument(..., help="Question for the advisor"),
    show_sources: bool = typer.Option(False, "--sources", help="List the matched chunks"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a single question against the knowledge base."""
    payload = _request("POST", "/chat", host=host, json={"message": message, "history": []}).json()
    typer.echo(payload["response"])
    if show_sources:
        for source in payload.get("sources", []):
            typer.echo(f"- {source['title']} #{source['chunkIndex']} ({source['score']:.3f})")


@app.command()
def scan(
    url: str = typer.Argument(..., help="Website to crawl"),
    max_pdfs: int = typer.Option(100, "--max-pdfs", help="Stop after this many PDF links"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List PDF links reachable from a website."""
    resp = _request("POST", "/pdf-links/scan", host=host, timeout=LONG_TIMEOUT, json={"url": url, "maxPdfs": max_pdfs})
    _echo(resp)


@app.command("analyze-urls")
def analyze_urls(
    urls: list[str] = typer.Argument(..., help="PDF URLs to analyze"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Run the WCAG 2.1 AA analysis on PDFs by URL."""
    _echo(_request("POST", "/pdf-links/analyze", host=host, timeout=LONG_TIMEOUT, json={"urls": urls}))


if __name__ == "__main__":
    app()
