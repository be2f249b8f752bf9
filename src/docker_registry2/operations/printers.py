"""
Human-readable output formatting.

Centralizes CLI output so commands only call the registry and hand the
result to one of these functions.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from ..registry import DigestResult, TagPage
from ..storage.manifest import Manifest

_console = Console()


def print_repositories(repos: List[str]) -> None:
    for repo in repos:
        typer.echo(repo)


def print_tags(page: TagPage) -> None:
    """
    Print a tag listing.

    Shows a table with digests when hashes were requested, and the
    next-page cursor when there is one.
    """
    if page.hashes is not None:
        table = Table(title=page.name)
        table.add_column("Tag", style="cyan")
        table.add_column("Digest", style="dim")
        for tag in page.tags:
            table.add_row(tag, page.hashes.get(tag) or "")
        _console.print(table)
    else:
        for tag in page.tags:
            typer.echo(tag)

    if page.last:
        typer.echo(f"Next page: --last {page.last}", err=True)


def print_manifest(manifest: Manifest) -> None:
    """Pretty-print a manifest document."""
    typer.echo(json.dumps(manifest.data, indent=2))


def print_digest(result: DigestResult) -> None:
    """
    Print a digest, or the platform table when several entries remain.
    """
    if isinstance(result, str):
        typer.echo(result)
        return

    table = Table(title=f"Platforms ({len(result)})")
    table.add_column("Digest", style="cyan")
    table.add_column("OS")
    table.add_column("Architecture")
    table.add_column("Variant")
    table.add_column("Size", justify="right")
    for entry in result:
        size = _format_bytes(entry.size) if entry.size is not None else ""
        table.add_row(entry.digest, entry.os or "", entry.architecture or "", entry.variant or "", size)
    _console.print(table)


def print_pull_summary(repo: str, ref: str, directory: str, layer_files: List[Path]) -> None:
    typer.echo(f"Pulled {repo}:{ref} to {directory}")
    typer.echo(f"Layers: {len(layer_files)}")


def print_tag_summary(repo: str, ref: str, new_repo: str, new_ref: str, digest) -> None:
    typer.echo(f"Tagged {repo}:{ref} as {new_repo}:{new_ref}")
    if digest:
        typer.echo(f"Digest: {digest}")


def print_blob_size(size: int) -> None:
    typer.echo(f"{size} ({_format_bytes(size)})")


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes == 0:
        return "0 B"
    elif size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
