"""
docker-registry2 CLI

Thin Typer front end over the Registry client:
- search: List repositories in the catalog
- tags: List tags of a repository
- manifest: Print a manifest, manifest list or index
- digest: Resolve a reference (optionally per platform) to a digest
- pull: Download image layers into a directory
- tag: Copy a manifest to a new repository/tag
- rmtag: Delete a tag
- blob-size: Size of a blob

Connection settings come from DOCKER_REGISTRY_* environment variables.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

import typer

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import (
    print_blob_size,
    print_digest,
    print_manifest,
    print_pull_summary,
    print_repositories,
    print_tag_summary,
    print_tags,
)
from .registry import Registry

T = TypeVar("T")

app = typer.Typer(name="docker-registry2", help="Docker/OCI Distribution API client")


@app.callback()
def _main(debug: bool = typer.Option(False, "--debug", help="Log registry requests")) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _with_registry(func: Callable[[Registry], T]) -> T:
    """Run ``func`` against a registry built from the environment."""
    def _run() -> T:
        context = CLIContext.from_env()
        try:
            return func(context.registry)
        finally:
            context.close()

    return run_and_exit(_run)


@app.command()
def search(
    query: str = typer.Argument("", help="Regular expression to filter repository names")
) -> None:
    """List repositories in the registry catalog."""
    _with_registry(lambda reg: print_repositories(reg.search(query)))


@app.command()
def tags(
    repo: str = typer.Argument(..., help="Repository name"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Page size"),
    last: str = typer.Option("", "--last", help="Start after this cursor"),
    hashes: bool = typer.Option(False, "--hashes", help="Show the digest of each tag"),
    all_pages: bool = typer.Option(False, "--all", help="Follow every page"),
) -> None:
    """List tags of a repository."""
    _with_registry(lambda reg: print_tags(
        reg.tags(repo, count=count, last=last, with_hashes=hashes, auto_paginate=all_pages)
    ))


@app.command()
def manifest(
    repo: str = typer.Argument(..., help="Repository name"),
    ref: str = typer.Argument("latest", help="Tag or digest"),
) -> None:
    """Print a manifest, manifest list or index."""
    _with_registry(lambda reg: print_manifest(reg.manifest(repo, ref)))


@app.command()
def digest(
    repo: str = typer.Argument(..., help="Repository name"),
    ref: str = typer.Argument("latest", help="Tag or digest"),
    arch: Optional[str] = typer.Option(None, "--arch", help="Platform architecture, e.g. amd64"),
    os_name: Optional[str] = typer.Option(None, "--os", help="Platform OS, e.g. linux"),
    variant: Optional[str] = typer.Option(None, "--variant", help="Platform variant, e.g. v8"),
) -> None:
    """Resolve a reference to its content digest."""
    _with_registry(lambda reg: print_digest(
        reg.digest(repo, ref, architecture=arch, os=os_name, variant=variant)
    ))


@app.command()
def pull(
    repo: str = typer.Argument(..., help="Repository name"),
    ref: str = typer.Argument(..., help="Tag or digest"),
    dest: str = typer.Argument(..., help="Destination directory"),
    arch: Optional[str] = typer.Option(None, "--arch", help="Platform architecture for manifest lists"),
    os_name: Optional[str] = typer.Option(None, "--os", help="Platform OS for manifest lists"),
    variant: Optional[str] = typer.Option(None, "--variant", help="Platform variant for manifest lists"),
) -> None:
    """Download image layers into a directory, skipping layers already present."""
    def _pull(reg: Registry) -> None:
        files = reg.pull(repo, ref, dest, architecture=arch, os=os_name, variant=variant)
        print_pull_summary(repo, ref, dest, files)

    _with_registry(_pull)


@app.command()
def tag(
    repo: str = typer.Argument(..., help="Source repository"),
    ref: str = typer.Argument(..., help="Source tag or digest"),
    new_repo: str = typer.Argument(..., help="Target repository"),
    new_ref: str = typer.Argument(..., help="Target tag"),
) -> None:
    """Copy a schema 2 manifest to a new repository/tag."""
    _with_registry(lambda reg: print_tag_summary(
        repo, ref, new_repo, new_ref, reg.tag(repo, ref, new_repo, new_ref)
    ))


@app.command()
def rmtag(
    repo: str = typer.Argument(..., help="Repository name"),
    tag_name: str = typer.Argument(..., metavar="TAG", help="Tag to delete"),
) -> None:
    """Delete a tag (by resolving it to its digest first)."""
    def _rmtag(reg: Registry) -> None:
        status = reg.rmtag(repo, tag_name)
        typer.echo(f"Deleted {repo}:{tag_name} (HTTP {status})")

    _with_registry(_rmtag)


@app.command("blob-size")
def blob_size(
    repo: str = typer.Argument(..., help="Repository name"),
    blob_digest: str = typer.Argument(..., metavar="DIGEST", help="Blob digest"),
) -> None:
    """Print the size of a blob."""
    _with_registry(lambda reg: print_blob_size(reg.blob_size(repo, blob_digest)))


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
