from __future__ import annotations

import argparse

from rich.panel import Panel
from rich.table import Table

from docshelf.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    list_docs = subparsers.add_parser("list", help="List indexed documents, newest first")
    list_docs.add_argument("--limit", type=int, default=50)
    list_docs.add_argument("--no-drafts", action="store_true", help="Hide documents marked as draft")
    list_docs.set_defaults(handler=run_list)

    show = subparsers.add_parser("show", help="Show one document's metadata")
    show.add_argument("slug")
    show.set_defaults(handler=run_show)

    citations = subparsers.add_parser("citations", help="Resolve a document's bibliography")
    citations.add_argument("slug")
    citations.set_defaults(handler=run_citations)


def run_list(args: argparse.Namespace, ctx: CLIContext) -> int:
    service = ctx.indexed_service()
    documents = service.list_documents(include_drafts=not args.no_drafts)[: args.limit]

    table = Table(title=f"Documents ({len(documents)})")
    table.add_column("Date")
    table.add_column("Slug")
    table.add_column("Format")
    table.add_column("Title", overflow="fold")
    table.add_column("Tags", overflow="fold")
    table.add_column("Assets", justify="right")

    for document in documents:
        table.add_row(
            document.date.isoformat(),
            document.slug,
            document.format.value,
            document.title + (" [dim](draft)[/dim]" if document.draft else ""),
            ", ".join(document.tags),
            str(len(document.assets)),
        )

    ctx.console.print(table)
    return 0


def run_show(args: argparse.Namespace, ctx: CLIContext) -> int:
    document = ctx.indexed_service().get_document(args.slug)
    lines = [
        f"Slug: {document.slug}",
        f"Format: {document.format.value}",
        f"Date: {document.date.isoformat()}",
        f"Draft: {'yes' if document.draft else 'no'}",
        f"Authors: {', '.join(author.name for author in document.authors) or '-'}",
        f"Tags: {', '.join(document.tags) or '-'}",
        f"Bibliography: {document.bibliography or '-'}",
        f"Base dir: {document.base_dir}",
        f"Assets: {len(document.assets)}",
    ]
    if document.description:
        lines.extend(["", document.description])
    ctx.console.print(Panel.fit("\n".join(lines), title=document.title))
    return 0


def run_citations(args: argparse.Namespace, ctx: CLIContext) -> int:
    service = ctx.indexed_service()
    document = service.get_document(args.slug)
    citations = service.citations(document)
    if citations is None:
        ctx.console.print(f"[yellow]{document.slug} has no bibliography[/yellow]")
        return 0

    table = Table(title=f"Citations ({len(citations)})")
    table.add_column("ID")
    table.add_column("Year")
    table.add_column("Authors", overflow="fold")
    table.add_column("Title", overflow="fold")
    table.add_column("DOI")

    for citation in citations:
        year = ""
        if citation.issued and citation.issued[0].year is not None:
            year = str(citation.issued[0].year)
        authors = ", ".join(
            " ".join(part for part in (author.given, author.family) if part) for author in citation.author or ()
        )
        table.add_row(citation.id, year, authors, citation.title or "", citation.doi or "")

    ctx.console.print(table)
    return 0
