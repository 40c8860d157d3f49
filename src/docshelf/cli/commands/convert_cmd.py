from __future__ import annotations

import argparse
import sys
from pathlib import Path

from docshelf.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("convert", help="Render or convert a document")
    parser.add_argument("slug")
    parser.add_argument("--to", dest="target", default="html", help="Target format (default: html)")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write to this file instead of stdout")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    service = ctx.indexed_service()
    document = service.get_document(args.slug)
    result = service.convert(document, args.target)

    if args.output is not None:
        if isinstance(result.content, bytes):
            args.output.write_bytes(result.content)
        else:
            args.output.write_text(result.content, encoding="utf-8")
        ctx.console.print(f"[green]Wrote[/green] {result.format} output to {args.output}")
        return 0

    if isinstance(result.content, bytes):
        sys.stdout.buffer.write(result.content)
        sys.stdout.buffer.flush()
    else:
        sys.stdout.write(result.content)
    return 0
