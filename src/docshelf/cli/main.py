from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from docshelf.cli.commands import check_cmd, convert_cmd, docs_cmd, serve_cmd
from docshelf.cli.context import CLIContext
from docshelf.core.config import load_settings
from docshelf.core.errors import DocshelfError
from docshelf.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docshelf",
        description="Index and convert manifest-described document folders",
    )
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Directory tree holding document folders (default: $DOCSHELF_CONTENT_DIR or cwd)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    serve_cmd.register(subparsers)
    docs_cmd.register(subparsers)
    convert_cmd.register(subparsers)
    check_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        ctx = CLIContext(settings=load_settings(args.content_dir), console=console)
        return handler(args, ctx)
    except DocshelfError as exc:
        logger.error(str(exc))
        return 1
