from __future__ import annotations

import argparse
import dataclasses

from docshelf.cli.context import CLIContext
from docshelf.web.app import create_app


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("serve", help="Serve the document API and watch the content tree")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument(
        "--cors",
        action="store_true",
        help="Enable CORS requests from all origins (useful for local development)",
    )
    parser.add_argument("--no-watch", action="store_true", help="Do not rebuild the index on file changes")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    try:
        import uvicorn
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("uvicorn is required for serve mode. Install project dependencies.") from exc

    settings = ctx.settings
    if args.no_watch:
        settings = dataclasses.replace(settings, watch_enabled=False)

    app = create_app(settings, cors=args.cors)
    ctx.console.print(f"Serving [bold]{settings.content_dir}[/bold] on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port)
    return 0
