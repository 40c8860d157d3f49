from __future__ import annotations

import argparse
import shutil

from rich.panel import Panel
from rich.table import Table

from docshelf.application.services.sourcing_service import source_from_directory
from docshelf.cli.context import CLIContext


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("check", help="Report manifests that fail to source and missing tools")
    parser.set_defaults(handler=run_check)


def run_check(args: argparse.Namespace, ctx: CLIContext) -> int:
    settings = ctx.settings
    report = source_from_directory(settings.content_dir, settings.manifest_name)

    tools = Table(title="External Tools")
    tools.add_column("Tool")
    tools.add_column("Resolved Path", overflow="fold")
    missing_tools = 0
    for binary in (settings.pandoc_bin, settings.citeproc_bin):
        resolved = shutil.which(binary)
        if resolved is None:
            missing_tools += 1
        tools.add_row(binary, resolved or "[red]not found[/red]")

    ok = not report.issues
    summary = Panel.fit(
        f"Manifests seen: {report.manifests_seen}\n"
        f"Documents sourced: {len(report.documents)}\n"
        f"Issues: {len(report.issues)}\n"
        f"Missing tools: {missing_tools}\n"
        f"Status: {'PASS' if ok else 'FAIL'}",
        title="Check Summary",
    )
    ctx.console.print(summary)
    ctx.console.print(tools)

    if report.issues:
        out = Table(title="Sourcing Issues")
        out.add_column("Manifest", overflow="fold")
        out.add_column("Kind")
        out.add_column("Message", overflow="fold")
        for issue in report.issues:
            out.add_row(str(issue.manifest_path), issue.kind, issue.message)
        ctx.console.print(out)

    return 0 if ok else 1
