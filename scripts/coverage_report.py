#!/usr/bin/env python3
"""
Render the coverage collected from the containerized service.

Reads the data file the in-container agent wrote to the bound report
directory and prints a per-file report plus a per-endpoint summary.

Usage:
  python scripts/coverage_report.py                    # Text report
  python scripts/coverage_report.py --html htmlcov     # Also write HTML
  python scripts/coverage_report.py --data-file path   # Explicit data file
"""

import argparse
import io
import os
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.table import Table
from rich import box

from docker_demo.config import settings
from docker_demo.models.errors import CoverageArtifactError
from docker_demo.services.coverage import CoverageArtifact

console = Console()

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENDPOINT_SOURCE = Path("docker_demo/api/ping.py")
ENDPOINT_HANDLERS = {"/ping": "ping", "/unused": "unused"}


def show_endpoints(artifact: CoverageArtifact) -> None:
    table = Table(title="Endpoint coverage", box=box.ROUNDED)
    table.add_column("Route", style="cyan")
    table.add_column("Handler")
    table.add_column("Covered", justify="center")

    covered = artifact.coverage_by_function(
        PROJECT_ROOT / ENDPOINT_SOURCE, list(ENDPOINT_HANDLERS.values())
    )
    for route, handler in ENDPOINT_HANDLERS.items():
        mark = "[green]yes[/green]" if covered[handler] else "[red]no[/red]"
        table.add_row(route, handler, mark)

    console.print(table)


def main():
    parser = argparse.ArgumentParser(description="Render container coverage")
    parser.add_argument(
        "--data-file",
        type=Path,
        default=settings.get_artifact_path(),
        help="Coverage data file written by the container",
    )
    parser.add_argument(
        "--rcfile",
        type=Path,
        default=settings.get_rcfile_path(),
        help="coverage.py configuration file",
    )
    parser.add_argument("--html", type=Path, default=None, help="HTML output directory")
    args = parser.parse_args()

    artifact = CoverageArtifact(args.data_file.resolve())
    rcfile = args.rcfile.resolve() if args.rcfile else None
    html_dir = args.html.resolve() if args.html else None

    # Recorded file names are relative to the project root
    os.chdir(PROJECT_ROOT)
    buffer = io.StringIO()
    try:
        total = artifact.report(rcfile=rcfile, html_dir=html_dir, file=buffer)
    except CoverageArtifactError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    console.print(buffer.getvalue())
    show_endpoints(artifact)
    console.print(f"Total coverage: [bold]{total:.1f}%[/bold]")


if __name__ == "__main__":
    main()
