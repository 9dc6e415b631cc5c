#!/usr/bin/env python3
"""
Build the service image and show its layers.

The Dockerfile installs third-party dependencies in one layer and copies
the application package in the next, so a code change only rebuilds (and
ships) the small application layer.

Usage:
  python scripts/build_image.py                       # Build fastapi-docker-demo:latest
  python scripts/build_image.py --tag demo:dev        # Custom tag
  python scripts/build_image.py --no-cache            # Rebuild every layer
"""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from docker.errors import BuildError, APIError, DockerException
from rich.console import Console
from rich.table import Table
from rich import box

from docker_demo.config import settings
from docker_demo.services.container import DockerClientFactory

console = Console()

PROJECT_ROOT = Path(__file__).parent.parent


def format_size(size: int) -> str:
    """Human readable byte size."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def show_layers(image) -> None:
    """Print the image history, newest layer first."""
    table = Table(title=f"Layers of {', '.join(image.tags) or image.short_id}", box=box.ROUNDED)
    table.add_column("Layer", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right", style="green")
    table.add_column("Created by", overflow="fold")

    for entry in image.history():
        created_by = (entry.get("CreatedBy") or "").replace("/bin/sh -c #(nop) ", "")
        layer_id = entry.get("Id", "<missing>")
        if layer_id.startswith("sha256:"):
            layer_id = layer_id[7:19]
        table.add_row(layer_id, format_size(entry.get("Size", 0)), created_by[:120])

    console.print(table)
    console.print(f"Total image size: [bold]{format_size(image.attrs.get('Size', 0))}[/bold]")


def main():
    parser = argparse.ArgumentParser(description="Build the service image")
    parser.add_argument("--tag", default=settings.image_name, help="Image tag")
    parser.add_argument(
        "--no-cache", action="store_true", help="Do not reuse cached layers"
    )
    args = parser.parse_args()

    try:
        client = DockerClientFactory.get_client()
    except DockerException as e:
        console.print(f"[red]Error:[/red] Cannot connect to Docker: {e}")
        sys.exit(1)

    console.print(f"Building [bold]{args.tag}[/bold] from {PROJECT_ROOT}")
    try:
        image, logs = client.images.build(
            path=str(PROJECT_ROOT),
            tag=args.tag,
            nocache=args.no_cache,
            rm=True,
        )
    except BuildError as e:
        for line in e.build_log:
            if "stream" in line:
                console.print(line["stream"], end="")
        console.print(f"[red]Build failed:[/red] {e.msg}")
        sys.exit(1)
    except APIError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    for line in logs:
        stream = line.get("stream", "")
        if stream.startswith("Step") or "Using cache" in stream:
            console.print(stream.rstrip(), style="dim")

    show_layers(image)


if __name__ == "__main__":
    main()
