"""
Human-readable output formatting.

Centralizes all CLI output formatting to keep CLI commands thin and focused.
"""
from __future__ import annotations

import typer

from ..layout import Layout
from ..schema import Descriptor
from ..schema.annotations import REF_NAME


def print_unpack_summary(image_dir: str, bundle_dir: str) -> None:
    """
    Print unpack completion summary.

    Args:
        image_dir: Image layout that was read
        bundle_dir: Bundle directory that was written
    """
    typer.echo(f"Unpacked {image_dir} to {bundle_dir}")


def print_layout(image_dir: str, layout: Layout, verbose: bool = False) -> None:
    """
    Print the descriptors of a layout's top-level index.

    Args:
        image_dir: Image layout root
        layout: Layout to display
        verbose: Also show the blobs directory and index annotations
    """
    manifests = layout.index.manifests
    typer.echo(f"Image: {image_dir}")
    if verbose:
        typer.echo(f"Blobs: {layout.blobs_dir}")
        for key, value in sorted(layout.index.annotations.items()):
            typer.echo(f"Annotation: {key}={value}")

    if not manifests:
        typer.echo("No manifests in index")
        return

    typer.echo(f"Manifests ({len(manifests)}):")
    for descriptor in manifests:
        typer.echo(f"  {_describe(descriptor)}")


def _describe(descriptor: Descriptor) -> str:
    parts = [
        str(descriptor.digest),
        descriptor.media_type,
        _format_bytes(descriptor.size),
    ]
    ref_name = descriptor.annotations.get(REF_NAME)
    if ref_name:
        parts.append(f"ref={ref_name}")
    if descriptor.platform is not None:
        platform = f"{descriptor.platform.os}/{descriptor.platform.architecture}"
        if descriptor.platform.variant:
            platform += f"/{descriptor.platform.variant}"
        parts.append(f"platform={platform}")
    return "  ".join(parts)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
