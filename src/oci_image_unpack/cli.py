"""
OCI image unpack CLI

Implements 2 CLI verbs with Operations facade integration:
- unpack: Unpack the selected image of a layout into a bundle directory
- inspect: List the top-level index of a layout
"""
from __future__ import annotations

import dataclasses
import logging
import typer
from typing import List, Optional

from .cli_context import CLIContext
from .filters import Filter, PlatformFilter, RefNameFilter
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_layout, print_unpack_summary
from .settings import Settings

app = typer.Typer(name="oci-image-unpack", help="Unpack OCI image layouts into bundle directories")


def _build_filters(ref_name: Optional[str], platform: Optional[str]) -> List[Filter]:
    """
    Build manifest filters from CLI options.

    Raises:
        ValueError: If platform is not ``os/arch``
    """
    filters: List[Filter] = []
    if ref_name:
        filters.append(RefNameFilter(ref_name))
    if platform:
        filters.append(PlatformFilter.parse(platform))
    return filters


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else settings.log_level_value
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def unpack(
    image_dir: str = typer.Argument(..., help="OCI image layout directory"),
    bundle_dir: str = typer.Argument(..., help="Bundle directory (must be missing or empty)"),
    ref_name: Optional[str] = typer.Option(None, "--ref-name", help="Select manifest by org.opencontainers.image.ref.name"),
    platform: Optional[str] = typer.Option(None, "--platform", help="Select manifest by platform (os/arch)"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", help="Limit nested image index depth"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output")
) -> None:
    """Unpack an image layout into a bundle directory."""

    def _unpack() -> None:
        context = CLIContext.from_env()
        settings = context.settings
        if max_depth is not None:
            settings = dataclasses.replace(settings, max_index_depth=max_depth)
        _configure_logging(settings, verbose)

        filters = _build_filters(ref_name, platform)
        ops = Operations(config=OpsConfig(verbose=verbose), settings=settings)
        ops.unpack(image_dir, bundle_dir, filters)
        print_unpack_summary(image_dir, bundle_dir)

    run_and_exit(_unpack)


@app.command()
def inspect(
    image_dir: str = typer.Argument(..., help="OCI image layout directory"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed output")
) -> None:
    """List the top-level index of an image layout."""

    def _inspect() -> None:
        context = CLIContext.from_env()
        _configure_logging(context.settings, verbose)

        ops = Operations(config=OpsConfig(verbose=verbose), settings=context.settings)
        layout = ops.inspect(image_dir)
        print_layout(image_dir, layout, verbose=verbose)

    run_and_exit(_inspect)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
