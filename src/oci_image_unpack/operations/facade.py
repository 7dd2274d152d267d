"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the unpack pipeline,
centralizing command orchestration and configuration policy while keeping
CLI commands thin and testable.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .. import unpack as _unpack
from ..filters import Filter
from ..layout import Layout, read_layout
from ..materializer import LayerMaterializer
from ..settings import Settings

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class OpsConfig:
    """
    Configuration for Operations facade.

    Centralizes per-invocation policy to avoid scattered configuration.
    """
    verbose: bool = False         # Show detailed output


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. Exceptions bubble up unchanged so the CLI can
    map them to exit codes in one place. The materializer is injectable so
    tests can run the full pipeline against fakes.
    """

    def __init__(self, config: OpsConfig, settings: Optional[Settings] = None,
                 materializer: Optional[LayerMaterializer] = None):
        """
        Initialize Operations facade.

        Args:
            config: Configuration settings
            settings: Optional settings (if None, loaded from environment)
            materializer: Layer materializer (None for the tar default)
        """
        self.cfg = config

        if settings is None:
            from ..settings import create_settings_from_env
            settings = create_settings_from_env()
        self.settings = settings
        self.materializer = materializer

    def unpack(self, image_dir: PathLike, bundle_dir: PathLike,
               filters: Sequence[Filter] = ()) -> None:
        """
        Unpack the selected image into a bundle directory.

        Args:
            image_dir: Root of an OCI image layout
            bundle_dir: Destination directory (missing or empty)
            filters: Manifest selection filters
        """
        logger.debug(f"unpack {image_dir} -> {bundle_dir} filters={list(filters)} "
                     f"max_depth={self.settings.max_index_depth}")
        _unpack(
            image_dir,
            bundle_dir,
            filters,
            materializer=self.materializer,
            max_depth=self.settings.max_index_depth,
        )

    def inspect(self, image_dir: PathLike) -> Layout:
        """
        Read and validate an image layout without unpacking anything.

        Args:
            image_dir: Root of an OCI image layout

        Returns:
            Layout with the validated top-level index
        """
        return read_layout(image_dir)
