"""
OCI image layout unpacker.

Reads an OCI image layout from disk, selects one manifest through the given
filters, verifies every blob it touches against its descriptor, and unpacks
the image's layers into a bundle directory.

Example:
    >>> from oci_image_unpack import unpack, RefNameFilter
    >>> unpack("image/", "bundle/", [RefNameFilter("latest")])
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Sequence, Union

from .convert_config import RuntimeConfig, convert_config
from .errors import ErrorKind, UnpackError
from .filters import Filter, PlatformFilter, RefNameFilter
from .layout import Layout, read_layout
from .materializer import LayerMaterializer, TarLayerMaterializer
from .unpacker import ConfigConverter, unpack_index, unpack_manifest

logger = logging.getLogger(__name__)

__all__ = [
    "unpack",
    "unpack_index",
    "unpack_manifest",
    "read_layout",
    "Layout",
    "Filter",
    "RefNameFilter",
    "PlatformFilter",
    "ErrorKind",
    "UnpackError",
    "LayerMaterializer",
    "TarLayerMaterializer",
    "RuntimeConfig",
    "convert_config",
]


def unpack(
    image_dir: Union[str, os.PathLike],
    bundle_dir: Union[str, os.PathLike],
    filters: Sequence[Filter] = (),
    *,
    materializer: Optional[LayerMaterializer] = None,
    convert: Optional[ConfigConverter] = None,
    max_depth: Optional[int] = None,
) -> None:
    """
    Unpack the image at ``image_dir`` into ``bundle_dir``.

    Args:
        image_dir: Root of an OCI image layout
        bundle_dir: Destination; must be missing or empty
        filters: Manifest selection filters, all of which must pass
        materializer: Layer writer, ``TarLayerMaterializer`` by default
        convert: Image config converter, ``convert_config`` by default
        max_depth: Limit on nested indexes; unlimited when ``None``

    Raises:
        UnpackError: On any failure. The bundle directory is removed if the
            failure happened while layers were being written.
    """
    logger.info(f"Unpacking {image_dir} into {bundle_dir}")
    layout = read_layout(image_dir)
    unpack_index(
        layout.index,
        layout,
        bundle_dir,
        filters,
        materializer=materializer,
        convert=convert,
        max_depth=max_depth,
    )
