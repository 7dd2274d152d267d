"""
Image layout reader.

Turns the root directory of an OCI image layout into a ``Layout``: the
validated top-level index plus the location of the ``blobs/`` directory.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .errors import ErrorKind, UnpackError
from .schema import BLOBS, IMAGE_LAYOUT_FILE, INDEX_JSON, Descriptor, ImageLayout, Index
from .validate import ValidatedIndex, load_model, validate_image_layout, validate_index

logger = logging.getLogger(__name__)

__all__ = ["Layout", "read_layout"]


class Layout:
    """Validated image layout, created once per unpack."""
    __slots__ = ("_index", "_blobs_dir")

    def __init__(self, index: ValidatedIndex, blobs_dir: Path):
        self._index = index
        self._blobs_dir = blobs_dir

    @property
    def index(self) -> ValidatedIndex:
        """Top-level image index."""
        return self._index

    @property
    def blobs_dir(self) -> Path:
        return self._blobs_dir

    def content_path(self, descriptor: Descriptor) -> Path:
        """Path of the blob a descriptor refers to: ``blobs/<algorithm>/<encoded>``."""
        digest = descriptor.digest
        return self._blobs_dir / digest.algorithm / digest.encoded

    def __eq__(self, other):
        if not isinstance(other, Layout):
            return NotImplemented
        return self._index == other._index and self._blobs_dir == other._blobs_dir

    __hash__ = None

    def __repr__(self) -> str:
        return f"Layout(blobs_dir={str(self._blobs_dir)!r}, manifests={len(self._index.manifests)})"


def read_layout(path: Union[str, os.PathLike]) -> Layout:
    """
    Read and validate the root directory of an image layout.

    The directory must contain a regular file ``oci-layout`` with a supported
    layout version, a regular file ``index.json`` with a supported schema
    version, and a ``blobs`` directory. Other entries are ignored.

    Args:
        path: Root directory of the image

    Returns:
        Layout holding the validated top-level index

    Raises:
        UnpackError: ``INVALID_LAYOUT`` if a required entry is missing,
            ``LAYOUT_VERSION_NOT_SUPPORTED`` / ``SCHEMA_VERSION_NOT_SUPPORTED``
            on version mismatch, ``DESERIALIZE`` / ``IO`` on read failures
    """
    root = Path(path)
    logger.debug(f"Reading image layout at {root}")

    layout_valid = False
    index: Optional[ValidatedIndex] = None
    blobs: Optional[Path] = None

    try:
        with os.scandir(root) as entries:
            for entry in entries:
                if entry.is_file(follow_symlinks=False):
                    if entry.name == IMAGE_LAYOUT_FILE:
                        validate_image_layout(load_model(Path(entry.path), ImageLayout))
                        layout_valid = True
                    elif entry.name == INDEX_JSON:
                        index = validate_index(load_model(Path(entry.path), Index))
                elif entry.is_dir(follow_symlinks=False) and entry.name == BLOBS:
                    blobs = Path(entry.path).absolute()
    except OSError as e:
        raise UnpackError(ErrorKind.IO, e) from e

    if not layout_valid or index is None or blobs is None:
        logger.debug(f"Incomplete layout at {root}: oci-layout={layout_valid}, "
                     f"index.json={index is not None}, blobs={blobs is not None}")
        raise UnpackError(ErrorKind.INVALID_LAYOUT)

    logger.debug(f"Layout at {root} lists {len(index.manifests)} manifest(s)")
    return Layout(index, blobs)
