"""
OCI media types.

Single source of truth for the media types the unpacker recognizes.
"""
from __future__ import annotations

_PREFIX = "application/vnd.oci."

CONTENT_DESCRIPTOR = _PREFIX + "descriptor.v1+json"
OCI_LAYOUT = _PREFIX + "layout.header.v1+json"
IMAGE_INDEX = _PREFIX + "image.index.v1+json"
IMAGE_MANIFEST = _PREFIX + "image.manifest.v1+json"
IMAGE_CONFIG = _PREFIX + "image.config.v1+json"

# Layer types
LAYER_TAR = _PREFIX + "image.layer.v1.tar"
LAYER_TAR_GZIP = _PREFIX + "image.layer.v1.tar+gzip"
LAYER_TAR_NONDISTRIBUTABLE = _PREFIX + "image.layer.nondistributable.v1.tar"
LAYER_TAR_GZIP_NONDISTRIBUTABLE = _PREFIX + "image.layer.nondistributable.v1.tar+gzip"

LAYER_MEDIA_TYPES = frozenset({
    LAYER_TAR,
    LAYER_TAR_GZIP,
    LAYER_TAR_NONDISTRIBUTABLE,
    LAYER_TAR_GZIP_NONDISTRIBUTABLE,
})

GZIP_LAYER_MEDIA_TYPES = frozenset({
    LAYER_TAR_GZIP,
    LAYER_TAR_GZIP_NONDISTRIBUTABLE,
})


__all__ = [
    "CONTENT_DESCRIPTOR",
    "OCI_LAYOUT",
    "IMAGE_INDEX",
    "IMAGE_MANIFEST",
    "IMAGE_CONFIG",
    "LAYER_TAR",
    "LAYER_TAR_GZIP",
    "LAYER_TAR_NONDISTRIBUTABLE",
    "LAYER_TAR_GZIP_NONDISTRIBUTABLE",
    "LAYER_MEDIA_TYPES",
    "GZIP_LAYER_MEDIA_TYPES",
]
