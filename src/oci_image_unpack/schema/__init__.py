"""
OCI image-spec data models.

Pydantic models for the JSON documents found in an image layout. Values are
deserialized only; nothing in this package writes images.
"""
from . import annotations, media_types
from .descriptor import Descriptor, Platform
from .digest import (
    SHA256,
    SHA512,
    Digest,
    DigestAlgorithmNotSupportedError,
    DigestParseError,
)
from .image import EnvVar, History, Image, ImageConfig, Port, RootFs
from .index import Index
from .layout import (
    BLOBS,
    IMAGE_LAYOUT_FILE,
    IMAGE_LAYOUT_VERSION,
    INDEX_JSON,
    SCHEMA_VERSION,
    ImageLayout,
)
from .manifest import Manifest

__all__ = [
    "annotations",
    "media_types",
    "Descriptor",
    "Platform",
    "SHA256",
    "SHA512",
    "Digest",
    "DigestAlgorithmNotSupportedError",
    "DigestParseError",
    "EnvVar",
    "History",
    "Image",
    "ImageConfig",
    "Port",
    "RootFs",
    "Index",
    "BLOBS",
    "IMAGE_LAYOUT_FILE",
    "IMAGE_LAYOUT_VERSION",
    "INDEX_JSON",
    "SCHEMA_VERSION",
    "ImageLayout",
    "Manifest",
]
