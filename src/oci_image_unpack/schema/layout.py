"""
Image layout constants and the `oci-layout` header model.

The supported versions live here so every check compares against one value.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

IMAGE_LAYOUT_FILE = "oci-layout"
IMAGE_LAYOUT_VERSION = "1.0.0"
INDEX_JSON = "index.json"
BLOBS = "blobs"

# Supported schemaVersion of image indexes and manifests
SCHEMA_VERSION = 2


class ImageLayout(BaseModel):
    """Contents of the `oci-layout` file."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    image_layout_version: str = Field(..., alias="imageLayoutVersion")


__all__ = [
    "IMAGE_LAYOUT_FILE",
    "IMAGE_LAYOUT_VERSION",
    "INDEX_JSON",
    "BLOBS",
    "SCHEMA_VERSION",
    "ImageLayout",
]
