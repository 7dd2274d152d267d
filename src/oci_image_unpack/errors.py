"""
Unpack error taxonomy.

Every failure raised by the unpack pipeline is an ``UnpackError`` carrying an
``ErrorKind``. The kind is what callers branch on; the optional source is the
lower-level exception (I/O, JSON parsing) kept for diagnostics.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of unpack errors."""
    IO = "io"
    DESERIALIZE = "deserialize"
    INVALID_LAYOUT = "invalid_layout"
    LAYOUT_VERSION_NOT_SUPPORTED = "layout_version_not_supported"
    SCHEMA_VERSION_NOT_SUPPORTED = "schema_version_not_supported"
    MANIFEST_NOT_MATCH = "manifest_not_match"
    MANIFEST_NOT_UNIQUE = "manifest_not_unique"
    UNEXPECTED_MEDIA_TYPE = "unexpected_media_type"
    BUNDLE_DIRECTORY_NOT_EMPTY = "bundle_directory_not_empty"
    DIGEST_ALGORITHM_NOT_SUPPORTED = "digest_algorithm_not_supported"
    VERIFY_CONTENT = "verify_content"
    INDEX_DEPTH_EXCEEDED = "index_depth_exceeded"
    LAYER_EXTRACTION = "layer_extraction"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ErrorKind.IO: "I/O failed",
    ErrorKind.DESERIALIZE: "Deserialization failed",
    ErrorKind.INVALID_LAYOUT: "Invalid directory layout",
    ErrorKind.LAYOUT_VERSION_NOT_SUPPORTED: "Unsupported image layout version",
    ErrorKind.SCHEMA_VERSION_NOT_SUPPORTED: "Unsupported schema version",
    ErrorKind.MANIFEST_NOT_MATCH: "no manifest matches with filters",
    ErrorKind.MANIFEST_NOT_UNIQUE: "multiple manifests match with filters",
    ErrorKind.UNEXPECTED_MEDIA_TYPE: "descriptor has unexpected media type",
    ErrorKind.BUNDLE_DIRECTORY_NOT_EMPTY: "bundle directory exists but not empty",
    ErrorKind.DIGEST_ALGORITHM_NOT_SUPPORTED: "Unsupported digest algorithm",
    ErrorKind.VERIFY_CONTENT: "Content not matches with digest",
    ErrorKind.INDEX_DEPTH_EXCEEDED: "nested image indexes exceed the depth limit",
    ErrorKind.LAYER_EXTRACTION: "Failed to extract layer",
}


class UnpackError(Exception):
    """
    Error raised by any stage of the unpack pipeline.

    Attributes:
        kind: What went wrong
        source: Lower-level exception, if any. Also set as ``__cause__``.
    """

    def __init__(self, kind: ErrorKind, source: Optional[BaseException] = None):
        super().__init__(kind.message)
        self.kind = kind
        self.source = source
        if source is not None:
            self.__cause__ = source

    def __str__(self) -> str:
        if self.source is not None:
            return f"{self.kind.message}: {self.source}"
        return self.kind.message

    def __repr__(self) -> str:
        return f"UnpackError(kind={self.kind.name}, source={self.source!r})"


__all__ = ["ErrorKind", "UnpackError"]
