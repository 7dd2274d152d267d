"""
Validated wrappers around raw schema values.

Each wrapper type proves one invariant: holding a ``ValidatedManifest`` means
its schema version was checked, holding a ``VerifiedDescriptor`` means the blob
on disk matched its size and digest, and so on. The validating function is the
only way to obtain one; calling a wrapper's constructor directly raises
``TypeError``.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ErrorKind, UnpackError
from .schema import (
    IMAGE_LAYOUT_VERSION,
    SCHEMA_VERSION,
    Descriptor,
    DigestAlgorithmNotSupportedError,
    ImageLayout,
    Index,
    Manifest,
    media_types,
)

if TYPE_CHECKING:
    from .layout import Layout

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# Held only by the validating functions below
_SEAL = object()

__all__ = [
    "ValidatedImageLayout",
    "ValidatedIndex",
    "ValidatedManifest",
    "ValidatedImageConfigDescriptor",
    "ValidatedLayerDescriptor",
    "VerifiedDescriptor",
    "validate_image_layout",
    "validate_index",
    "validate_manifest",
    "validate_image_config_descriptor",
    "validate_layer_descriptor",
    "verify_descriptor",
    "load_model",
]


def load_model(path: Path, model: Type[M]) -> M:
    """
    Read a JSON file into a schema model.

    Raises:
        UnpackError: ``IO`` if the file cannot be read, ``DESERIALIZE`` if its
            contents do not parse into ``model``
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise UnpackError(ErrorKind.IO, e) from e
    try:
        return model.model_validate_json(data)
    except ValidationError as e:
        raise UnpackError(ErrorKind.DESERIALIZE, e) from e


class _Sealed:
    """Base for wrapper types that only a validating function may construct."""
    __slots__ = ()

    def __init__(self, seal: object):
        if seal is not _SEAL:
            raise TypeError(
                f"{type(self).__name__} cannot be constructed directly; "
                f"use the matching validate function"
            )

    def __setattr__(self, name, value):
        if hasattr(self, name):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def _key(self) -> tuple:
        raise NotImplementedError

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._key() == other._key()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(k) for k in self._key())})"


class ValidatedImageLayout(_Sealed):
    """`oci-layout` header whose version is supported."""
    __slots__ = ("_image_layout",)

    def __init__(self, image_layout: ImageLayout, *, _seal: object = None):
        super().__init__(_seal)
        self._image_layout = image_layout

    @property
    def image_layout_version(self) -> str:
        return self._image_layout.image_layout_version

    def _key(self) -> tuple:
        return (self._image_layout,)


def validate_image_layout(image_layout: ImageLayout) -> ValidatedImageLayout:
    """
    Check the image layout version.

    Raises:
        UnpackError: ``LAYOUT_VERSION_NOT_SUPPORTED`` on any other version
    """
    if image_layout.image_layout_version != IMAGE_LAYOUT_VERSION:
        logger.debug(f"Unsupported image layout version {image_layout.image_layout_version!r}")
        raise UnpackError(ErrorKind.LAYOUT_VERSION_NOT_SUPPORTED)
    return ValidatedImageLayout(image_layout, _seal=_SEAL)


class ValidatedIndex(_Sealed):
    """Image index whose schema version is supported."""
    __slots__ = ("_index",)

    def __init__(self, index: Index, *, _seal: object = None):
        super().__init__(_seal)
        self._index = index

    @property
    def manifests(self) -> Tuple[Descriptor, ...]:
        return tuple(self._index.manifests)

    @property
    def annotations(self) -> dict[str, str]:
        return dict(self._index.annotations)

    def _key(self) -> tuple:
        return (self._index,)


def validate_index(index: Index) -> ValidatedIndex:
    """
    Check the schema version of an image index.

    Raises:
        UnpackError: ``SCHEMA_VERSION_NOT_SUPPORTED`` unless it is 2
    """
    if index.schema_version != SCHEMA_VERSION:
        logger.debug(f"Unsupported index schema version {index.schema_version}")
        raise UnpackError(ErrorKind.SCHEMA_VERSION_NOT_SUPPORTED)
    return ValidatedIndex(index, _seal=_SEAL)


class ValidatedManifest(_Sealed):
    """Image manifest whose schema version is supported."""
    __slots__ = ("_manifest",)

    def __init__(self, manifest: Manifest, *, _seal: object = None):
        super().__init__(_seal)
        self._manifest = manifest

    @property
    def config(self) -> Descriptor:
        return self._manifest.config

    @property
    def layers(self) -> Tuple[Descriptor, ...]:
        return tuple(self._manifest.layers)

    def _key(self) -> tuple:
        return (self._manifest,)


def validate_manifest(manifest: Manifest) -> ValidatedManifest:
    """
    Check the schema version of an image manifest.

    Raises:
        UnpackError: ``SCHEMA_VERSION_NOT_SUPPORTED`` unless it is 2
    """
    if manifest.schema_version != SCHEMA_VERSION:
        logger.debug(f"Unsupported manifest schema version {manifest.schema_version}")
        raise UnpackError(ErrorKind.SCHEMA_VERSION_NOT_SUPPORTED)
    return ValidatedManifest(manifest, _seal=_SEAL)


class ValidatedImageConfigDescriptor(_Sealed):
    """Descriptor whose media type says it refers to an image config."""
    __slots__ = ("_descriptor",)

    def __init__(self, descriptor: Descriptor, *, _seal: object = None):
        super().__init__(_seal)
        self._descriptor = descriptor

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    def _key(self) -> tuple:
        return (self._descriptor,)


def validate_image_config_descriptor(descriptor: Descriptor) -> ValidatedImageConfigDescriptor:
    """
    Check that a descriptor refers to an image config.

    Raises:
        UnpackError: ``UNEXPECTED_MEDIA_TYPE`` for any other media type
    """
    if descriptor.media_type != media_types.IMAGE_CONFIG:
        logger.debug(f"Expected image config, got {descriptor.media_type} ({descriptor.digest})")
        raise UnpackError(ErrorKind.UNEXPECTED_MEDIA_TYPE)
    return ValidatedImageConfigDescriptor(descriptor, _seal=_SEAL)


class ValidatedLayerDescriptor(_Sealed):
    """Descriptor whose media type is one of the four layer types."""
    __slots__ = ("_descriptor",)

    def __init__(self, descriptor: Descriptor, *, _seal: object = None):
        super().__init__(_seal)
        self._descriptor = descriptor

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    def _key(self) -> tuple:
        return (self._descriptor,)


def validate_layer_descriptor(descriptor: Descriptor) -> ValidatedLayerDescriptor:
    """
    Check that a descriptor refers to a tar layer, compressed or not.

    Raises:
        UnpackError: ``UNEXPECTED_MEDIA_TYPE`` for any other media type
    """
    if descriptor.media_type not in media_types.LAYER_MEDIA_TYPES:
        logger.debug(f"Expected layer, got {descriptor.media_type} ({descriptor.digest})")
        raise UnpackError(ErrorKind.UNEXPECTED_MEDIA_TYPE)
    return ValidatedLayerDescriptor(descriptor, _seal=_SEAL)


class VerifiedDescriptor(_Sealed):
    """Descriptor whose blob on disk matches its size and digest."""
    __slots__ = ("_descriptor", "_content_path")

    def __init__(self, descriptor: Descriptor, content_path: Path, *, _seal: object = None):
        super().__init__(_seal)
        self._descriptor = descriptor
        self._content_path = content_path

    @property
    def descriptor(self) -> Descriptor:
        return self._descriptor

    @property
    def content_path(self) -> Path:
        return self._content_path

    def open(self) -> BinaryIO:
        """Open the verified blob for reading."""
        try:
            return open(self._content_path, "rb")
        except OSError as e:
            raise UnpackError(ErrorKind.IO, e) from e

    def deserialize(self, model: Type[M]) -> M:
        """Re-read the blob and parse it as JSON into ``model``."""
        return load_model(self._content_path, model)

    def _key(self) -> tuple:
        return (self._descriptor, self._content_path)


def verify_descriptor(descriptor: Descriptor, layout: Layout) -> VerifiedDescriptor:
    """
    Verify the blob a descriptor refers to against its size and digest.

    The algorithm is checked before the blob is touched, so an unregistered
    algorithm is reported as such whatever the file contains. A size mismatch
    is reported without hashing the file.

    Raises:
        UnpackError: ``DIGEST_ALGORITHM_NOT_SUPPORTED``, ``IO`` if the blob
            cannot be read, ``VERIFY_CONTENT`` on size or digest mismatch
    """
    if not descriptor.digest.is_registered:
        raise UnpackError(
            ErrorKind.DIGEST_ALGORITHM_NOT_SUPPORTED,
            DigestAlgorithmNotSupportedError(descriptor.digest.algorithm),
        )

    content_path = layout.content_path(descriptor)
    logger.debug(f"Verifying {descriptor.digest} at {content_path}")

    try:
        with open(content_path, "rb") as f:
            actual_size = os.fstat(f.fileno()).st_size
            if actual_size != descriptor.size:
                logger.debug(f"Size mismatch for {descriptor.digest}: "
                             f"expected {descriptor.size}, got {actual_size}")
                raise UnpackError(ErrorKind.VERIFY_CONTENT)
            matched = descriptor.digest.verify(f)
    except DigestAlgorithmNotSupportedError as e:
        raise UnpackError(ErrorKind.DIGEST_ALGORITHM_NOT_SUPPORTED, e) from e
    except OSError as e:
        raise UnpackError(ErrorKind.IO, e) from e

    if not matched:
        logger.debug(f"Digest mismatch for {descriptor.digest}")
        raise UnpackError(ErrorKind.VERIFY_CONTENT)
    return VerifiedDescriptor(descriptor, content_path, _seal=_SEAL)
