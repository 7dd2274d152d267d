"""
Manifest resolution and bundle unpacking.

``unpack_index`` walks an index tree down to the single manifest selected by
the caller's filters; ``unpack_manifest`` verifies that manifest's config and
layers and drives their materialization into the bundle directory. A failure
while layers are being written removes the bundle directory entirely.
"""
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Union

from .convert_config import RuntimeConfig, convert_config
from .errors import ErrorKind, UnpackError
from .filters import Filter, matches_all
from .layout import Layout
from .materializer import LayerMaterializer, TarLayerMaterializer
from .schema import Descriptor, Image, Index, Manifest, media_types
from .validate import (
    ValidatedIndex,
    ValidatedLayerDescriptor,
    ValidatedManifest,
    validate_image_config_descriptor,
    validate_index,
    validate_layer_descriptor,
    validate_manifest,
    verify_descriptor,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]
ConfigConverter = Callable[[Image], RuntimeConfig]

_CANDIDATE_MEDIA_TYPES = frozenset({media_types.IMAGE_INDEX, media_types.IMAGE_MANIFEST})

__all__ = ["unpack_index", "unpack_manifest", "select_descriptor", "ConfigConverter"]


def _candidates(index: ValidatedIndex, filters: Sequence[Filter]) -> Iterator[Descriptor]:
    for descriptor in index.manifests:
        if descriptor.media_type in _CANDIDATE_MEDIA_TYPES and matches_all(descriptor, filters):
            yield descriptor


def select_descriptor(index: ValidatedIndex, filters: Sequence[Filter]) -> Descriptor:
    """
    Select the one index or manifest descriptor that passes every filter.

    Descriptors with other media types are not candidates. Only the first two
    matches are ever looked at.

    Raises:
        UnpackError: ``MANIFEST_NOT_MATCH`` if nothing matches,
            ``MANIFEST_NOT_UNIQUE`` if a second match exists
    """
    candidates = _candidates(index, filters)
    first = next(candidates, None)
    if first is None:
        raise UnpackError(ErrorKind.MANIFEST_NOT_MATCH)
    second = next(candidates, None)
    if second is not None:
        logger.debug(f"Both {first.digest} and {second.digest} match {list(filters)}")
        raise UnpackError(ErrorKind.MANIFEST_NOT_UNIQUE)
    return first


def unpack_index(
    index: ValidatedIndex,
    layout: Layout,
    bundle_dir: PathLike,
    filters: Sequence[Filter],
    *,
    materializer: Optional[LayerMaterializer] = None,
    convert: Optional[ConfigConverter] = None,
    max_depth: Optional[int] = None,
    _depth: int = 0,
) -> None:
    """
    Resolve ``index`` to a single manifest and unpack it into ``bundle_dir``.

    Nested indexes are verified, validated and descended into with the same
    filters. With ``max_depth`` unset there is no limit on nesting.

    Raises:
        UnpackError: On any resolution, verification or unpack failure
    """
    descriptor = select_descriptor(index, filters)

    if descriptor.media_type == media_types.IMAGE_INDEX:
        if max_depth is not None and _depth >= max_depth:
            logger.debug(f"Refusing to descend into {descriptor.digest} at depth {_depth + 1}")
            raise UnpackError(ErrorKind.INDEX_DEPTH_EXCEEDED)
        logger.debug(f"Descending into nested index {descriptor.digest}")
        nested = validate_index(verify_descriptor(descriptor, layout).deserialize(Index))
        return unpack_index(
            nested,
            layout,
            bundle_dir,
            filters,
            materializer=materializer,
            convert=convert,
            max_depth=max_depth,
            _depth=_depth + 1,
        )

    logger.info(f"Selected manifest {descriptor.digest}")
    manifest = validate_manifest(verify_descriptor(descriptor, layout).deserialize(Manifest))
    return unpack_manifest(manifest, layout, bundle_dir, materializer=materializer, convert=convert)


def unpack_manifest(
    manifest: ValidatedManifest,
    layout: Layout,
    bundle_dir: PathLike,
    *,
    materializer: Optional[LayerMaterializer] = None,
    convert: Optional[ConfigConverter] = None,
) -> None:
    """
    Unpack a validated manifest into ``bundle_dir``.

    The image config is verified and converted first. The bundle directory
    must be missing or empty, and every layer must have a layer media type,
    before anything is written. Layers are then verified and materialized in
    manifest order; if that fails the bundle directory is removed. Rollback
    also runs on KeyboardInterrupt and SystemExit so an interrupted unpack
    never leaves a partial bundle behind.

    Raises:
        UnpackError: ``BUNDLE_DIRECTORY_NOT_EMPTY``, ``UNEXPECTED_MEDIA_TYPE``,
            verification errors, or whatever the materializer raised
    """
    materializer = materializer if materializer is not None else TarLayerMaterializer()
    convert = convert if convert is not None else convert_config
    bundle = Path(bundle_dir)

    # Image config
    config_descriptor = validate_image_config_descriptor(manifest.config)
    image = verify_descriptor(config_descriptor.descriptor, layout).deserialize(Image)
    convert(image)

    # Layers
    if _is_non_empty_dir(bundle):
        raise UnpackError(ErrorKind.BUNDLE_DIRECTORY_NOT_EMPTY)

    layers = [validate_layer_descriptor(d) for d in manifest.layers]

    try:
        bundle.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise UnpackError(ErrorKind.IO, e) from e

    try:
        _expand_layers(layers, layout, bundle, materializer)
    except BaseException as e:
        logger.warning(f"Unpack into {bundle} failed, removing it: {e}")
        try:
            shutil.rmtree(bundle)
        except OSError as cleanup_error:
            raise UnpackError(ErrorKind.IO, cleanup_error) from e
        raise

    logger.info(f"Unpacked {len(layers)} layer(s) into {bundle}")


def _expand_layers(
    layers: Sequence[ValidatedLayerDescriptor],
    layout: Layout,
    bundle: Path,
    materializer: LayerMaterializer,
) -> None:
    for position, layer in enumerate(layers):
        verified = verify_descriptor(layer.descriptor, layout)
        logger.debug(f"Applying layer {position} ({verified.descriptor.digest})")
        with verified.open() as stream:
            materializer.materialize(verified, stream, bundle)


def _is_non_empty_dir(path: Path) -> bool:
    try:
        if not path.exists():
            return False
        with os.scandir(path) as entries:
            return next(entries, None) is not None
    except OSError as e:
        raise UnpackError(ErrorKind.IO, e) from e
