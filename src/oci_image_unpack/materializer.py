"""
Layer materialization.

A layer materializer applies one verified layer blob onto the bundle
directory. The unpacker calls it once per layer, lowest layer first, and does
not care how the bytes get onto disk; ``TarLayerMaterializer`` is the default
implementation for the OCI tar layer media types.
"""
from __future__ import annotations

import gzip
import logging
import os
import shutil
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Protocol, Set

from .errors import ErrorKind, UnpackError
from .path_safety import resolve_in_root, safe_member_path
from .schema import media_types
from .validate import VerifiedDescriptor

logger = logging.getLogger(__name__)

# OCI whiteout markers
WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"

__all__ = ["LayerMaterializer", "TarLayerMaterializer", "WHITEOUT_PREFIX", "OPAQUE_WHITEOUT"]


class LayerMaterializer(Protocol):
    """
    Protocol for applying a layer onto the bundle directory.

    Implementations receive the verified layer descriptor, an open binary
    stream over its blob, and the bundle root. Any exception aborts the
    unpack and triggers removal of the bundle directory.
    """

    def materialize(self, layer: VerifiedDescriptor, stream: BinaryIO, dest: Path) -> None:
        ...


class TarLayerMaterializer:
    """
    Extract tar and tar+gzip layers, applying OCI whiteouts.

    Whiteouts only affect content from lower layers: a ``.wh.<name>`` entry
    never removes a path written earlier in the same layer, and an opaque
    whiteout keeps the directory's same-layer children.
    """

    def materialize(self, layer: VerifiedDescriptor, stream: BinaryIO, dest: Path) -> None:
        media_type = layer.descriptor.media_type
        mode = "r:gz" if media_type in media_types.GZIP_LAYER_MEDIA_TYPES else "r:"
        logger.debug(f"Extracting {layer.descriptor.digest} ({media_type}) into {dest}")

        try:
            with tarfile.open(fileobj=stream, mode=mode) as tar:
                self._apply(tar, Path(dest))
        except UnpackError:
            raise
        except (tarfile.TarError, gzip.BadGzipFile, zlib.error, EOFError, ValueError) as e:
            raise UnpackError(ErrorKind.LAYER_EXTRACTION, e) from e
        except OSError as e:
            raise UnpackError(ErrorKind.IO, e) from e

    def _apply(self, tar: tarfile.TarFile, dest: Path) -> None:
        written: Set[str] = set()
        written_parents: Set[str] = set()

        for member in tar:
            rel = safe_member_path(member.name)
            if not rel:
                continue

            parent, base = _split(rel)
            parent = resolve_in_root(dest, parent)

            if base == OPAQUE_WHITEOUT:
                self._clear_directory(dest, parent, written, written_parents)
                continue
            if base.startswith(WHITEOUT_PREFIX):
                name = _whiteout_target(rel, base)
                self._remove_whited_out(dest, _join(parent, name), written)
                continue

            if member.ischr() or member.isblk():
                logger.debug(f"Skipping device node {rel}")
                continue

            target_rel = _join(parent, base)
            target = dest / target_rel
            if os.path.lexists(target) and not (member.isdir() and target.is_dir() and not target.is_symlink()):
                _remove(target)

            member.name = target_rel
            if member.islnk():
                member.linkname = resolve_in_root(dest, safe_member_path(member.linkname))
            tar.extract(member, path=dest, filter=_layer_filter)
            written.add(target_rel)
            written_parents.update(_ancestors(target_rel))

    def _clear_directory(self, dest: Path, parent: str, written: Set[str], written_parents: Set[str]) -> None:
        directory = dest / parent if parent else dest
        if not directory.is_dir() or directory.is_symlink():
            return
        for child in directory.iterdir():
            child_rel = _join(parent, child.name)
            if child_rel in written or child_rel in written_parents:
                continue
            logger.debug(f"Opaque whiteout removes {child_rel}")
            _remove(child)

    def _remove_whited_out(self, dest: Path, rel: str, written: Set[str]) -> None:
        if rel in written:
            return
        target = dest / rel
        if os.path.lexists(target):
            logger.debug(f"Whiteout removes {rel}")
            _remove(target)


def _layer_filter(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo:
    member = tarfile.tar_filter(member, dest_path)
    # Keep directories writable so later members and rollback can modify them
    if member.isdir() and member.mode is not None:
        member = member.replace(mode=member.mode | 0o700, deep=False)
    return member


def _whiteout_target(rel: str, base: str) -> str:
    name = base[len(WHITEOUT_PREFIX):]
    if name in ("", ".", "..") or "/" in name:
        raise UnpackError(ErrorKind.LAYER_EXTRACTION, ValueError(f"Invalid whiteout entry: {rel!r}"))
    return name


def _ancestors(rel: str) -> list[str]:
    parts = rel.split("/")
    return ["/".join(parts[:i]) for i in range(1, len(parts))]


def _split(rel: str) -> tuple[str, str]:
    path = PurePosixPath(rel)
    parent = str(path.parent)
    return ("" if parent == "." else parent), path.name


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()
