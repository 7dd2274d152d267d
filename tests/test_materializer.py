"""
Tests for tar layer extraction.

Layers are written into real image layouts and unpacked end to end, so
each test also exercises verification and rollback around the extractor.
"""
from __future__ import annotations

import os
import stat
import tarfile

import pytest

from oci_image_unpack import unpack
from oci_image_unpack.errors import ErrorKind, UnpackError
from oci_image_unpack.layout import read_layout
from oci_image_unpack.materializer import TarLayerMaterializer
from oci_image_unpack.schema import Descriptor, media_types
from oci_image_unpack.validate import verify_descriptor

from .helpers.tar_helpers import (
    TarEntry,
    dir_entry,
    file_entry,
    hardlink_entry,
    opaque_entry,
    symlink_entry,
    whiteout_entry,
)


def _unpack_layers(builder, bundle_dir, *layers):
    builder.write_index([builder.add_manifest(builder.add_config(), list(layers))])
    unpack(builder.root, bundle_dir)


def _extraction_error(builder, bundle_dir, *layers) -> UnpackError:
    with pytest.raises(UnpackError) as exc_info:
        _unpack_layers(builder, bundle_dir, *layers)
    return exc_info.value


class TestExtraction:
    """Test plain extraction of files, directories and links."""

    def test_files_and_directories(self, builder, bundle_dir):
        layer = builder.add_layer([
            dir_entry("etc"),
            file_entry("etc/hostname", b"box\n"),
            file_entry("usr/bin/tool", b"#!/bin/sh\n", mode=0o755),
        ])
        _unpack_layers(builder, bundle_dir, layer)

        assert (bundle_dir / "etc" / "hostname").read_bytes() == b"box\n"
        assert (bundle_dir / "usr" / "bin" / "tool").read_bytes() == b"#!/bin/sh\n"
        assert os.stat(bundle_dir / "usr" / "bin" / "tool").st_mode & 0o111

    def test_gzip_layer(self, builder, bundle_dir):
        layer = builder.add_layer([file_entry("compressed.txt", b"zipped")], gzip=True)
        _unpack_layers(builder, bundle_dir, layer)
        assert (bundle_dir / "compressed.txt").read_bytes() == b"zipped"

    @pytest.mark.parametrize("media_type,gzip", [
        (media_types.LAYER_TAR_NONDISTRIBUTABLE, False),
        (media_types.LAYER_TAR_GZIP_NONDISTRIBUTABLE, True),
    ])
    def test_nondistributable_layers(self, builder, bundle_dir, media_type, gzip):
        layer = builder.add_layer([file_entry("nd.txt", b"nd")], gzip=gzip, media_type=media_type)
        _unpack_layers(builder, bundle_dir, layer)
        assert (bundle_dir / "nd.txt").read_bytes() == b"nd"

    def test_dot_and_absolute_names_normalized(self, builder, bundle_dir):
        layer = builder.add_layer([
            dir_entry("./"),
            file_entry("./relative.txt", b"r"),
            file_entry("/absolute.txt", b"a"),
        ])
        _unpack_layers(builder, bundle_dir, layer)
        assert (bundle_dir / "relative.txt").read_bytes() == b"r"
        assert (bundle_dir / "absolute.txt").read_bytes() == b"a"

    def test_symlink_and_hardlink(self, builder, bundle_dir):
        layer = builder.add_layer([
            file_entry("bin/busybox", b"binary"),
            symlink_entry("bin/sh", "busybox"),
            hardlink_entry("bin/ls", "bin/busybox"),
        ])
        _unpack_layers(builder, bundle_dir, layer)

        assert os.readlink(bundle_dir / "bin" / "sh") == "busybox"
        assert (bundle_dir / "bin" / "ls").read_bytes() == b"binary"
        assert os.stat(bundle_dir / "bin" / "ls").st_ino == os.stat(bundle_dir / "bin" / "busybox").st_ino

    def test_upper_layer_replaces_file(self, builder, bundle_dir):
        lower = builder.add_layer([file_entry("config", b"old")])
        upper = builder.add_layer([file_entry("config", b"new")])
        _unpack_layers(builder, bundle_dir, lower, upper)
        assert (bundle_dir / "config").read_bytes() == b"new"

    def test_directory_replaces_file(self, builder, bundle_dir):
        lower = builder.add_layer([file_entry("path", b"file")])
        upper = builder.add_layer([dir_entry("path"), file_entry("path/inner", b"x")])
        _unpack_layers(builder, bundle_dir, lower, upper)
        assert (bundle_dir / "path" / "inner").read_bytes() == b"x"

    def test_existing_directory_merged(self, builder, bundle_dir):
        lower = builder.add_layer([dir_entry("data"), file_entry("data/a", b"a")])
        upper = builder.add_layer([dir_entry("data"), file_entry("data/b", b"b")])
        _unpack_layers(builder, bundle_dir, lower, upper)
        assert sorted(p.name for p in (bundle_dir / "data").iterdir()) == ["a", "b"]

    def test_read_only_directory_stays_writable(self, builder, bundle_dir):
        layer = builder.add_layer([dir_entry("ro", mode=0o555), file_entry("ro/file", b"x")])
        _unpack_layers(builder, bundle_dir, layer)
        assert stat.S_IMODE(os.stat(bundle_dir / "ro").st_mode) & 0o700 == 0o700
        assert (bundle_dir / "ro" / "file").read_bytes() == b"x"

    def test_device_nodes_skipped(self, builder, bundle_dir):
        layer = builder.add_layer([
            TarEntry(name="dev/null", type=tarfile.CHRTYPE, mode=0o666),
            TarEntry(name="dev/sda", type=tarfile.BLKTYPE, mode=0o660),
            file_entry("dev/README", b"devices"),
        ])
        _unpack_layers(builder, bundle_dir, layer)
        assert not os.path.lexists(bundle_dir / "dev" / "null")
        assert not os.path.lexists(bundle_dir / "dev" / "sda")
        assert (bundle_dir / "dev" / "README").exists()


class TestWhiteouts:
    """Test OCI whiteout handling."""

    def test_whiteout_removes_lower_file(self, builder, bundle_dir):
        lower = builder.add_layer([file_entry("etc/a", b"a"), file_entry("etc/b", b"b")])
        upper = builder.add_layer([whiteout_entry("etc/a")])
        _unpack_layers(builder, bundle_dir, lower, upper)

        assert not (bundle_dir / "etc" / "a").exists()
        assert (bundle_dir / "etc" / "b").exists()
        assert not (bundle_dir / "etc" / ".wh.a").exists()

    def test_whiteout_removes_lower_directory(self, builder, bundle_dir):
        lower = builder.add_layer([file_entry("cache/x/y", b"y")])
        upper = builder.add_layer([whiteout_entry("cache")])
        _unpack_layers(builder, bundle_dir, lower, upper)
        assert not (bundle_dir / "cache").exists()

    def test_whiteout_of_missing_path_ignored(self, builder, bundle_dir):
        layer = builder.add_layer([whiteout_entry("never-existed")])
        _unpack_layers(builder, bundle_dir, layer)
        assert list(bundle_dir.iterdir()) == []

    def test_whiteout_keeps_same_layer_file(self, builder, bundle_dir):
        layer = builder.add_layer([file_entry("keep", b"k"), whiteout_entry("keep")])
        _unpack_layers(builder, bundle_dir, layer)
        assert (bundle_dir / "keep").read_bytes() == b"k"

    @pytest.mark.parametrize("opaque_first", [True, False])
    def test_opaque_whiteout(self, builder, bundle_dir, opaque_first):
        lower = builder.add_layer([file_entry("app/old1", b"1"), file_entry("app/sub/old2", b"2")])
        upper_entries = [file_entry("app/new", b"n")]
        if opaque_first:
            upper_entries.insert(0, opaque_entry("app"))
        else:
            upper_entries.append(opaque_entry("app"))
        upper = builder.add_layer(upper_entries)
        _unpack_layers(builder, bundle_dir, lower, upper)

        assert sorted(p.name for p in (bundle_dir / "app").iterdir()) == ["new"]

    def test_opaque_whiteout_keeps_nested_same_layer_content(self, builder, bundle_dir):
        lower = builder.add_layer([file_entry("app/deep/old", b"o"), file_entry("app/gone", b"g")])
        upper = builder.add_layer([file_entry("app/deep/inner/new", b"n"), opaque_entry("app")])
        _unpack_layers(builder, bundle_dir, lower, upper)

        assert sorted(p.name for p in (bundle_dir / "app").iterdir()) == ["deep"]
        assert (bundle_dir / "app/deep/inner/new").read_bytes() == b"n"


class TestUnsafeMembers:
    """Test that layer content cannot escape the bundle directory."""

    def test_parent_traversal_rejected(self, builder, bundle_dir, tmp_path):
        layer = builder.add_layer([file_entry("ok.txt", b"ok"), file_entry("../escape.txt", b"x")])
        error = _extraction_error(builder, bundle_dir, layer)

        assert error.kind == ErrorKind.LAYER_EXTRACTION
        assert not (tmp_path / "escape.txt").exists()
        assert not bundle_dir.exists()

    def test_absolute_symlink_clamped_to_bundle(self, builder, bundle_dir, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        lower = builder.add_layer([symlink_entry("etc", str(outside))])
        upper = builder.add_layer([file_entry("etc/passwd", b"root")])
        _unpack_layers(builder, bundle_dir, lower, upper)

        assert not (outside / "passwd").exists()
        clamped = bundle_dir / str(outside).lstrip("/") / "passwd"
        assert clamped.read_bytes() == b"root"

    def test_relative_symlink_clamped_to_bundle(self, builder, bundle_dir, tmp_path):
        lower = builder.add_layer([symlink_entry("up", "../../..")])
        upper = builder.add_layer([file_entry("up/planted", b"x")])
        _unpack_layers(builder, bundle_dir, lower, upper)

        assert not (tmp_path / "planted").exists()
        assert (bundle_dir / "planted").read_bytes() == b"x"

    def test_symlink_in_same_layer_clamped(self, builder, bundle_dir, tmp_path):
        layer = builder.add_layer([symlink_entry("link", "/"), file_entry("link/root-file", b"r")])
        _unpack_layers(builder, bundle_dir, layer)
        assert (bundle_dir / "root-file").read_bytes() == b"r"

    def test_symlink_loop_rejected(self, builder, bundle_dir):
        layer = builder.add_layer([
            symlink_entry("a", "b"),
            symlink_entry("b", "a"),
            file_entry("a/file", b"x"),
        ])
        error = _extraction_error(builder, bundle_dir, layer)
        assert error.kind == ErrorKind.LAYER_EXTRACTION

    def test_whiteout_of_parent_rejected(self, builder, tmp_path):
        outer = tmp_path / "outer"
        outer.mkdir()
        (outer / "keep.txt").write_bytes(b"keep")
        bundle_dir = outer / "bundle"
        layer = builder.add_layer([file_entry(".wh...")])
        error = _extraction_error(builder, bundle_dir, layer)

        assert error.kind == ErrorKind.LAYER_EXTRACTION
        assert (outer / "keep.txt").read_bytes() == b"keep"
        assert not bundle_dir.exists()

    def test_whiteout_of_current_directory_rejected(self, builder, bundle_dir):
        layer = builder.add_layer([
            dir_entry("sub"),
            file_entry("sub/file", b"x"),
            file_entry("sub/.wh.."),
        ])
        error = _extraction_error(builder, bundle_dir, layer)
        assert error.kind == ErrorKind.LAYER_EXTRACTION
        assert not bundle_dir.exists()

    @pytest.mark.parametrize("name", [".wh.", "sub/.wh.."])
    def test_degenerate_whiteout_names_rejected(self, builder, bundle_dir, name):
        lower = builder.add_layer([file_entry("sub/kept", b"k")])
        upper = builder.add_layer([file_entry(name)])
        error = _extraction_error(builder, bundle_dir, lower, upper)
        assert error.kind == ErrorKind.LAYER_EXTRACTION


class TestCorruptLayers:
    """Test layers whose bytes are not what their media type claims."""

    def test_not_gzip(self, builder, bundle_dir):
        plain = builder.add_layer([file_entry("x", b"x")])
        mislabeled = builder.add_blob(builder.blob_path(plain).read_bytes(), media_types.LAYER_TAR_GZIP)
        error = _extraction_error(builder, bundle_dir, mislabeled)
        assert error.kind == ErrorKind.LAYER_EXTRACTION
        assert not bundle_dir.exists()

    def test_not_a_tar(self, builder, bundle_dir):
        garbage = builder.add_blob(b"this is not a tar archive" * 40, media_types.LAYER_TAR)
        error = _extraction_error(builder, bundle_dir, garbage)
        assert error.kind == ErrorKind.LAYER_EXTRACTION


class TestDirectUse:
    """Test calling the materializer without going through unpack."""

    def test_materialize_into_directory(self, builder, tmp_path):
        descriptor = builder.add_layer([file_entry("direct.txt", b"direct")])
        builder.write_index([])
        layout = read_layout(builder.root)
        verified = verify_descriptor(Descriptor.model_validate(descriptor), layout)
        dest = tmp_path / "dest"
        dest.mkdir()

        with verified.open() as stream:
            TarLayerMaterializer().materialize(verified, stream, dest)

        assert (dest / "direct.txt").read_bytes() == b"direct"
