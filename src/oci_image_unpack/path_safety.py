"""
Path safety utilities for layer extraction.

Layer archives are untrusted input; member names must stay inside the bundle
directory once written.
"""
from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

MAX_SYMLINK_HOPS = 255


def safe_member_path(name: str) -> str:
    """
    Normalize a tar member name to a relative POSIX path inside the bundle.

    Leading ``./`` and ``/`` are dropped, since layer tars commonly store
    absolute or dot-prefixed names.

    Args:
        name: Member name as stored in the archive

    Returns:
        Normalized relative path, or ``""`` for the archive root itself

    Raises:
        ValueError: If the name contains NUL bytes or ``..`` components

    Examples:
        >>> safe_member_path("./usr/bin/sh")
        'usr/bin/sh'

        >>> safe_member_path("/etc/passwd")
        'etc/passwd'

        >>> safe_member_path("../escape")
        ValueError: unsafe path: ../escape
    """
    if "\x00" in name:
        raise ValueError(f"unsafe path: {name!r}")
    rel = PurePosixPath(name.lstrip("/"))
    if ".." in rel.parts:
        raise ValueError(f"unsafe path: {name}")
    s = str(rel)
    return "" if s == "." else s


def resolve_in_root(root: Path, rel: str) -> str:
    """
    Resolve ``rel`` against ``root`` as if ``root`` were the filesystem root.

    Symlinks already extracted into ``root`` are followed, with absolute link
    targets and ``..`` clamped at ``root``, so an earlier layer's symlink can
    never redirect a write outside the bundle.

    Returns:
        Relative POSIX path with no symlink components

    Raises:
        ValueError: After too many symlink hops (a loop)
    """
    pending = list(PurePosixPath(rel).parts)
    resolved: list[str] = []
    hops = 0

    while pending:
        part = pending.pop(0)
        if part in ("", ".", "/"):
            continue
        if part == "..":
            if resolved:
                resolved.pop()
            continue

        current = root.joinpath(*resolved, part)
        if not current.is_symlink():
            resolved.append(part)
            continue

        hops += 1
        if hops > MAX_SYMLINK_HOPS:
            raise ValueError(f"too many levels of symbolic links: {rel}")
        target = PurePosixPath(os.readlink(current))
        if target.is_absolute():
            resolved = []
        pending = list(target.parts) + pending

    return "/".join(resolved)
