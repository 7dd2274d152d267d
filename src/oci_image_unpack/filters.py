"""
Manifest selection filters.

Filters narrow the descriptors of an image index down to the one manifest to
unpack. All filters in a list must pass. A descriptor that lacks the field a
filter looks at passes that filter.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from .schema import Descriptor
from .schema.annotations import REF_NAME

__all__ = ["RefNameFilter", "PlatformFilter", "Filter", "descriptor_matches", "matches_all"]


@dataclass(frozen=True, slots=True)
class RefNameFilter:
    """Match the ``org.opencontainers.image.ref.name`` annotation."""
    name: str


@dataclass(frozen=True, slots=True)
class PlatformFilter:
    """Match the targeted operating system and CPU architecture."""
    os: str
    arch: str

    @classmethod
    def parse(cls, text: str) -> PlatformFilter:
        """
        Parse ``os/arch`` (a trailing ``/variant`` is accepted and ignored).

        Raises:
            ValueError: If ``text`` is not in that form
        """
        parts = text.split("/")
        if len(parts) not in (2, 3) or not all(parts):
            raise ValueError(f"Invalid platform {text!r}, expected os/arch")
        return cls(os=parts[0], arch=parts[1])

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


Filter = Union[RefNameFilter, PlatformFilter]


def descriptor_matches(descriptor: Descriptor, filter: Filter) -> bool:
    """Check a single filter against a descriptor."""
    if isinstance(filter, RefNameFilter):
        ref_name = descriptor.annotations.get(REF_NAME)
        return ref_name is None or ref_name == filter.name
    if isinstance(filter, PlatformFilter):
        platform = descriptor.platform
        return platform is None or (platform.os == filter.os and platform.architecture == filter.arch)
    raise TypeError(f"Unknown filter type: {type(filter).__name__}")


def matches_all(descriptor: Descriptor, filters: Iterable[Filter]) -> bool:
    return all(descriptor_matches(descriptor, f) for f in filters)
