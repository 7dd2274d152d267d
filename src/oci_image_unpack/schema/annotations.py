"""
Pre-defined OCI annotation keys.

See https://github.com/opencontainers/image-spec/blob/main/annotations.md
"""
from __future__ import annotations

_PREFIX = "org.opencontainers.image."

CREATED = _PREFIX + "created"
AUTHORS = _PREFIX + "authors"
URL = _PREFIX + "url"
DOCUMENTATION = _PREFIX + "documentation"
SOURCE = _PREFIX + "source"
VERSION = _PREFIX + "version"
REVISION = _PREFIX + "revision"
VENDOR = _PREFIX + "vendor"
LICENSES = _PREFIX + "licenses"
REF_NAME = _PREFIX + "ref.name"
TITLE = _PREFIX + "title"
DESCRIPTION = _PREFIX + "description"

# Keys used when converting an image config into runtime annotations
OS = _PREFIX + "os"
ARCHITECTURE = _PREFIX + "architecture"
STOP_SIGNAL = _PREFIX + "stopSignal"
