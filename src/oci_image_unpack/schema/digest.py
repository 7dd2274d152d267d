"""
Content digests.

A digest is written as ``algorithm:encoded``. Only sha256 and sha512 are
registered algorithms; anything else that is syntactically valid is kept
verbatim so it round-trips through parse and display, but cannot be verified.
"""
from __future__ import annotations

import hashlib
import re
from typing import IO, Any

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

SHA256 = "sha256"
SHA512 = "sha512"

REGISTERED_ALGORITHMS = frozenset({SHA256, SHA512})

CHUNK_SIZE = 1024 * 1024  # 1 MiB

_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")
_ENCODED_RE = {
    SHA256: re.compile(r"^[a-f0-9]{64}$"),
    SHA512: re.compile(r"^[a-f0-9]{128}$"),
}

__all__ = [
    "SHA256",
    "SHA512",
    "REGISTERED_ALGORITHMS",
    "Digest",
    "DigestParseError",
    "DigestAlgorithmNotSupportedError",
]


class DigestParseError(ValueError):
    """Raised when a string is not a syntactically valid digest."""


class DigestAlgorithmNotSupportedError(Exception):
    """Raised when validating or verifying with an unregistered algorithm."""

    def __init__(self, algorithm: str):
        super().__init__(f"Unsupported digest algorithm: {algorithm}")
        self.algorithm = algorithm


class Digest(BaseModel):
    """
    Parsed ``algorithm:encoded`` digest.

    Immutable, compared structurally. Serialized to and from its string form
    when embedded in other models.
    """
    model_config = ConfigDict(frozen=True)

    algorithm: str
    encoded: str

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return cls._split(data)
        return data

    @model_serializer
    def _to_string(self) -> str:
        return str(self)

    @classmethod
    def parse(cls, text: str) -> Digest:
        """
        Parse a digest string.

        Raises:
            DigestParseError: If ``text`` is not a valid digest
        """
        return cls(**cls._split(text))

    @staticmethod
    def _split(text: str) -> dict[str, str]:
        if not _DIGEST_RE.fullmatch(text):
            raise DigestParseError(f"Invalid digest: {text!r}")
        algorithm, encoded = text.split(":", 1)
        return {"algorithm": algorithm, "encoded": encoded}

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.encoded}"

    @property
    def is_registered(self) -> bool:
        return self.algorithm in REGISTERED_ALGORITHMS

    def validate_encoded(self) -> bool:
        """
        Check that the encoded part has the shape the algorithm requires.

        Raises:
            DigestAlgorithmNotSupportedError: For unregistered algorithms
        """
        pattern = _ENCODED_RE.get(self.algorithm)
        if pattern is None:
            raise DigestAlgorithmNotSupportedError(self.algorithm)
        return bool(pattern.fullmatch(self.encoded))

    def verify(self, stream: IO[bytes]) -> bool:
        """
        Hash ``stream`` to its end and compare against this digest.

        Raises:
            DigestAlgorithmNotSupportedError: For unregistered algorithms
            OSError: If reading the stream fails
        """
        if not self.is_registered:
            raise DigestAlgorithmNotSupportedError(self.algorithm)

        hash_obj = hashlib.new(self.algorithm)
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            hash_obj.update(chunk)
        return hash_obj.hexdigest() == self.encoded
