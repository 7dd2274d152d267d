"""
Content descriptors.

See https://github.com/opencontainers/image-spec/blob/main/descriptor.md
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .digest import Digest


class Platform(BaseModel):
    """Minimum runtime requirements of the image a descriptor points at."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    architecture: str
    os: str
    os_version: Optional[str] = Field(default=None, alias="os.version")
    os_features: List[str] = Field(default_factory=list, alias="os.features")
    variant: Optional[str] = None


class Descriptor(BaseModel):
    """Reference to a content-addressed blob."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    media_type: str = Field(..., alias="mediaType")
    digest: Digest
    size: int = Field(..., ge=0, description="Blob size in bytes")
    # Schema-only: blobs are never fetched from these
    urls: List[str] = Field(default_factory=list)
    annotations: Dict[str, str] = Field(default_factory=dict)
    platform: Optional[Platform] = None

    @field_validator("urls", "annotations", mode="before")
    @classmethod
    def _null_as_empty(cls, v, info: ValidationInfo):
        if v is None:
            return cls.model_fields[info.field_name].default_factory()
        return v
