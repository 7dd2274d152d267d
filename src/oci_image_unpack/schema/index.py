"""
Image index (manifest list).

See https://github.com/opencontainers/image-spec/blob/main/image-index.md
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .descriptor import Descriptor


class Index(BaseModel):
    """Descriptors of manifests or nested indexes, one per image variant."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_version: int = Field(..., alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    manifests: List[Descriptor]
    annotations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("annotations", mode="before")
    @classmethod
    def _null_annotations(cls, v):
        return {} if v is None else v
