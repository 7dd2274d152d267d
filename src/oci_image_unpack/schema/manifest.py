"""
Image manifest.

See https://github.com/opencontainers/image-spec/blob/main/manifest.md
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .descriptor import Descriptor


class Manifest(BaseModel):
    """One image variant: a config blob plus layers, lowest layer first."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_version: int = Field(..., alias="schemaVersion")
    media_type: Optional[str] = Field(default=None, alias="mediaType")
    config: Descriptor
    layers: List[Descriptor] = Field(default_factory=list)
    annotations: Dict[str, str] = Field(default_factory=dict)

    @field_validator("layers", "annotations", mode="before")
    @classmethod
    def _null_as_empty(cls, v, info):
        if v is None:
            return [] if info.field_name == "layers" else {}
        return v
