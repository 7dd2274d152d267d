"""
Image configuration.

See https://github.com/opencontainers/image-spec/blob/main/config.md
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .digest import Digest

ROOTFS_TYPE_LAYERS = "layers"


@dataclass(frozen=True, slots=True)
class EnvVar:
    """A ``NAME=value`` environment entry. The value may contain ``=``."""
    name: str
    value: str

    @classmethod
    def parse(cls, text: str) -> EnvVar:
        name, sep, value = text.partition("=")
        if not sep or not name:
            raise ValueError(f"Invalid environment variable: {text!r}")
        return cls(name=name, value=value)

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


@dataclass(frozen=True, slots=True)
class Port:
    """Exposed port, e.g. ``8080/tcp``. Protocol defaults to tcp."""
    port: int
    protocol: Literal["tcp", "udp"] = "tcp"

    @classmethod
    def parse(cls, text: str) -> Port:
        number, _, protocol = text.partition("/")
        if not number.isdigit() or int(number) > 65535:
            raise ValueError(f"Invalid port: {text!r}")
        if "/" in text and protocol not in ("tcp", "udp"):
            raise ValueError(f"Invalid port: {text!r}")
        return cls(port=int(number), protocol=protocol or "tcp")

    def __str__(self) -> str:
        return f"{self.port}/{self.protocol}"


class ImageConfig(BaseModel):
    """Execution parameters used as a base when running a container."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: Optional[str] = Field(default=None, alias="User")
    exposed_ports: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="ExposedPorts")
    env: List[str] = Field(default_factory=list, alias="Env")
    entrypoint: List[str] = Field(default_factory=list, alias="Entrypoint")
    cmd: List[str] = Field(default_factory=list, alias="Cmd")
    volumes: Dict[str, Dict[str, Any]] = Field(default_factory=dict, alias="Volumes")
    working_dir: Optional[str] = Field(default=None, alias="WorkingDir")
    labels: Dict[str, str] = Field(default_factory=dict, alias="Labels")
    stop_signal: Optional[str] = Field(default=None, alias="StopSignal")

    # Docker-built images commonly write null for empty collections
    @field_validator("env", "entrypoint", "cmd", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v

    @field_validator("exposed_ports", "volumes", "labels", mode="before")
    @classmethod
    def _null_map(cls, v):
        return {} if v is None else v

    @field_validator("env")
    @classmethod
    def _validate_env(cls, v: List[str]) -> List[str]:
        for entry in v:
            EnvVar.parse(entry)
        return v

    @field_validator("exposed_ports")
    @classmethod
    def _validate_ports(cls, v: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        for key in v:
            Port.parse(key)
        return v

    @property
    def env_vars(self) -> List[EnvVar]:
        return [EnvVar.parse(entry) for entry in self.env]

    @property
    def ports(self) -> List[Port]:
        return [Port.parse(key) for key in self.exposed_ports]


class RootFs(BaseModel):
    """Layer content addresses (DiffIDs) of the image, first to last."""
    model_config = ConfigDict(frozen=True)

    type: str
    diff_ids: List[Digest] = Field(default_factory=list)


class History(BaseModel):
    """History entry of a single layer."""
    model_config = ConfigDict(frozen=True)

    created: Optional[datetime] = None
    author: Optional[str] = None
    created_by: Optional[str] = None
    comment: Optional[str] = None
    empty_layer: Optional[bool] = None


class Image(BaseModel):
    """Contents of an `application/vnd.oci.image.config.v1+json` blob."""
    model_config = ConfigDict(frozen=True)

    created: Optional[datetime] = None
    author: Optional[str] = None
    architecture: str
    os: str
    config: Optional[ImageConfig] = None
    rootfs: RootFs
    history: List[History] = Field(default_factory=list)

    @field_validator("history", mode="before")
    @classmethod
    def _null_history(cls, v):
        return [] if v is None else v


__all__ = [
    "ROOTFS_TYPE_LAYERS",
    "EnvVar",
    "Port",
    "ImageConfig",
    "RootFs",
    "History",
    "Image",
]
