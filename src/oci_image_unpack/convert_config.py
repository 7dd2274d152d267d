"""
Image config to runtime config conversion.

Best-effort derivation of the process and platform settings a runtime needs
from an image config. Selected labels override the matching image fields.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .schema import Image, annotations

logger = logging.getLogger(__name__)

# Labels that override image-level fields
LABEL_OS = "os"
LABEL_ARCHITECTURE = "architecture"
LABEL_AUTHOR = "author"
LABEL_STOP_SIGNAL = "StopSignal"

__all__ = ["RuntimeConfig", "convert_config"]


@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime settings derived from an image config."""
    cwd: str
    env: List[str]
    args: List[str]
    os: str
    architecture: str
    user: Optional[str] = None
    author: Optional[str] = None
    stop_signal: Optional[str] = None
    annotations: Dict[str, str] = field(default_factory=dict)


def convert_config(image: Image) -> RuntimeConfig:
    """
    Convert an image config into a ``RuntimeConfig``.

    Precedence for os, architecture, author and stop signal is label first,
    then the image field. Args are the entrypoint followed by cmd.
    """
    cfg = image.config
    labels = dict(cfg.labels) if cfg else {}

    cwd = (cfg.working_dir if cfg else None) or ""
    env = [str(var) for var in cfg.env_vars] if cfg else []
    args = (list(cfg.entrypoint) + list(cfg.cmd)) if cfg else []

    os_name = labels.get(LABEL_OS) or image.os
    architecture = labels.get(LABEL_ARCHITECTURE) or image.architecture
    author = labels.get(LABEL_AUTHOR) or image.author
    stop_signal = labels.get(LABEL_STOP_SIGNAL) or (cfg.stop_signal if cfg else None)

    # Labels pass through; the derived image fields take precedence
    runtime_annotations = dict(labels)
    runtime_annotations[annotations.OS] = os_name
    runtime_annotations[annotations.ARCHITECTURE] = architecture
    if author:
        runtime_annotations[annotations.AUTHORS] = author
    if image.created is not None:
        runtime_annotations[annotations.CREATED] = image.created.isoformat()
    if stop_signal:
        runtime_annotations[annotations.STOP_SIGNAL] = stop_signal

    runtime = RuntimeConfig(
        cwd=cwd,
        env=env,
        args=args,
        os=os_name,
        architecture=architecture,
        user=cfg.user if cfg else None,
        author=author,
        stop_signal=stop_signal,
        annotations=runtime_annotations,
    )
    logger.debug(f"Converted image config: {runtime}")
    return runtime
