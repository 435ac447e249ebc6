"""Configuration management for glbplace.

This module defines all configuration models using Pydantic for validation.
Configuration can be loaded from JSON files or constructed programmatically.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class PlacementParams(BaseModel):
    """Parameters for placing a GLB file in the host scene.

    Used both for the temporary render path (scale baked into a wrapper
    node) and for the permanent element path (scale in the element
    transform).
    """

    scale: float = Field(default=10.0, gt=0, description="Uniform scale applied at placement")


class MeshRenderParams(BaseModel):
    """Parameters for rendering flattened triangle soup directly."""

    scale: float = Field(default=0.1, gt=0, description="Uniform scale applied to the vertices")
    axis_swap: bool = Field(
        default=True,
        description="Rotate +90 degrees about X to turn Y-up vertices into Z-up",
    )


class InputLimits(BaseModel):
    """Checks the caller applies before handing bytes to the decoder."""

    max_file_size_mb: float = Field(default=200.0, gt=0, description="Largest accepted file in MB")
    allowed_suffixes: list[str] = Field(
        default_factory=lambda: [".glb"],
        description="Accepted file extensions (case-insensitive)",
    )

    @field_validator("allowed_suffixes")
    @classmethod
    def _normalize_suffixes(cls, value: list[str]) -> list[str]:
        normalized = []
        for suffix in value:
            suffix = suffix.strip().lower()
            if not suffix.startswith("."):
                suffix = f".{suffix}"
            normalized.append(suffix)
        return normalized

    @property
    def max_file_size_bytes(self) -> int:
        """Size ceiling in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)


class GlbPlaceConfig(BaseModel):
    """Main configuration container."""

    placement: PlacementParams = Field(default_factory=PlacementParams)
    mesh_render: MeshRenderParams = Field(default_factory=MeshRenderParams)
    limits: InputLimits = Field(default_factory=InputLimits)

    @classmethod
    def from_file(cls, path: Path | str) -> GlbPlaceConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.model_validate(data)

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def default(cls) -> GlbPlaceConfig:
        """Create a default configuration."""
        return cls()
