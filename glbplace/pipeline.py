"""Entry points for the placement and direct-render pipelines.

The host side picks a point (x, y), resolves the terrain elevation z and
then calls one of:

- ``place_glb``: bake the placement into the GLB for temporary rendering
- ``element_transform``: matrix for a permanent element whose GLB is
  uploaded unmodified
- ``prepare_mesh``: triangle soup plus matrix for direct mesh rendering

Reading files and enforcing the size ceiling happen here too, before any
bytes reach the decoder.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .core.config import InputLimits
from .core.errors import FileTooLarge
from .glb.codec import decode, encode
from .mesh.flatten import flatten
from .mesh.geometry import GeometryData
from .scene.placement import apply_placement
from .scene.transform import TransformMatrix, create_transform_matrix

logger = logging.getLogger(__name__)


def format_size(num_bytes: int) -> str:
    """Format a byte count as megabytes, e.g. ``'12.3 MB'``."""
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def is_glb_file(path: str | Path, limits: InputLimits | None = None) -> bool:
    """Check a file name against the accepted suffixes (case-insensitive)."""
    limits = limits or InputLimits()
    return Path(path).suffix.lower() in limits.allowed_suffixes


def check_file_size(num_bytes: int, limits: InputLimits | None = None) -> None:
    """Raise FileTooLarge if ``num_bytes`` exceeds the configured ceiling."""
    limits = limits or InputLimits()
    if num_bytes > limits.max_file_size_bytes:
        raise FileTooLarge(
            f"File too large ({format_size(num_bytes)}). "
            f"Max size is {limits.max_file_size_mb:g} MB."
        )


def read_glb_file(path: str | Path, limits: InputLimits | None = None) -> bytes:
    """Read a .glb file after checking its name and size.

    Args:
        path: Path to the file
        limits: Input limits (defaults apply when omitted)

    Returns:
        Raw file contents

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the suffix is not accepted
        FileTooLarge: If the file exceeds the size ceiling
    """
    limits = limits or InputLimits()
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"GLB file not found: {path}")
    if not is_glb_file(path, limits):
        raise ValueError(
            f"Unsupported format: {path.suffix}. "
            f"Supported: {limits.allowed_suffixes}"
        )

    check_file_size(path.stat().st_size, limits)
    data = path.read_bytes()
    logger.debug(f"Read {path.name} ({format_size(len(data))})")
    return data


def place_glb(data: bytes, x: float, y: float, z: float, scale: float = 1.0) -> bytes:
    """Decode, wrap every scene under a placement node and re-encode.

    Args:
        data: GLB bytes
        x, y, z: Placement point in host coordinates (Z-up)
        scale: Uniform scale factor

    Returns:
        Transformed GLB bytes
    """
    document = decode(data)
    placed = apply_placement(document, x, y, z, scale)
    return encode(placed)


def element_transform(x: float, y: float, z: float, scale: float = 1.0) -> TransformMatrix:
    """Translation + uniform scale matrix for a permanent element."""
    return create_transform_matrix(x, y, z, scale)


def prepare_mesh(
    data: bytes,
    x: float,
    y: float,
    z: float,
    scale: float = 1.0,
    axis_swap: bool = True,
) -> tuple[GeometryData, TransformMatrix]:
    """Flatten GLB bytes and build the matching render matrix.

    Args:
        data: GLB bytes
        x, y, z: Placement point in host coordinates (Z-up)
        scale: Uniform scale factor
        axis_swap: Rotate Y-up vertices into the Z-up host frame

    Returns:
        (geometry, transform) for the host renderer
    """
    geometry = flatten(decode(data))
    transform = create_transform_matrix(x, y, z, scale, axis_swap=axis_swap)
    return geometry, transform
