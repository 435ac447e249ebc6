"""Flatten every mesh primitive of a document into one triangle soup.

Meshes and primitives are visited in document order and their triangles
concatenated. Indexed primitives are expanded so each index yields its own
vertex; non-indexed primitives are copied as stored.

Normals are all-or-nothing: the result carries normals only when every
contributing primitive supplied them. A primitive without normals never
gets zero-filled ones, so a single such primitive drops normals from the
whole result.
"""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from ..core.errors import FormatError, UnsupportedFeature
from ..glb.accessor import read_indices, read_vec3
from ..glb.document import GlbDocument, Primitive
from .geometry import GeometryData

logger = logging.getLogger(__name__)

TRIANGLES = 4


def flatten(document: GlbDocument) -> GeometryData:
    """Extract all triangles of the document as GeometryData.

    Primitives without a POSITION attribute contribute nothing. Primitives
    using unsupported features are logged and skipped.

    Args:
        document: Decoded document (not modified)

    Returns:
        GeometryData with positions and, if every contributor had them, normals

    Raises:
        FormatError: If an index points past the end of its POSITION data
    """
    positions: list[NDArray[np.float32]] = []
    normals: list[NDArray[np.float32] | None] = []

    for mesh_index, mesh in enumerate(document.gltf.meshes):
        for primitive_index, primitive in enumerate(mesh.primitives):
            where = f"mesh {mesh_index} primitive {primitive_index}"
            try:
                contribution = _flatten_primitive(document, primitive)
            except UnsupportedFeature as e:
                logger.warning(f"Skipping {where}: {e}")
                continue

            if contribution is None:
                logger.debug(f"Skipping {where}: no POSITION attribute")
                continue

            primitive_positions, primitive_normals = contribution
            positions.append(primitive_positions)
            normals.append(primitive_normals)
            logger.debug(
                f"{where}: {len(primitive_positions) // 3} vertices, "
                f"normals={'yes' if primitive_normals is not None else 'no'}"
            )

    if not positions:
        logger.info("No triangles found in document")
        return GeometryData.empty()

    position = np.concatenate(positions)
    normal = None
    with_normals = sum(n is not None for n in normals)
    if with_normals == len(normals):
        normal = np.concatenate(normals)
    elif with_normals:
        logger.warning(
            f"Dropping normals: {len(normals) - with_normals} of {len(normals)} "
            "primitives have no NORMAL attribute"
        )

    geometry = GeometryData(position=position, normal=normal)
    logger.info(f"Flattened {len(positions)} primitive(s) into {geometry!r}")
    return geometry


def _flatten_primitive(
    document: GlbDocument,
    primitive: Primitive,
) -> tuple[NDArray[np.float32], NDArray[np.float32] | None] | None:
    """Return flat (positions, normals) for one primitive, or None if it has no POSITION."""
    position_index = primitive.attributes.get("POSITION")
    if position_index is None:
        return None

    mode = TRIANGLES if primitive.mode is None else primitive.mode
    if mode != TRIANGLES:
        raise UnsupportedFeature(f"primitive mode {mode} is not TRIANGLES")

    positions = read_vec3(document, position_index, "POSITION")

    normals = None
    normal_index = primitive.attributes.get("NORMAL")
    if normal_index is not None:
        normals = read_vec3(document, normal_index, "NORMAL")
        if len(normals) != len(positions):
            raise UnsupportedFeature(
                f"NORMAL count {len(normals)} differs from POSITION count {len(positions)}"
            )

    if primitive.indices is not None:
        indices = read_indices(document, primitive.indices)
        if len(indices) and int(indices.max()) >= len(positions):
            raise FormatError(
                f"Index {int(indices.max())} out of range for {len(positions)} vertices"
            )
        positions = positions[indices]
        if normals is not None:
            normals = normals[indices]

    flat_normals = None if normals is None else normals.reshape(-1)
    return positions.reshape(-1), flat_normals
