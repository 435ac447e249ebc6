"""Placement of GLB content under a synthetic wrapper node.

The host is Z-up and right-handed; glTF is Y-up. A host point (x, y, z)
therefore becomes the glTF translation (x, z, -y).
"""

from __future__ import annotations

import logging

from ..glb.document import GlbDocument, Node

logger = logging.getLogger(__name__)

WRAPPER_NAME = "transform_wrapper"


def host_to_gltf(x: float, y: float, z: float) -> tuple[float, float, float]:
    """Convert a Z-up host point to Y-up glTF coordinates."""
    return (x, z, -y)


def apply_placement(
    document: GlbDocument,
    x: float,
    y: float,
    z: float,
    scale: float = 1.0,
) -> GlbDocument:
    """Move every scene's roots under a wrapper carrying the placement.

    Each non-empty scene gets its own wrapper node, appended to the node
    arena, translated to the converted placement point and uniformly
    scaled. The former roots become the wrapper's children in their
    original order; their own transforms and meshes are left as they were.
    Scenes without roots are left alone.

    Args:
        document: Decoded document (not modified)
        x, y, z: Placement point in host coordinates (Z-up)
        scale: Uniform scale factor

    Returns:
        New document ready for encoding
    """
    result = document.copy()
    translation = host_to_gltf(x, y, z)

    for index, scene in enumerate(result.gltf.scenes):
        roots = scene.roots
        if not roots:
            logger.debug(f"Scene {index} has no roots, skipping")
            continue

        wrapper = Node(
            name=WRAPPER_NAME,
            translation=translation,
            scale=(scale, scale, scale),
            children=roots,
        )
        handle = result.add_node(wrapper)
        scene.nodes = [handle]
        logger.debug(f"Scene {index}: wrapped {len(roots)} root(s) under node {handle}")

    logger.info(
        f"Placed content at ({x:.1f}, {y:.1f}, {z:.1f}) with scale {scale:g} "
        f"across {result.scene_count} scene(s)"
    )
    return result
