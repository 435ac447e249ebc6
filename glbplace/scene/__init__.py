"""Scene graph placement and transform matrices."""

from .placement import WRAPPER_NAME, apply_placement, host_to_gltf
from .transform import TransformMatrix, create_transform_matrix

__all__ = [
    "WRAPPER_NAME",
    "apply_placement",
    "host_to_gltf",
    "TransformMatrix",
    "create_transform_matrix",
]
