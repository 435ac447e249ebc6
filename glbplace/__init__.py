"""glbplace - GLB placement and flattening.

Decodes binary glTF (GLB) files, wraps their scenes under a placement
transform for a Z-up host, and flattens meshes into triangle soup for
direct rendering.
"""

__version__ = "0.1.0"

from .core.config import GlbPlaceConfig
from .core.errors import FileTooLarge, FormatError, GlbError, UnsupportedFeature
from .glb.codec import decode, encode
from .glb.document import GlbDocument
from .mesh.flatten import flatten
from .mesh.geometry import GeometryData
from .scene.placement import apply_placement
from .scene.transform import TransformMatrix, create_transform_matrix

__all__ = [
    "GlbPlaceConfig",
    "FileTooLarge",
    "FormatError",
    "GlbError",
    "UnsupportedFeature",
    "decode",
    "encode",
    "GlbDocument",
    "flatten",
    "GeometryData",
    "apply_placement",
    "TransformMatrix",
    "create_transform_matrix",
]
