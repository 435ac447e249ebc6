"""GLB container decoding, encoding and accessor reads."""

from .codec import decode, encode
from .document import (
    Accessor,
    Buffer,
    BufferView,
    GlbDocument,
    GltfJson,
    Mesh,
    Node,
    Primitive,
    Scene,
)

__all__ = [
    "decode",
    "encode",
    "Accessor",
    "Buffer",
    "BufferView",
    "GlbDocument",
    "GltfJson",
    "Mesh",
    "Node",
    "Primitive",
    "Scene",
]
