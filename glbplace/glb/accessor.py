"""Typed reads of accessor data into numpy arrays.

Only the layouts needed for triangle soup are decoded: float32 VEC3 vertex
attributes and unsigned integer SCALAR indices. Everything else raises
UnsupportedFeature so the caller can skip the primitive.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from ..core.errors import FormatError, UnsupportedFeature
from .document import Accessor, GlbDocument

# glTF componentType codes
BYTE = 5120
UNSIGNED_BYTE = 5121
SHORT = 5122
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

COMPONENT_DTYPES: dict[int, np.dtype] = {
    BYTE: np.dtype("i1"),
    UNSIGNED_BYTE: np.dtype("u1"),
    SHORT: np.dtype("<i2"),
    UNSIGNED_SHORT: np.dtype("<u2"),
    UNSIGNED_INT: np.dtype("<u4"),
    FLOAT: np.dtype("<f4"),
}

TYPE_COMPONENTS: dict[str, int] = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
    "MAT2": 4,
    "MAT3": 9,
    "MAT4": 16,
}

INDEX_COMPONENT_TYPES = {UNSIGNED_BYTE, UNSIGNED_SHORT, UNSIGNED_INT}


def accessor_layout(accessor: Accessor) -> tuple[np.dtype, int]:
    """Return (component dtype, components per element) for an accessor.

    Raises:
        FormatError: If componentType or type is not a glTF value
    """
    dtype = COMPONENT_DTYPES.get(accessor.component_type)
    if dtype is None:
        raise FormatError(f"Unknown accessor componentType {accessor.component_type}")
    components = TYPE_COMPONENTS.get(accessor.type)
    if components is None:
        raise FormatError(f"Unknown accessor type {accessor.type!r}")
    return dtype, components


def check_bounds(document: GlbDocument) -> None:
    """Check every accessor and buffer view lies inside its backing storage.

    Buffer views must fit the declared buffer length and, when the buffer
    is bound to a binary chunk, the chunk itself. Accessors must fit
    their buffer view, honouring byteStride.

    Raises:
        FormatError: On the first out-of-range view or accessor
    """
    gltf = document.gltf

    for v, view in enumerate(gltf.buffer_views):
        start = view.byte_offset or 0
        end = start + view.byte_length
        buffer = gltf.buffers[view.buffer]
        if end > buffer.byte_length:
            raise FormatError(
                f"bufferViews[{v}] spans bytes {start}..{end} "
                f"but buffer {view.buffer} declares {buffer.byte_length}"
            )
        data = document.buffer_data(view.buffer)
        if data is not None and end > len(data):
            raise FormatError(
                f"bufferViews[{v}] spans bytes {start}..{end} "
                f"but the binary chunk holds {len(data)}"
            )

    for a, accessor in enumerate(gltf.accessors):
        if accessor.buffer_view is None:
            continue
        view = gltf.buffer_views[accessor.buffer_view]
        dtype, components = accessor_layout(accessor)
        element_size = dtype.itemsize * components
        stride = view.byte_stride or element_size
        if stride < element_size:
            raise FormatError(
                f"accessors[{a}] element size {element_size} exceeds byteStride {stride}"
            )
        start = accessor.byte_offset or 0
        end = start + stride * (accessor.count - 1) + element_size if accessor.count else start
        if end > view.byte_length:
            raise FormatError(
                f"accessors[{a}] needs {end} bytes but bufferViews[{accessor.buffer_view}] "
                f"is {view.byte_length} bytes long"
            )


def read_accessor(document: GlbDocument, index: int) -> NDArray:
    """Read an accessor as a (count, components) array.

    Args:
        document: Decoded document owning the accessor
        index: Accessor handle

    Returns:
        Array in the accessor's native dtype (a copy, never a view)

    Raises:
        UnsupportedFeature: For sparse accessors, accessors without a
            buffer view, or data not stored in the container
    """
    accessor = document.gltf.accessors[index]
    if accessor.sparse is not None:
        raise UnsupportedFeature(f"Accessor {index} is sparse")
    if accessor.buffer_view is None:
        raise UnsupportedFeature(f"Accessor {index} has no bufferView")

    view = document.gltf.buffer_views[accessor.buffer_view]
    data = document.buffer_data(view.buffer)
    if data is None:
        raise UnsupportedFeature(
            f"Accessor {index} reads buffer {view.buffer}, which is not stored in the container"
        )

    dtype, components = accessor_layout(accessor)
    if accessor.count == 0:
        return np.empty((0, components), dtype=dtype)

    stride = view.byte_stride or dtype.itemsize * components
    offset = (view.byte_offset or 0) + (accessor.byte_offset or 0)
    array = np.ndarray(
        shape=(accessor.count, components),
        dtype=dtype,
        buffer=data,
        offset=offset,
        strides=(stride, dtype.itemsize),
    )
    return array.copy()


def read_vec3(document: GlbDocument, index: int, semantic: str = "attribute") -> NDArray[np.float32]:
    """Read a float32 VEC3 vertex attribute as an (N, 3) array."""
    accessor = document.gltf.accessors[index]
    if accessor.type != "VEC3":
        raise UnsupportedFeature(f"{semantic} accessor {index} is {accessor.type}, expected VEC3")
    if accessor.component_type != FLOAT or accessor.normalized:
        raise UnsupportedFeature(
            f"{semantic} accessor {index} has componentType {accessor.component_type}, "
            "only 32-bit float is supported"
        )
    return read_accessor(document, index).astype(np.float32, copy=False)


def read_indices(document: GlbDocument, index: int) -> NDArray[np.uint32]:
    """Read an index accessor as a flat uint32 array."""
    accessor = document.gltf.accessors[index]
    if accessor.type != "SCALAR":
        raise UnsupportedFeature(f"Index accessor {index} is {accessor.type}, expected SCALAR")
    if accessor.component_type not in INDEX_COMPONENT_TYPES:
        raise UnsupportedFeature(
            f"Index accessor {index} has componentType {accessor.component_type}, "
            "expected an unsigned 8/16/32-bit integer"
        )
    return read_accessor(document, index).reshape(-1).astype(np.uint32)
