"""Shared fixtures: GLB byte strings assembled from numpy arrays."""

from __future__ import annotations

import json
import struct
from typing import Any

import numpy as np
import pytest

GLB_MAGIC = 0x46546C67
CHUNK_JSON = 0x4E4F534A
CHUNK_BIN = 0x004E4942

INDEX_COMPONENT_TYPES = {"<u1": 5121, "u1": 5121, "<u2": 5123, "<u4": 5125}


def _pad(data: bytes, fill: bytes) -> bytes:
    return data + fill * (-len(data) % 4)


def pack_glb(
    gltf: dict[str, Any] | bytes,
    chunks: list[bytes] | None = None,
    version: int = 2,
    magic: int = GLB_MAGIC,
) -> bytes:
    """Assemble a GLB container from a JSON object (or raw JSON bytes) and BIN payloads."""
    json_bytes = gltf if isinstance(gltf, bytes) else json.dumps(gltf).encode("utf-8")
    parts = [(CHUNK_JSON, _pad(json_bytes, b" "))]
    parts.extend((CHUNK_BIN, _pad(chunk, b"\x00")) for chunk in chunks or [])

    body = b"".join(struct.pack("<II", len(p), t) + p for t, p in parts)
    return struct.pack("<III", magic, version, 12 + len(body)) + body


class GlbBuilder:
    """Build small glTF assets with one binary buffer."""

    def __init__(self) -> None:
        self.blob = bytearray()
        self.gltf: dict[str, Any] = {
            "asset": {"version": "2.0"},
            "scenes": [],
            "nodes": [],
            "meshes": [],
            "accessors": [],
            "bufferViews": [],
        }

    def add_view(self, data: bytes, stride: int | None = None) -> int:
        self.blob += b"\x00" * (-len(self.blob) % 4)
        view = {"buffer": 0, "byteOffset": len(self.blob), "byteLength": len(data)}
        if stride is not None:
            view["byteStride"] = stride
        self.blob += data
        self.gltf["bufferViews"].append(view)
        return len(self.gltf["bufferViews"]) - 1

    def add_accessor(
        self,
        view: int,
        component_type: int,
        count: int,
        type_: str,
        byte_offset: int = 0,
    ) -> int:
        accessor = {"bufferView": view, "componentType": component_type, "count": count, "type": type_}
        if byte_offset:
            accessor["byteOffset"] = byte_offset
        self.gltf["accessors"].append(accessor)
        return len(self.gltf["accessors"]) - 1

    def add_vec3(self, values) -> int:
        array = np.asarray(values, dtype="<f4").reshape(-1, 3)
        view = self.add_view(array.tobytes())
        return self.add_accessor(view, 5126, len(array), "VEC3")

    def add_indices(self, values, dtype: str = "<u2") -> int:
        array = np.asarray(values, dtype=dtype).reshape(-1)
        view = self.add_view(array.tobytes())
        return self.add_accessor(view, INDEX_COMPONENT_TYPES[dtype], len(array), "SCALAR")

    def add_primitive_mesh(self, positions, indices=None, normals=None, **extra) -> int:
        """Add a one-primitive mesh built from arrays and return its index."""
        primitive: dict[str, Any] = {"attributes": {"POSITION": self.add_vec3(positions)}}
        if normals is not None:
            primitive["attributes"]["NORMAL"] = self.add_vec3(normals)
        if indices is not None:
            primitive["indices"] = self.add_indices(indices, extra.pop("index_dtype", "<u2"))
        primitive.update(extra)
        return self.add_mesh([primitive])

    def add_mesh(self, primitives: list[dict[str, Any]]) -> int:
        self.gltf["meshes"].append({"primitives": primitives})
        return len(self.gltf["meshes"]) - 1

    def add_node(self, **props: Any) -> int:
        self.gltf["nodes"].append(props)
        return len(self.gltf["nodes"]) - 1

    def add_scene(self, nodes: list[int]) -> int:
        self.gltf["scenes"].append({"nodes": nodes})
        return len(self.gltf["scenes"]) - 1

    def to_json(self) -> dict[str, Any]:
        gltf = {key: value for key, value in self.gltf.items() if value}
        if self.blob:
            gltf["buffers"] = [{"byteLength": len(self.blob)}]
        return gltf

    def build(self) -> bytes:
        chunks = [bytes(self.blob)] if self.blob else []
        return pack_glb(self.to_json(), chunks)


@pytest.fixture
def builder() -> GlbBuilder:
    """Fresh GLB builder."""
    return GlbBuilder()


@pytest.fixture
def triangle_glb() -> bytes:
    """One mesh, one indexed triangle, no normals, one scene with one node."""
    b = GlbBuilder()
    mesh = b.add_primitive_mesh(
        positions=[(0, 0, 0), (1, 0, 0), (0, 1, 0)],
        indices=[0, 1, 2],
    )
    b.add_scene([b.add_node(mesh=mesh)])
    return b.build()


@pytest.fixture
def quad_glb() -> bytes:
    """Quad as 4 shared vertices and 6 indices, with normals."""
    b = GlbBuilder()
    mesh = b.add_primitive_mesh(
        positions=[(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)],
        normals=[(0, 0, 1)] * 4,
        indices=[0, 1, 2, 0, 2, 3],
    )
    b.add_scene([b.add_node(mesh=mesh, name="quad")])
    return b.build()


@pytest.fixture
def two_root_glb() -> bytes:
    """One scene with two roots, one of which has a child and a transform."""
    b = GlbBuilder()
    mesh = b.add_primitive_mesh(positions=[(0, 0, 0), (1, 0, 0), (0, 1, 0)])
    child = b.add_node(name="child", mesh=mesh)
    first = b.add_node(name="first", translation=[1.0, 2.0, 3.0], children=[child])
    second = b.add_node(name="second", mesh=mesh, scale=[2.0, 2.0, 2.0])
    b.add_scene([first, second])
    b.gltf["materials"] = [{"name": "paint"}]
    return b.build()
