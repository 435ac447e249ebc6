"""In-memory model of a decoded GLB container.

The JSON chunk is held as pydantic models whose cross references are plain
integer indices, so the scene graph is an arena: nodes live in one list and
parents refer to children by position in that list. Properties glbplace does
not interpret (materials, textures, extensions, extras) are carried through
untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import FormatError

logger = logging.getLogger(__name__)

# Top-level arrays that must be omitted rather than written out empty
_COLLECTION_KEYS = ("scenes", "nodes", "meshes", "accessors", "bufferViews", "buffers")


class GltfModel(BaseModel):
    """Base for glTF JSON objects: camelCase on the wire, unknown keys kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Node(GltfModel):
    """A scene graph node with an optional TRS transform and mesh."""

    name: str | None = None
    children: list[int] | None = None
    mesh: int | None = None
    translation: tuple[float, float, float] | None = None
    rotation: tuple[float, float, float, float] | None = None
    scale: tuple[float, float, float] | None = None
    matrix: list[float] | None = None

    @property
    def child_handles(self) -> list[int]:
        return list(self.children or [])


class Scene(GltfModel):
    """Ordered list of root node handles."""

    name: str | None = None
    nodes: list[int] | None = None

    @property
    def roots(self) -> list[int]:
        return list(self.nodes or [])


class Primitive(GltfModel):
    attributes: dict[str, int] = Field(default_factory=dict)
    indices: int | None = None
    mode: int | None = None


class Mesh(GltfModel):
    name: str | None = None
    primitives: list[Primitive] = Field(default_factory=list)


class Accessor(GltfModel):
    """Typed view into a buffer view."""

    buffer_view: int | None = Field(default=None, alias="bufferView")
    byte_offset: int | None = Field(default=None, alias="byteOffset", ge=0)
    component_type: int = Field(alias="componentType")
    normalized: bool | None = None
    count: int = Field(ge=0)
    type: str
    sparse: dict[str, Any] | None = None


class BufferView(GltfModel):
    buffer: int
    byte_offset: int | None = Field(default=None, alias="byteOffset", ge=0)
    byte_length: int = Field(alias="byteLength", ge=0)
    byte_stride: int | None = Field(default=None, alias="byteStride", ge=4, le=252)
    target: int | None = None


class Buffer(GltfModel):
    uri: str | None = None
    byte_length: int = Field(alias="byteLength", ge=0)


class GltfJson(GltfModel):
    """The JSON chunk of a GLB container."""

    asset: dict[str, Any] = Field(default_factory=lambda: {"version": "2.0"})
    scene: int | None = None
    scenes: list[Scene] = Field(default_factory=list)
    nodes: list[Node] = Field(default_factory=list)
    meshes: list[Mesh] = Field(default_factory=list)
    accessors: list[Accessor] = Field(default_factory=list)
    buffer_views: list[BufferView] = Field(default_factory=list, alias="bufferViews")
    buffers: list[Buffer] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with glTF property names, dropping unset and empty members."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for key in _COLLECTION_KEYS:
            if not data.get(key):
                data.pop(key, None)
        return data


@dataclass
class GlbDocument:
    """A decoded GLB file: JSON scene description plus binary chunks.

    Buffers without a ``uri`` are bound, in order, to the binary chunks.
    Buffers with a ``uri`` carry no bytes here.

    Attributes:
        gltf: Parsed JSON chunk
        binary_chunks: Payloads of the BIN chunks, in container order
    """

    gltf: GltfJson = field(default_factory=GltfJson)
    binary_chunks: list[bytes] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return len(self.gltf.nodes)

    @property
    def mesh_count(self) -> int:
        return len(self.gltf.meshes)

    @property
    def accessor_count(self) -> int:
        return len(self.gltf.accessors)

    @property
    def primitive_count(self) -> int:
        return sum(len(mesh.primitives) for mesh in self.gltf.meshes)

    @property
    def scene_count(self) -> int:
        return len(self.gltf.scenes)

    # -------------------------------------------------------------------------
    # Arena
    # -------------------------------------------------------------------------

    def add_node(self, node: Node) -> int:
        """Append a node to the arena and return its handle."""
        self.gltf.nodes.append(node)
        return len(self.gltf.nodes) - 1

    def node(self, handle: int) -> Node:
        return self.gltf.nodes[handle]

    def buffer_data(self, buffer_index: int) -> bytes | None:
        """Return the bytes backing a buffer, or None if not in the container."""
        chunk_index = 0
        for i, buffer in enumerate(self.gltf.buffers):
            if buffer.uri is not None:
                continue
            if i == buffer_index:
                if chunk_index < len(self.binary_chunks):
                    return self.binary_chunks[chunk_index]
                return None
            chunk_index += 1
        return None

    def copy(self) -> GlbDocument:
        """Deep copy of the JSON model; chunk payloads are immutable and shared."""
        return GlbDocument(
            gltf=self.gltf.model_copy(deep=True),
            binary_chunks=list(self.binary_chunks),
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_references(self) -> None:
        """Check that every index in the JSON chunk resolves.

        Also checks that the node graph is a forest: each node has at most
        one parent, no cycles, and scene roots are parentless and listed in
        at most one scene.

        Raises:
            FormatError: On the first dangling or illegal reference
        """
        gltf = self.gltf

        _check_index(gltf.scene, len(gltf.scenes), "scene")

        parents: dict[int, int] = {}
        for i, node in enumerate(gltf.nodes):
            _check_index(node.mesh, len(gltf.meshes), f"nodes[{i}].mesh")
            for child in node.child_handles:
                _check_index(child, len(gltf.nodes), f"nodes[{i}].children")
                if child in parents or child == i:
                    raise FormatError(f"Node {child} has more than one parent")
                parents[child] = i
        _check_acyclic(parents)

        claimed: set[int] = set()
        for s, scene in enumerate(gltf.scenes):
            for root in scene.roots:
                _check_index(root, len(gltf.nodes), f"scenes[{s}].nodes")
                if root in parents:
                    raise FormatError(f"Scene {s} root {root} is a child of node {parents[root]}")
                if root in claimed:
                    raise FormatError(f"Node {root} is a root of more than one scene")
                claimed.add(root)

        for m, mesh in enumerate(gltf.meshes):
            for p, primitive in enumerate(mesh.primitives):
                where = f"meshes[{m}].primitives[{p}]"
                for semantic, accessor in primitive.attributes.items():
                    _check_index(accessor, len(gltf.accessors), f"{where}.attributes.{semantic}")
                _check_index(primitive.indices, len(gltf.accessors), f"{where}.indices")

        for a, accessor in enumerate(gltf.accessors):
            _check_index(accessor.buffer_view, len(gltf.buffer_views), f"accessors[{a}].bufferView")

        for v, view in enumerate(gltf.buffer_views):
            _check_index(view.buffer, len(gltf.buffers), f"bufferViews[{v}].buffer")

    def stats(self) -> dict:
        """Return statistics about the document."""
        return {
            "scenes": self.scene_count,
            "nodes": self.node_count,
            "meshes": self.mesh_count,
            "primitives": self.primitive_count,
            "accessors": self.accessor_count,
            "buffers": len(self.gltf.buffers),
            "binary_chunks": len(self.binary_chunks),
            "binary_bytes": sum(len(chunk) for chunk in self.binary_chunks),
        }

    def __repr__(self) -> str:
        return (
            f"GlbDocument({self.node_count} nodes, "
            f"{self.mesh_count} meshes, "
            f"{self.accessor_count} accessors, "
            f"{len(self.binary_chunks)} binary chunks)"
        )


def _check_index(index: int | None, count: int, where: str) -> None:
    if index is None:
        return
    if not 0 <= index < count:
        raise FormatError(f"{where} references missing index {index} (have {count})")


def _check_acyclic(parents: dict[int, int]) -> None:
    """Walk every parent chain once; a revisit within a chain is a cycle."""
    done: set[int] = set()
    for start in parents:
        chain: set[int] = set()
        current = start
        while current in parents and current not in done:
            if current in chain:
                raise FormatError(f"Node hierarchy contains a cycle through node {current}")
            chain.add(current)
            current = parents[current]
        done.update(chain)
