"""Flattened, index-free triangle geometry.

GeometryData is what the direct-render path hands to the host renderer:
one flat float32 sequence of positions and, optionally, a matching
sequence of normals. Every three consecutive vertices form a triangle.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import trimesh
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..scene.transform import TransformMatrix


@dataclass
class GeometryData:
    """Triangle soup as flat float32 arrays.

    Attributes:
        position: Flat array of XYZ triples (length is a multiple of 3)
        normal: Optional flat array with one XYZ triple per position
    """

    position: NDArray[np.float32]
    normal: NDArray[np.float32] | None = None

    def __post_init__(self) -> None:
        """Validate and normalize data after initialization."""
        self.position = np.asarray(self.position, dtype=np.float32).reshape(-1)
        if len(self.position) % 3:
            raise ValueError(f"Position length must be a multiple of 3, got {len(self.position)}")

        if self.normal is not None:
            self.normal = np.asarray(self.normal, dtype=np.float32).reshape(-1)
            if len(self.normal) != len(self.position):
                raise ValueError(
                    f"Normal length {len(self.normal)} must match position length {len(self.position)}"
                )

    @classmethod
    def empty(cls) -> GeometryData:
        return cls(position=np.empty(0, dtype=np.float32))

    def __len__(self) -> int:
        """Return number of vertices."""
        return len(self.position) // 3

    @property
    def num_vertices(self) -> int:
        return len(self)

    @property
    def num_triangles(self) -> int:
        return len(self) // 3

    @property
    def has_normals(self) -> bool:
        return self.normal is not None

    @property
    def vertices(self) -> NDArray[np.float32]:
        """Positions as an (N, 3) view."""
        return self.position.reshape(-1, 3)

    @property
    def normals(self) -> NDArray[np.float32] | None:
        """Normals as an (N, 3) view, if present."""
        return None if self.normal is None else self.normal.reshape(-1, 3)

    @property
    def bounds(self) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
        """Return (min_xyz, max_xyz) bounding box."""
        if len(self) == 0:
            raise ValueError("Empty geometry has no bounds")
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    # -------------------------------------------------------------------------
    # Transformations
    # -------------------------------------------------------------------------

    def transformed(self, matrix: TransformMatrix) -> GeometryData:
        """Return new GeometryData with the matrix baked into the vertices."""
        position = matrix.apply_to_points(self.vertices)
        normal = None
        if self.normal is not None:
            normal = matrix.apply_to_normals(self.normals)
        return GeometryData(position=position, normal=normal)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def to_payload(self) -> dict[str, list[float]]:
        """Return the renderer payload; ``normal`` is omitted when absent."""
        payload = {"position": self.position.tolist()}
        if self.normal is not None:
            payload["normal"] = self.normal.tolist()
        return payload

    def to_trimesh(self) -> trimesh.Trimesh:
        """Return an unmerged trimesh with one face per vertex triple."""
        if len(self) % 3:
            raise ValueError(f"{len(self)} vertices do not form whole triangles")
        faces = np.arange(len(self), dtype=np.int64).reshape(-1, 3)
        return trimesh.Trimesh(
            vertices=self.vertices.astype(np.float64),
            faces=faces,
            vertex_normals=None if self.normal is None else self.normals.astype(np.float64),
            process=False,
        )

    def save(self, path: str | Path) -> None:
        """Save as .npz (raw arrays) or any mesh format trimesh can export."""
        path = Path(path)
        if path.suffix.lower() == ".npz":
            data = {"position": self.position}
            if self.normal is not None:
                data["normal"] = self.normal
            np.savez_compressed(path, **data)
        else:
            self.to_trimesh().export(str(path))

    @classmethod
    def load_npz(cls, path: str | Path) -> GeometryData:
        with np.load(path) as data:
            return cls(
                position=data["position"],
                normal=data["normal"] if "normal" in data else None,
            )

    def stats(self) -> dict:
        """Return statistics about the geometry."""
        stats = {
            "num_vertices": self.num_vertices,
            "num_triangles": self.num_triangles,
            "has_normals": self.has_normals,
        }
        if len(self):
            min_pt, max_pt = self.bounds
            stats["bounds_min"] = min_pt.tolist()
            stats["bounds_max"] = max_pt.tolist()
        return stats

    def __repr__(self) -> str:
        return (
            f"GeometryData({self.num_vertices} vertices, "
            f"{self.num_triangles} triangles, "
            f"normals={'yes' if self.has_normals else 'no'})"
        )
