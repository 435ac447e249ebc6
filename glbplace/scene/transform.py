"""4x4 placement matrices for the host renderer.

Matrices are stored column-major as 16 floats, the layout the host's
placement and render calls expect. The host is Z-up; glTF content is Y-up.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, field_validator
from scipy.spatial.transform import Rotation

# Rotation taking Y-up content into the Z-up host frame
AXIS_SWAP_EULER_XYZ = (90.0, 0.0, 0.0)


class TransformMatrix(BaseModel):
    """Immutable column-major 4x4 homogeneous transform.

    Attributes:
        values: 16 numbers, column-major (translation in values[12:15])
    """

    values: tuple[float, ...] = Field(description="Column-major 4x4 matrix")

    model_config = {"frozen": True}

    @field_validator("values")
    @classmethod
    def _check_length(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(value) != 16:
            raise ValueError(f"A 4x4 matrix needs 16 values, got {len(value)}")
        return value

    @classmethod
    def from_components(
        cls,
        translation: Sequence[float] = (0.0, 0.0, 0.0),
        scale: float | Sequence[float] = 1.0,
        rotation: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> TransformMatrix:
        """Build a matrix from translation, XYZ Euler rotation and scale.

        The transformation order is: Scale -> Rotate -> Translate
        This means the matrix is built as: T @ R @ S

        Args:
            translation: XYZ translation
            scale: Uniform factor or per-axis (sx, sy, sz)
            rotation: XYZ Euler angles in degrees

        Returns:
            TransformMatrix
        """
        if isinstance(scale, (int, float)):
            factors = np.array([scale, scale, scale], dtype=np.float64)
        else:
            factors = np.asarray(scale, dtype=np.float64)
            if factors.shape != (3,):
                raise ValueError(f"Scale must be a number or 3 values, got {scale!r}")

        # Scale matrix
        s = np.eye(4, dtype=np.float64)
        s[0, 0], s[1, 1], s[2, 2] = factors

        # Rotation matrix (XYZ Euler angles)
        r = np.eye(4, dtype=np.float64)
        if any(rotation):
            rot = Rotation.from_euler("xyz", rotation, degrees=True).as_matrix()
            # Snap the cos(90) noise of quarter turns to exact zero
            rot[np.abs(rot) < 1e-12] = 0.0
            r[:3, :3] = rot

        # Translation matrix
        t = np.eye(4, dtype=np.float64)
        t[:3, 3] = translation

        return cls.from_matrix(t @ r @ s)

    @classmethod
    def from_matrix(cls, matrix: NDArray[np.float64]) -> TransformMatrix:
        """Create from a 4x4 row/column indexed numpy matrix."""
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 matrix, got shape {matrix.shape}")
        return cls(values=tuple(float(v) for v in matrix.flatten(order="F")))

    @classmethod
    def identity(cls) -> TransformMatrix:
        """Return identity transform (no transformation)."""
        return cls.from_matrix(np.eye(4))

    def to_matrix(self) -> NDArray[np.float64]:
        """Return as a 4x4 numpy matrix (m[row, col])."""
        return np.array(self.values, dtype=np.float64).reshape((4, 4), order="F")

    def to_list(self) -> list[float]:
        """Return the 16 column-major values."""
        return list(self.values)

    @property
    def translation(self) -> tuple[float, float, float]:
        return (self.values[12], self.values[13], self.values[14])

    def apply_to_points(self, points: NDArray) -> NDArray[np.float64]:
        """Apply transformation to an Nx3 array of points.

        Args:
            points: Nx3 array of XYZ coordinates

        Returns:
            Transformed Nx3 array of points
        """
        matrix = self.to_matrix()
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)

        # Convert to homogeneous coordinates (Nx4)
        ones = np.ones((len(points), 1), dtype=np.float64)
        homogeneous = np.hstack([points, ones])

        transformed = (matrix @ homogeneous.T).T
        return transformed[:, :3]

    def apply_to_normals(self, normals: NDArray) -> NDArray[np.float64]:
        """Transform Nx3 normals by the inverse transpose and renormalize."""
        linear = self.to_matrix()[:3, :3]
        normal_matrix = np.linalg.inv(linear).T
        normals = np.asarray(normals, dtype=np.float64).reshape(-1, 3)
        transformed = normals @ normal_matrix.T
        lengths = np.linalg.norm(transformed, axis=1, keepdims=True)
        lengths[lengths == 0] = 1.0
        return transformed / lengths

    def compose(self, other: TransformMatrix) -> TransformMatrix:
        """Compose this transform with another.

        The result applies self first, then other.
        """
        return TransformMatrix.from_matrix(other.to_matrix() @ self.to_matrix())

    def __repr__(self) -> str:
        return f"TransformMatrix(translation={self.translation}, values={list(self.values)})"


def create_transform_matrix(
    x: float,
    y: float,
    z: float,
    scale: float | Sequence[float] = 1.0,
    axis_swap: bool = False,
) -> TransformMatrix:
    """Build the placement matrix handed to the host.

    Without ``axis_swap`` the matrix is translation plus scale, for content
    the host interprets itself (an uploaded GLB keeps its own scene graph).
    With ``axis_swap`` a +90 degree rotation about X is inserted, turning
    Y-up triangle soup into the host's Z-up frame.

    Args:
        x, y, z: Placement point in host coordinates (Z-up)
        scale: Uniform factor or per-axis (sx, sy, sz)
        axis_swap: Include the Y-up to Z-up rotation

    Returns:
        TransformMatrix
    """
    rotation = AXIS_SWAP_EULER_XYZ if axis_swap else (0.0, 0.0, 0.0)
    return TransformMatrix.from_components(
        translation=(x, y, z),
        scale=scale,
        rotation=rotation,
    )
