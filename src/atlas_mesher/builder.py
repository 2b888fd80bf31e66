"""
Quad Mesh Builder

Walks every texel of every face and emits one independent quad per
resolved extrusion depth. No vertices are shared at this stage; welding is
left to the optimizer.

Quad layout (relative indices):

    2 ---- 3        triangles: (0, 2, 1), (1, 2, 3)
    |      |
    0 ---- 1
"""

import logging
from typing import Dict, List, NamedTuple
import numpy as np

from .faces import (
    UV_TILE_SIZE,
    FaceDirection,
    corner_offset_of,
    face_basis,
    normal_of,
    uv_base_of,
)

logger = logging.getLogger(__name__)

QUAD_TRIANGLES = np.array([0, 2, 1, 1, 2, 3], dtype=np.int64)
QUAD_INDEX_COUNT = len(QUAD_TRIANGLES)


class MeshData(NamedTuple):
    """Container for mesh geometry data."""
    vertices: np.ndarray     # (N, 3) float64 positions
    normals: np.ndarray      # (N, 3) float64 normals
    uvs: np.ndarray          # (N, 2) float64 texture coordinates
    indices: np.ndarray      # (M,) int64 triangle indices, quads as triangle pairs

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def quad_count(self) -> int:
        return len(self.indices) // QUAD_INDEX_COUNT


def empty_mesh() -> MeshData:
    """Create a mesh with no geometry."""
    return MeshData(
        vertices=np.zeros((0, 3), dtype=np.float64),
        normals=np.zeros((0, 3), dtype=np.float64),
        uvs=np.zeros((0, 2), dtype=np.float64),
        indices=np.zeros((0,), dtype=np.int64)
    )


def quad_corners(
    direction: FaceDirection,
    x: int,
    y: int,
    depth: float,
    tile_resolution: int
) -> np.ndarray:
    """
    Compute the four corners of a texel quad.

    Args:
        direction: Face the quad belongs to
        x, y: Texel indices within the tile
        depth: Normalized extrusion depth along the face normal
        tile_resolution: Texels per tile edge

    Returns:
        Array of shape (4, 3): bottom-left, bottom-right, top-left, top-right
    """
    right, up = face_basis(direction)
    base = corner_offset_of(direction) + depth * normal_of(direction)

    u0, u1 = x / tile_resolution, (x + 1) / tile_resolution
    v0, v1 = y / tile_resolution, (y + 1) / tile_resolution

    return np.array([
        base + u0 * right + v0 * up,
        base + u1 * right + v0 * up,
        base + u0 * right + v1 * up,
        base + u1 * right + v1 * up,
    ], dtype=np.float64)


def quad_uvs(direction: FaceDirection, x: int, y: int, tile_resolution: int) -> np.ndarray:
    """
    Compute the atlas UVs of a texel quad.

    Returns:
        Array of shape (4, 2) in the same corner order as quad_corners()
    """
    step = UV_TILE_SIZE / tile_resolution
    origin = uv_base_of(direction) + np.array([x, y], dtype=np.float64) * step

    return np.array([
        origin,
        origin + (step, 0.0),
        origin + (0.0, step),
        origin + (step, step),
    ], dtype=np.float64)


class QuadMeshBuilder:
    """
    Accumulates texel quads from an encoded FaceSet into one mesh.

    Attributes:
        scale: Vertex position scale factor (1.0 = unit cube)
        quad_counts: Quads emitted per face by the last build()
    """

    def __init__(self, scale: float = 1.0):
        """
        Initialize the builder.

        Args:
            scale: Vertex position scale factor
        """
        self.scale = scale
        self.quad_counts: Dict[FaceDirection, int] = {}

    def build(self, face_set) -> MeshData:
        """
        Emit quads for every solid texel of every face.

        Args:
            face_set: Encoded FaceSet

        Returns:
            MeshData with 4 unshared vertices per quad
        """
        if not face_set.is_encoded:
            raise RuntimeError("Faces not encoded. Call encode() first.")

        t = face_set.tile_resolution
        all_vertices: List[np.ndarray] = []
        all_normals: List[np.ndarray] = []
        all_uvs: List[np.ndarray] = []
        all_indices: List[np.ndarray] = []
        vertex_offset = 0
        self.quad_counts = {}

        for face in face_set:
            direction = face.direction
            normals = np.tile(normal_of(direction), (4, 1))
            emitted = 0

            for y in range(t):
                for x in range(t):
                    if not face.solid[x, y]:
                        continue

                    for depth in face_set.resolve_texel(direction, x, y):
                        all_vertices.append(quad_corners(direction, x, y, depth, t))
                        all_normals.append(normals)
                        all_uvs.append(quad_uvs(direction, x, y, t))
                        all_indices.append(QUAD_TRIANGLES + vertex_offset)
                        vertex_offset += 4
                        emitted += 1

            self.quad_counts[direction] = emitted
            logger.debug("Emitted %d quads for %s", emitted, direction.name)

        if not all_vertices:
            return empty_mesh()

        return MeshData(
            vertices=np.vstack(all_vertices) * self.scale,
            normals=np.vstack(all_normals),
            uvs=np.vstack(all_uvs),
            indices=np.concatenate(all_indices)
        )

    @property
    def total_quads(self) -> int:
        """Get the number of quads emitted by the last build()."""
        return sum(self.quad_counts.values())
