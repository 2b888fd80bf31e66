"""
Mesh Cleanup: Vertex Welding and Floating Quad Removal

Two passes over MeshData, both preserving the quad structure (consecutive
triangle pairs):

1. Welding: vertices equal after rounding position, normal and UV collapse
   into one. Triangle count and winding are untouched.
2. Floating quad removal: a vertex is floating when no other quad touches
   its position. Quads holding a floating vertex are dropped, which can
   strand neighbours, so the optimizer repeats both passes until nothing
   more is removed.

Counting quads per position (rather than vertex entries) gives the same
answer on unwelded buffers and keeps the result unchanged by welding.
"""

import logging
from typing import Dict, List
import numpy as np

from .builder import QUAD_INDEX_COUNT, MeshData, empty_mesh

logger = logging.getLogger(__name__)


def _rounded(values: np.ndarray, decimals: int) -> np.ndarray:
    # + 0.0 folds -0.0 into 0.0
    return np.round(values, decimals) + 0.0


def _quads_of(mesh: MeshData) -> np.ndarray:
    if len(mesh.indices) % QUAD_INDEX_COUNT != 0:
        raise ValueError(
            f"Index count {len(mesh.indices)} is not a whole number of quads"
        )
    return mesh.indices.reshape(-1, QUAD_INDEX_COUNT)


def weld_vertices(mesh: MeshData, decimals: int = 6) -> MeshData:
    """
    Merge vertices with equal rounded position, normal and UV.

    Vertices are renumbered in order of first use by the triangle list, so
    welding an already-welded mesh returns identical buffers.

    Args:
        mesh: Input mesh
        decimals: Rounding precision for the comparison key

    Returns:
        Welded MeshData
    """
    if len(mesh.indices) == 0:
        return empty_mesh()

    keys = _rounded(np.hstack([mesh.vertices, mesh.normals, mesh.uvs]), decimals)
    _, key_ids = np.unique(keys, axis=0, return_inverse=True)
    key_ids = key_ids.reshape(-1)

    new_index_of: Dict[int, int] = {}
    source_vertices: List[int] = []
    new_indices = np.empty_like(mesh.indices)

    for i, old_index in enumerate(mesh.indices):
        key = key_ids[old_index]
        new_index = new_index_of.get(key)
        if new_index is None:
            new_index = len(source_vertices)
            new_index_of[key] = new_index
            source_vertices.append(old_index)
        new_indices[i] = new_index

    return MeshData(
        vertices=mesh.vertices[source_vertices],
        normals=mesh.normals[source_vertices],
        uvs=mesh.uvs[source_vertices],
        indices=new_indices
    )


def floating_vertices(mesh: MeshData, decimals: int = 6) -> np.ndarray:
    """
    Find vertices whose position is touched by a single quad.

    Returns:
        Boolean array of shape (N,), True for floating vertices
    """
    quads = _quads_of(mesh)
    if len(quads) == 0:
        return np.zeros(len(mesh.vertices), dtype=bool)

    _, position_ids = np.unique(
        _rounded(mesh.vertices, decimals), axis=0, return_inverse=True
    )
    position_ids = position_ids.reshape(-1)

    # Each (quad, position) pair counts once
    quad_ids = np.repeat(np.arange(len(quads)), QUAD_INDEX_COUNT)
    pairs = np.unique(np.column_stack([quad_ids, position_ids[quads.ravel()]]), axis=0)
    quads_per_position = np.bincount(pairs[:, 1], minlength=position_ids.max() + 1)

    return quads_per_position[position_ids] == 1


def compact_vertices(mesh: MeshData, indices: np.ndarray) -> MeshData:
    """
    Drop vertices no longer referenced by a triangle list.

    Surviving vertices keep their relative order.

    Args:
        mesh: Mesh whose vertex buffers are being trimmed
        indices: New triangle list referencing the old vertex buffers

    Returns:
        MeshData holding only referenced vertices
    """
    if len(indices) == 0:
        return empty_mesh()

    used = np.unique(indices)
    remap = np.full(len(mesh.vertices), -1, dtype=np.int64)
    remap[used] = np.arange(len(used))

    return MeshData(
        vertices=mesh.vertices[used],
        normals=mesh.normals[used],
        uvs=mesh.uvs[used],
        indices=remap[indices]
    )


def remove_floating_quads(mesh: MeshData, decimals: int = 6) -> MeshData:
    """
    Drop every quad that holds a floating vertex.

    Args:
        mesh: Input mesh with quads stored as triangle pairs
        decimals: Rounding precision for position comparison

    Returns:
        MeshData without the floating quads and their unused vertices
    """
    quads = _quads_of(mesh)
    if len(quads) == 0:
        return empty_mesh()

    floating = floating_vertices(mesh, decimals)
    keep = ~floating[quads].any(axis=1)

    return compact_vertices(mesh, quads[keep].ravel())


def recalculate_normals(mesh: MeshData) -> MeshData:
    """
    Recompute per-vertex normals from triangle winding.

    Face normals are area weighted (unnormalized cross products) and point
    out of the shell for the builder's winding.

    Returns:
        MeshData with replaced normals
    """
    if len(mesh.indices) == 0:
        return mesh

    triangles = mesh.indices.reshape(-1, 3)
    v0 = mesh.vertices[triangles[:, 0]]
    v1 = mesh.vertices[triangles[:, 1]]
    v2 = mesh.vertices[triangles[:, 2]]
    face_normals = np.cross(v1 - v0, v2 - v0)

    normals = np.zeros_like(mesh.vertices)
    for corner in range(3):
        np.add.at(normals, triangles[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0

    return mesh._replace(normals=normals / lengths)


class MeshOptimizer:
    """
    Runs welding and floating quad removal to a fixed point.

    Attributes:
        decimals: Rounding precision shared by both passes
        stats: Counters from the last optimize() call
    """

    def __init__(self, decimals: int = 6):
        """
        Initialize the optimizer.

        Args:
            decimals: Rounding precision for vertex comparison
        """
        self.decimals = decimals
        self.stats: Dict[str, int] = {}

    def weld(self, mesh: MeshData) -> MeshData:
        """Merge duplicate vertices."""
        return weld_vertices(mesh, self.decimals)

    def remove_floating_quads(self, mesh: MeshData) -> MeshData:
        """Run a single floating quad removal pass."""
        return remove_floating_quads(mesh, self.decimals)

    def optimize(self, mesh: MeshData) -> MeshData:
        """
        Weld and prune until a pass removes no vertices.

        Every productive pass removes at least one vertex, so the loop runs
        at most vertex_count + 1 times.

        Args:
            mesh: Mesh straight from the builder

        Returns:
            Optimized MeshData
        """
        start_vertices = len(mesh.vertices)
        start_quads = mesh.quad_count
        passes = 0

        current = mesh
        while True:
            passes += 1
            welded = self.weld(current)
            pruned = self.remove_floating_quads(welded)

            logger.debug(
                "Optimize pass %d: %d -> %d vertices, %d -> %d quads",
                passes,
                len(welded.vertices), len(pruned.vertices),
                welded.quad_count, pruned.quad_count,
            )

            current = pruned
            if len(pruned.vertices) == len(welded.vertices):
                break

        self.stats = {
            "passes": passes,
            "input_vertices": start_vertices,
            "output_vertices": len(current.vertices),
            "removed_vertices": start_vertices - len(current.vertices),
            "input_quads": start_quads,
            "output_quads": current.quad_count,
            "removed_quads": start_quads - current.quad_count,
        }

        logger.info(
            "Optimized mesh in %d passes: %d -> %d vertices, %d quads removed",
            passes, start_vertices, len(current.vertices), self.stats["removed_quads"],
        )
        return current
