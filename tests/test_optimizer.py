"""
Unit tests for welding and floating quad removal.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from atlas_mesher.faces import FaceDirection, normal_of
from atlas_mesher.ingestion import AtlasTexture
from atlas_mesher.resolver import FaceSet
from atlas_mesher.builder import QUAD_TRIANGLES, MeshData, QuadMeshBuilder, quad_corners, quad_uvs
from atlas_mesher.optimizer import (
    MeshOptimizer,
    compact_vertices,
    floating_vertices,
    recalculate_normals,
    remove_floating_quads,
    weld_vertices,
)
from atlas_mesher.samples import atlas_from_masks


def cube_mesh(t):
    face_set = FaceSet(AtlasTexture(atlas_from_masks(t))).encode()
    return QuadMeshBuilder().build(face_set)


def single_quad(x=0, y=0, offset=(0.0, 0.0, 0.0), direction=FaceDirection.FRONT, t=4):
    corners = quad_corners(direction, x, y, 0.0, t) + np.array(offset)
    return MeshData(
        vertices=corners,
        normals=np.tile(normal_of(direction), (4, 1)),
        uvs=quad_uvs(direction, x, y, t),
        indices=QUAD_TRIANGLES.copy()
    )


def merge(*meshes):
    vertices, normals, uvs, indices = [], [], [], []
    offset = 0
    for mesh in meshes:
        vertices.append(mesh.vertices)
        normals.append(mesh.normals)
        uvs.append(mesh.uvs)
        indices.append(mesh.indices + offset)
        offset += len(mesh.vertices)
    return MeshData(np.vstack(vertices), np.vstack(normals), np.vstack(uvs), np.concatenate(indices))


class TestWeld(unittest.TestCase):
    """Tests for vertex welding."""

    def test_cube_weld_counts(self):
        """Each face welds to an (N+1)^2 grid; faces stay separate by normal."""
        for t in (1, 2, 3):
            welded = weld_vertices(cube_mesh(t))
            assert len(welded.vertices) == 6 * (t + 1) ** 2
            assert welded.triangle_count == 12 * t * t

    def test_idempotent(self):
        once = weld_vertices(cube_mesh(2))
        twice = weld_vertices(once)

        assert np.array_equal(once.indices, twice.indices)
        assert np.array_equal(once.vertices, twice.vertices)
        assert np.array_equal(once.uvs, twice.uvs)

    def test_positions_preserved(self):
        mesh = cube_mesh(2)
        welded = weld_vertices(mesh)

        before = mesh.vertices[mesh.indices]
        after = welded.vertices[welded.indices]
        assert np.allclose(before, after)

    def test_uv_seams_kept(self):
        """Equal positions with different UVs are not merged."""
        a = single_quad(0, 0)
        b = single_quad(0, 0)
        b = b._replace(uvs=b.uvs + 0.1)

        welded = weld_vertices(merge(a, b))
        assert len(welded.vertices) == 8

    def test_empty(self):
        welded = weld_vertices(merge(single_quad())._replace(indices=np.zeros(0, dtype=np.int64)))
        assert len(welded.vertices) == 0


class TestFloatingQuads(unittest.TestCase):
    """Tests for floating quad removal."""

    def test_single_quad_is_floating(self):
        mesh = single_quad()
        assert floating_vertices(mesh).all()

        pruned = remove_floating_quads(mesh)
        assert len(pruned.vertices) == 0
        assert len(pruned.indices) == 0

    def test_quad_pair_is_floating(self):
        """Two quads sharing an edge each still own two lone corners."""
        mesh = weld_vertices(merge(single_quad(0, 0), single_quad(1, 0)))
        assert floating_vertices(mesh).sum() == 4

        pruned = remove_floating_quads(mesh)
        assert pruned.quad_count == 0

    def test_closed_cube_survives(self):
        mesh = weld_vertices(cube_mesh(2))
        assert not floating_vertices(mesh).any()

        pruned = remove_floating_quads(mesh)
        assert pruned.quad_count == mesh.quad_count

    def test_unwelded_counts_match_welded(self):
        mesh = merge(cube_mesh(1), single_quad(offset=(5.0, 0.0, 0.0)))
        assert floating_vertices(mesh).sum() == 4
        assert floating_vertices(weld_vertices(mesh)).sum() == 4

    def test_malformed_indices(self):
        mesh = single_quad()._replace(indices=np.array([0, 1, 2], dtype=np.int64))
        with self.assertRaises(ValueError):
            remove_floating_quads(mesh)

    def test_compact_keeps_order(self):
        mesh = merge(single_quad(0, 0), single_quad(2, 2))
        compacted = compact_vertices(mesh, mesh.indices[6:])

        assert len(compacted.vertices) == 4
        assert np.array_equal(compacted.indices, QUAD_TRIANGLES)
        assert np.allclose(compacted.vertices, mesh.vertices[4:])


class TestMeshOptimizer(unittest.TestCase):
    """Tests for the weld/prune fixed point."""

    def test_opaque_cube(self):
        for t in (1, 2, 4):
            optimizer = MeshOptimizer()
            mesh = optimizer.optimize(cube_mesh(t))

            assert len(mesh.vertices) == 6 * (t + 1) ** 2
            assert mesh.triangle_count == 12 * t * t
            assert optimizer.stats["removed_quads"] == 0
            assert optimizer.stats["passes"] == 1

    def test_island_pruned(self):
        optimizer = MeshOptimizer()
        mesh = optimizer.optimize(merge(cube_mesh(2), single_quad(offset=(5.0, 0.0, 0.0))))

        assert mesh.quad_count == 24
        assert optimizer.stats["removed_quads"] == 1
        assert optimizer.stats["passes"] == 2
        assert np.all(np.abs(mesh.vertices) <= 0.5 + 1e-9)

    def test_strip_erodes(self):
        """An open strip loses its end quads every pass until nothing is left."""
        strip = merge(*[single_quad(x, 0) for x in range(4)])
        optimizer = MeshOptimizer()
        mesh = optimizer.optimize(strip)

        assert mesh.quad_count == 0
        assert optimizer.stats["removed_quads"] == 4

    def test_fixed_point(self):
        optimizer = MeshOptimizer()
        first = optimizer.optimize(merge(cube_mesh(2), single_quad(offset=(0.0, 3.0, 0.0))))
        second = optimizer.optimize(first)

        assert len(second.vertices) == len(first.vertices)
        assert np.array_equal(second.indices, first.indices)
        assert optimizer.stats["passes"] == 1

    def test_counts_never_increase(self):
        rng = np.random.default_rng(3)
        quads = [single_quad(int(x), int(y)) for x, y in rng.integers(0, 4, size=(10, 2))]
        mesh = merge(cube_mesh(2), *quads)

        optimizer = MeshOptimizer()
        current = mesh
        for _ in range(3):
            previous = len(current.vertices)
            current = optimizer.optimize(current)
            assert len(current.vertices) <= previous

    def test_stats(self):
        optimizer = MeshOptimizer()
        optimizer.optimize(cube_mesh(1))
        stats = optimizer.stats

        assert stats["input_vertices"] == 24
        assert stats["output_vertices"] == 24
        assert stats["removed_vertices"] == 0
        assert stats["input_quads"] == 6


class TestRecalculateNormals(unittest.TestCase):

    def test_cube_normals_point_out(self):
        mesh = MeshOptimizer().optimize(cube_mesh(2))
        recalculated = recalculate_normals(mesh)

        assert np.allclose(recalculated.normals, -mesh.normals)
        assert np.allclose(np.linalg.norm(recalculated.normals, axis=1), 1.0)

    def test_empty_mesh_untouched(self):
        mesh = single_quad()._replace(indices=np.zeros(0, dtype=np.int64))
        assert recalculate_normals(mesh) is mesh


if __name__ == "__main__":
    unittest.main(verbosity=2)
