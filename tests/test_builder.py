"""
Unit tests for quad emission.
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
from atlas_mesher.builder import (
    QUAD_INDEX_COUNT,
    QuadMeshBuilder,
    empty_mesh,
    quad_corners,
    quad_uvs,
)
from atlas_mesher.samples import atlas_from_masks


def build(rgba, scale=1.0):
    face_set = FaceSet(AtlasTexture(rgba)).encode()
    builder = QuadMeshBuilder(scale=scale)
    return builder, builder.build(face_set)


def quad_positions(mesh):
    """One sorted tuple of rounded corner positions per quad."""
    rounded = np.round(mesh.vertices, 6) + 0.0
    return [
        tuple(sorted({tuple(rounded[i]) for i in quad}))
        for quad in mesh.indices.reshape(-1, QUAD_INDEX_COUNT)
    ]


def holed_front(t=4, x=1, y=1):
    """Opaque atlas with one interior Front texel cleared."""
    front = np.ones((t, t), dtype=bool)
    front[x, y] = False
    return atlas_from_masks(t, {FaceDirection.FRONT: front})


def face_vertices(mesh, direction):
    """Vertices of quads emitted for one face (builder normals)."""
    return mesh.vertices[np.all(np.isclose(mesh.normals, normal_of(direction)), axis=1)]


class TestQuadGeometry(unittest.TestCase):
    """Tests for single-quad corners and UVs."""

    def test_front_corners(self):
        corners = quad_corners(FaceDirection.FRONT, 0, 0, 0.0, 1)
        expected = [
            [-0.5, -0.5, -0.5],
            [0.5, -0.5, -0.5],
            [-0.5, 0.5, -0.5],
            [0.5, 0.5, -0.5],
        ]
        assert np.allclose(corners, expected)

    def test_depth_moves_along_normal(self):
        corners = quad_corners(FaceDirection.FRONT, 1, 1, 0.25, 4)
        assert np.allclose(corners[:, 2], -0.25)
        assert np.allclose(corners[0], [-0.25, -0.25, -0.25])

        corners = quad_corners(FaceDirection.TOP, 0, 0, 0.5, 2)
        assert np.allclose(corners[:, 1], 0.0)

    def test_uv_corners(self):
        uvs = quad_uvs(FaceDirection.FRONT, 0, 0, 2)
        s = 1 / 6
        expected = [
            [1 / 3, 1 / 3],
            [1 / 3 + s, 1 / 3],
            [1 / 3, 1 / 3 + s],
            [1 / 3 + s, 1 / 3 + s],
        ]
        assert np.allclose(uvs, expected)

    def test_uvs_stay_in_tile(self):
        uvs = quad_uvs(FaceDirection.RIGHT, 3, 3, 4)
        assert np.all(uvs[:, 0] >= 2 / 3 - 1e-9)
        assert np.all(uvs[:, 0] <= 1.0 + 1e-9)
        assert np.all(uvs[:, 1] <= 1 / 3 + 1e-9)


class TestQuadMeshBuilder(unittest.TestCase):
    """Tests for whole-atlas quad emission."""

    def test_opaque_cube_counts(self):
        """Every texel of every face emits exactly one quad."""
        builder, mesh = build(atlas_from_masks(3))

        assert builder.total_quads == 54
        assert all(count == 9 for count in builder.quad_counts.values())
        assert len(mesh.vertices) == 54 * 4
        assert len(mesh.indices) == 54 * 6
        assert mesh.quad_count == 54
        assert mesh.triangle_count == 108

    def test_opaque_cube_on_surface(self):
        _, mesh = build(atlas_from_masks(2))
        assert np.all(np.abs(mesh.vertices) <= 0.5 + 1e-9)
        # Every vertex lies on at least one cube face plane
        assert np.all(np.isclose(np.abs(mesh.vertices), 0.5).any(axis=1))

    def test_no_duplicate_quads_on_cube(self):
        _, mesh = build(atlas_from_masks(2))
        positions = quad_positions(mesh)
        assert len(set(positions)) == len(positions)

    def test_empty_face_pair(self):
        """A transparent tile silences itself and its opposite face."""
        t = 3
        builder, mesh = build(atlas_from_masks(t, {FaceDirection.FRONT: np.zeros((t, t), dtype=bool)}))

        assert builder.quad_counts[FaceDirection.FRONT] == 0
        assert builder.quad_counts[FaceDirection.BACK] == 0
        assert builder.quad_counts[FaceDirection.TOP] > 0

    def test_transparent_atlas(self):
        t = 2
        empty = np.zeros((t, t), dtype=bool)
        builder, mesh = build(atlas_from_masks(t, {d: empty for d in FaceDirection}))

        assert builder.total_quads == 0
        assert len(mesh.vertices) == 0
        assert len(mesh.indices) == 0

    def test_scale(self):
        _, mesh = build(atlas_from_masks(2), scale=2.0)
        assert np.isclose(mesh.vertices.max(), 1.0)
        assert np.isclose(mesh.vertices.min(), -1.0)

    def test_normals_are_face_axes(self):
        _, mesh = build(atlas_from_masks(1))
        for quad, direction in enumerate(FaceDirection):
            assert np.allclose(mesh.normals[quad * 4:quad * 4 + 4], normal_of(direction))

    def test_winding_faces_outward(self):
        """Each quad's triangles wind against the inward face axis."""
        _, mesh = build(atlas_from_masks(2))
        triangles = mesh.indices.reshape(-1, 3)

        for tri in triangles:
            v0, v1, v2 = mesh.vertices[tri]
            facing = np.cross(v1 - v0, v2 - v0)
            facing /= np.linalg.norm(facing)
            assert np.allclose(facing, -mesh.normals[tri[0]])

    def test_notch_emits_inset_front(self):
        t = 4
        top = np.ones((t, t), dtype=bool)
        top[:, :1] = False
        _, mesh = build(atlas_from_masks(t, {FaceDirection.TOP: top}))

        front = np.all(np.isclose(mesh.normals, normal_of(FaceDirection.FRONT)), axis=1)
        assert front.sum() == t * t * 4
        assert np.allclose(mesh.vertices[front][:, 2], -0.25)

    def test_single_row_needs_opposite_and_neighbours(self):
        """A lone painted row emits nothing: solidity and depth both come from other faces."""
        t = 4
        empty = np.zeros((t, t), dtype=bool)
        row = empty.copy()
        row[:, 0] = True

        masks = {d: empty for d in FaceDirection}
        masks[FaceDirection.FRONT] = row
        builder, _ = build(atlas_from_masks(t, masks))
        assert builder.total_quads == 0

        # Painting the mirrored Back row makes the texels solid, but the
        # transparent neighbours record no runs to take depths from
        masks[FaceDirection.BACK] = row
        face_set = FaceSet(AtlasTexture(atlas_from_masks(t, masks))).encode()
        assert face_set[FaceDirection.FRONT].solid[:, 0].all()
        assert face_set.resolve_texel(FaceDirection.FRONT, 0, 0) == []
        assert QuadMeshBuilder().build(face_set).quad_count == 0

    def test_build_requires_encoding(self):
        face_set = FaceSet(AtlasTexture(atlas_from_masks(2)))
        with self.assertRaises(RuntimeError):
            QuadMeshBuilder().build(face_set)

    def test_empty_mesh(self):
        mesh = empty_mesh()
        assert mesh.vertex_count == 0
        assert mesh.triangle_count == 0
        assert mesh.vertices.shape == (0, 3)


class TestThroughHole(unittest.TestCase):
    """Clearing one interior texel on an opaque cube."""

    def test_counts_per_face(self):
        builder, mesh = build(holed_front())

        assert builder.total_quads == 110
        assert mesh.quad_count == 110
        for direction in (FaceDirection.FRONT, FaceDirection.BACK):
            assert builder.quad_counts[direction] == 15, direction
        for direction in (FaceDirection.TOP, FaceDirection.BOTTOM, FaceDirection.LEFT, FaceDirection.RIGHT):
            assert builder.quad_counts[direction] == 20, direction

    def test_quad_sets_differ_by_hole_only(self):
        _, opaque = build(atlas_from_masks(4))
        _, holed = build(holed_front())

        opaque_quads = set(quad_positions(opaque))
        holed_quads = quad_positions(holed)
        assert len(set(holed_quads)) == len(holed_quads)

        removed = opaque_quads - set(holed_quads)
        added = set(holed_quads) - opaque_quads

        # The cleared Front texel and its coupled Back texel
        assert len(removed) == 2
        assert {round(c[2], 6) for quad in removed for c in quad} == {-0.5, 0.5}
        assert all(
            {(round(c[0], 6), round(c[1], 6)) for c in quad} == {(-0.25, -0.25), (0.0, -0.25), (-0.25, 0.0), (0.0, 0.0)}
            for quad in removed
        )

        # Four inset wall quads on each side face
        assert len(added) == 16

    def test_wall_depths(self):
        face_set = FaceSet(AtlasTexture(holed_front())).encode()

        for i in range(4):
            assert face_set.resolve_texel(FaceDirection.TOP, 1, i) == [0.75, 0.0]
            assert face_set.resolve_texel(FaceDirection.BOTTOM, 1, i) == [0.5, 0.0]
            assert face_set.resolve_texel(FaceDirection.LEFT, i, 1) == [0.5, 0.0]
            assert face_set.resolve_texel(FaceDirection.RIGHT, i, 1) == [0.75, 0.0]

        assert face_set.resolve_texel(FaceDirection.TOP, 0, 0) == [0.0]
        assert face_set.resolve_texel(FaceDirection.FRONT, 2, 2) == [0.0]

    def test_wall_planes(self):
        _, mesh = build(holed_front())

        # (face, axis, plane coordinate) of each face's inset walls
        walls = [
            (FaceDirection.TOP, 1, -0.25),
            (FaceDirection.BOTTOM, 1, 0.0),
            (FaceDirection.LEFT, 0, 0.0),
            (FaceDirection.RIGHT, 0, -0.25),
        ]
        for direction, axis, plane in walls:
            vertices = face_vertices(mesh, direction)
            inset = vertices[np.isclose(vertices[:, axis], plane)]
            assert len(vertices) == 20 * 4, direction
            assert len(inset) == 4 * 4, direction

            # Walls span the hole's column or row and run the full depth in z
            across = 0 if axis == 1 else 1
            assert inset[:, across].min() >= -0.25 - 1e-9, direction
            assert inset[:, across].max() <= 1e-9, direction
            assert np.isclose(inset[:, 2].min(), -0.5) and np.isclose(inset[:, 2].max(), 0.5)


if __name__ == "__main__":
    unittest.main(verbosity=2)
