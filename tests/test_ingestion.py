"""
Unit tests for atlas loading and validation.
"""

import sys
import tempfile
from pathlib import Path
import numpy as np
import unittest
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from atlas_mesher.faces import FaceDirection
from atlas_mesher.ingestion import (
    AtlasError,
    AtlasErrorKind,
    AtlasLoader,
    AtlasTexture,
    validate_atlas,
)
from atlas_mesher.samples import atlas_from_masks


class TestValidation(unittest.TestCase):
    """Tests for validate_atlas()."""

    def test_valid(self):
        assert validate_atlas(np.zeros((9, 9, 4), dtype=np.uint8)) is None

    def test_missing(self):
        assert validate_atlas(None).kind == AtlasErrorKind.MISSING

    def test_not_rgba(self):
        error = validate_atlas(np.zeros((9, 9, 3), dtype=np.uint8))
        assert error.kind == AtlasErrorKind.NOT_RGBA

        error = validate_atlas(np.zeros((9, 9), dtype=np.uint8))
        assert error.kind == AtlasErrorKind.NOT_RGBA

    def test_not_square(self):
        error = validate_atlas(np.zeros((9, 6, 4), dtype=np.uint8))
        assert error.kind == AtlasErrorKind.NOT_SQUARE

    def test_empty(self):
        error = validate_atlas(np.zeros((0, 0, 4), dtype=np.uint8))
        assert error.kind == AtlasErrorKind.TOO_SMALL

    def test_not_divisible(self):
        error = validate_atlas(np.zeros((8, 8, 4), dtype=np.uint8))
        assert error.kind == AtlasErrorKind.NOT_DIVISIBLE

    def test_returns_instead_of_raising(self):
        """The error is a ValueError value, not a raised exception."""
        error = validate_atlas(np.zeros((4, 5, 4), dtype=np.uint8))
        assert isinstance(error, ValueError)
        assert isinstance(error, AtlasError)


class TestAtlasTexture(unittest.TestCase):
    """Tests for texel addressing and solidity."""

    def test_invalid_raises(self):
        with self.assertRaises(AtlasError) as ctx:
            AtlasTexture(np.zeros((10, 10, 4), dtype=np.uint8))
        assert ctx.exception.kind == AtlasErrorKind.NOT_DIVISIBLE

    def test_tile_resolution(self):
        atlas = AtlasTexture(np.zeros((12, 12, 4), dtype=np.uint8))
        assert atlas.tile_resolution == 4
        assert atlas.size == (12, 12)

    def test_y_points_up(self):
        """Texel (0, 0) of a tile is its bottom-left image pixel."""
        rgba = np.zeros((6, 6, 4), dtype=np.uint8)
        # Front is tile (1, 1): columns 2-3, image rows 2-3; bottom-left is row 3
        rgba[3, 2, 3] = 255

        atlas = AtlasTexture(rgba)
        assert atlas.texel_origin(FaceDirection.FRONT) == (2, 2)

        painted = atlas.painted_mask(FaceDirection.FRONT)
        assert painted[0, 0]
        assert painted.sum() == 1

    def test_bottom_row_tiles(self):
        rgba = np.zeros((6, 6, 4), dtype=np.uint8)
        # Bottom is tile (0, 0); its top-right texel is image row 4, column 1
        rgba[4, 1, 3] = 255

        painted = AtlasTexture(rgba).painted_mask(FaceDirection.BOTTOM)
        assert painted[1, 1]
        assert painted.sum() == 1

    def test_alpha_threshold(self):
        rgba = np.zeros((3, 3, 4), dtype=np.uint8)
        rgba[..., 3] = 100

        assert AtlasTexture(rgba, alpha_threshold=99).painted_mask(FaceDirection.TOP).all()
        assert not AtlasTexture(rgba, alpha_threshold=100).painted_mask(FaceDirection.TOP).any()

    def test_top_couples_to_bottom_along_y(self):
        t = 4
        bottom = np.zeros((t, t), dtype=bool)
        bottom[0, 0] = True
        atlas = AtlasTexture(atlas_from_masks(t, {FaceDirection.BOTTOM: bottom}))

        solid = atlas.solid_mask(FaceDirection.TOP)
        assert solid[0, t - 1]
        assert solid.sum() == 1

        assert atlas.solid_mask(FaceDirection.BOTTOM).sum() == 1

    def test_sides_couple_along_x(self):
        t = 4
        back = np.zeros((t, t), dtype=bool)
        back[0, 1] = True
        atlas = AtlasTexture(atlas_from_masks(t, {FaceDirection.BACK: back}))

        solid = atlas.solid_mask(FaceDirection.FRONT)
        assert solid[t - 1, 1]
        assert solid.sum() == 1

    def test_transparent_opposite_empties_face(self):
        t = 3
        atlas = AtlasTexture(atlas_from_masks(t, {FaceDirection.LEFT: np.zeros((t, t), dtype=bool)}))

        assert not atlas.solid_mask(FaceDirection.RIGHT).any()
        assert atlas.painted_mask(FaceDirection.RIGHT).all()
        assert atlas.solid_mask(FaceDirection.FRONT).all()

    def test_is_solid(self):
        atlas = AtlasTexture(atlas_from_masks(2))
        assert atlas.is_solid(FaceDirection.FRONT, 1, 1)

        with self.assertRaises(IndexError):
            atlas.is_solid(FaceDirection.FRONT, 2, 0)
        with self.assertRaises(IndexError):
            atlas.is_solid(FaceDirection.FRONT, 0, -1)

    def test_is_solid_matches_mask(self):
        rng = np.random.default_rng(11)
        masks = {d: rng.random((4, 4)) < 0.7 for d in FaceDirection}
        atlas = AtlasTexture(atlas_from_masks(4, masks))

        for direction in FaceDirection:
            solid = atlas.solid_mask(direction)
            for x in range(4):
                for y in range(4):
                    assert atlas.is_solid(direction, x, y) == solid[x, y], (direction, x, y)


class TestSampleAtlases(unittest.TestCase):

    def test_masks_read_back(self):
        rng = np.random.default_rng(5)
        masks = {d: rng.random((4, 4)) < 0.5 for d in FaceDirection}
        atlas = AtlasTexture(atlas_from_masks(4, masks))

        for direction, mask in masks.items():
            assert np.array_equal(atlas.painted_mask(direction), mask)

    def test_unused_tiles_transparent(self):
        rgba = atlas_from_masks(2)
        assert not rgba[:2, :, 3].any()

    def test_bad_mask_shape(self):
        with self.assertRaises(ValueError):
            atlas_from_masks(2, {FaceDirection.TOP: np.ones((3, 3), dtype=bool)})


class TestAtlasLoader(unittest.TestCase):
    """Tests for loading atlases from disk."""

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            AtlasLoader().load("does_not_exist.png")

    def test_rgb_converted_to_rgba(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "crate.png"
            Image.new("RGB", (9, 9), (10, 20, 30)).save(path)

            atlas = AtlasLoader().load(path)

            assert atlas.name == "crate"
            assert atlas.rgba.shape == (9, 9, 4)
            assert atlas.tile_resolution == 3
            assert atlas.solid_mask(FaceDirection.FRONT).all()

    def test_invalid_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "wide.png"
            Image.new("RGBA", (12, 9)).save(path)

            with self.assertRaises(AtlasError) as ctx:
                AtlasLoader().load(path)
            assert ctx.exception.kind == AtlasErrorKind.NOT_SQUARE

    def test_load_from_array(self):
        atlas = AtlasLoader(alpha_threshold=10).load_from_array(atlas_from_masks(2), name="demo")
        assert atlas.name == "demo"
        assert atlas.alpha_threshold == 10


if __name__ == "__main__":
    unittest.main(verbosity=2)
