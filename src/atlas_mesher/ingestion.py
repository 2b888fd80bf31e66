"""
Atlas Texture Ingestion and Validation

This module handles:
- Loading the 3x3 cube atlas with Pillow (always converted to RGBA)
- Validating the atlas shape before any generation state exists
- Binary alpha classification of texels, coupled to the opposite face

Texel coordinates are (x, y) with y pointing up, so tile row 0 is the
bottom strip of the image. Image arrays are stored top row first, and the
conversion happens once in AtlasTexture.
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np
from PIL import Image

from .faces import (
    ATLAS_TILES_PER_ROW,
    FaceDirection,
    mirrors_vertically,
    opposite_of,
    tile_index_of,
)


class AtlasErrorKind(Enum):
    """Reasons an image cannot be used as a cube atlas."""
    MISSING = "missing"
    NOT_RGBA = "not_rgba"
    NOT_SQUARE = "not_square"
    NOT_DIVISIBLE = "not_divisible"
    TOO_SMALL = "too_small"


class AtlasError(ValueError):
    """An image that failed atlas validation."""

    def __init__(self, kind: AtlasErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def validate_atlas(rgba: Optional[np.ndarray]) -> Optional[AtlasError]:
    """
    Check that an array can serve as a 3x3 cube atlas.

    The error is returned rather than raised so callers can decide how to
    report it without any partially-built state.

    Args:
        rgba: Candidate image array of shape (H, W, 4)

    Returns:
        None if valid, otherwise the AtlasError describing the problem
    """
    if rgba is None:
        return AtlasError(AtlasErrorKind.MISSING, "No atlas texture provided")

    if rgba.ndim != 3 or rgba.shape[2] != 4:
        return AtlasError(
            AtlasErrorKind.NOT_RGBA,
            f"Atlas must have shape (H, W, 4), got {rgba.shape}"
        )

    height, width = rgba.shape[:2]

    if width != height:
        return AtlasError(
            AtlasErrorKind.NOT_SQUARE,
            f"Atlas texture has to be in 1:1 aspect ratio, got {width}x{height}"
        )

    if width == 0:
        return AtlasError(AtlasErrorKind.TOO_SMALL, "Atlas texture is empty")

    if width % ATLAS_TILES_PER_ROW != 0:
        return AtlasError(
            AtlasErrorKind.NOT_DIVISIBLE,
            f"Atlas size {width} is not divisible by {ATLAS_TILES_PER_ROW}"
        )

    return None


class AtlasTexture:
    """
    A validated cube atlas with binary solidity lookups.

    A texel is solid when its own alpha and the alpha of the mirrored
    texel on the opposite face are both above the threshold, so surfaces
    only appear where both sides of the implied volume are painted.
    """

    def __init__(self, rgba: np.ndarray, alpha_threshold: int = 0, name: str = "atlas"):
        """
        Wrap an RGBA array as an atlas.

        Args:
            rgba: Image array of shape (H, W, 4), top row first
            alpha_threshold: Texels with alpha > threshold count as painted
            name: Label used for mesh naming and export

        Raises:
            AtlasError: If the array is not a valid atlas
        """
        error = validate_atlas(rgba)
        if error is not None:
            raise error

        self.alpha_threshold = alpha_threshold
        self.name = name
        self._rgba = rgba.astype(np.uint8)
        self._tile_resolution = rgba.shape[0] // ATLAS_TILES_PER_ROW

        # Alpha indexed [x, y] with y up
        self._alpha = np.flipud(self._rgba[:, :, 3]).T.copy()

    @property
    def rgba(self) -> np.ndarray:
        """Get the RGBA image array (top row first)."""
        return self._rgba

    @property
    def tile_resolution(self) -> int:
        """Get the number of texels along one tile edge."""
        return self._tile_resolution

    @property
    def size(self) -> Tuple[int, int]:
        """Get image size as (width, height)."""
        return (self._rgba.shape[1], self._rgba.shape[0])

    def texel_origin(self, direction: FaceDirection) -> Tuple[int, int]:
        """Get the absolute texel coordinate of a tile's bottom-left texel."""
        col, row = tile_index_of(direction)
        return (col * self._tile_resolution, row * self._tile_resolution)

    def tile_alpha(self, direction: FaceDirection) -> np.ndarray:
        """
        Get the alpha values of a face's tile.

        Returns:
            Array of shape (T, T) indexed [x, y] with y up
        """
        x0, y0 = self.texel_origin(direction)
        t = self._tile_resolution
        return self._alpha[x0:x0 + t, y0:y0 + t]

    def painted_mask(self, direction: FaceDirection) -> np.ndarray:
        """Get texels of a tile whose own alpha passes the threshold."""
        return self.tile_alpha(direction) > self.alpha_threshold

    def solid_mask(self, direction: FaceDirection) -> np.ndarray:
        """
        Get the binary solidity mask of a face.

        Returns:
            Boolean array of shape (T, T) indexed [x, y] with y up
        """
        own = self.painted_mask(direction)
        opposite = self.painted_mask(opposite_of(direction))

        if mirrors_vertically(direction):
            opposite = opposite[:, ::-1]
        else:
            opposite = opposite[::-1, :]

        return own & opposite

    def is_solid(self, direction: FaceDirection, x: int, y: int) -> bool:
        """Check solidity of a single texel in local tile coordinates."""
        t = self._tile_resolution
        if not (0 <= x < t and 0 <= y < t):
            raise IndexError(f"Texel ({x}, {y}) outside tile of size {t}")

        if mirrors_vertically(direction):
            ox, oy = x, t - 1 - y
        else:
            ox, oy = t - 1 - x, y

        own = self.tile_alpha(direction)[x, y]
        opposite = self.tile_alpha(opposite_of(direction))[ox, oy]
        return bool(own > self.alpha_threshold and opposite > self.alpha_threshold)


class AtlasLoader:
    """
    Loader for cube atlas images.

    Keeps the image untouched apart from RGBA conversion; resampling would
    break the binary alpha classification.
    """

    def __init__(self, alpha_threshold: int = 0):
        """
        Initialize the loader.

        Args:
            alpha_threshold: Texels with alpha > threshold count as painted (0-255)
        """
        self.alpha_threshold = alpha_threshold

    def load(self, image_path: Union[str, Path]) -> AtlasTexture:
        """
        Load an atlas image from disk.

        Args:
            image_path: Path to the atlas image (PNG recommended)

        Returns:
            Validated AtlasTexture
        """
        image_path = Path(image_path)
        if not image_path.exists():
            raise FileNotFoundError(f"Image not found: {image_path}")

        img = Image.open(image_path)

        # Ensure RGBA format
        if img.mode != "RGBA":
            img = img.convert("RGBA")

        return AtlasTexture(
            np.array(img, dtype=np.uint8),
            alpha_threshold=self.alpha_threshold,
            name=image_path.stem
        )

    def load_from_array(self, rgba_array: np.ndarray, name: str = "atlas") -> AtlasTexture:
        """
        Load an atlas from a numpy array.

        Args:
            rgba_array: RGBA image array of shape (H, W, 4)
            name: Label for the atlas

        Returns:
            Validated AtlasTexture
        """
        return AtlasTexture(rgba_array, alpha_threshold=self.alpha_threshold, name=name)
