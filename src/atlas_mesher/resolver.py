"""
Extrusion Depth Resolution

A texel's extrusion depths are not stored on its own face. They come from
the run tables of the two neighbouring faces that share the texel's column
(across the Top edge) and row (across the Left edge): those faces measured
how far their solid runs sit from the shared edge, which is exactly how far
this face's quads must be pushed inward.

Since resolution reads other faces' tables, all six faces are encoded
before any face is resolved. FaceSet enforces that ordering.
"""

import logging
import math
from typing import Dict, Iterator, List, Sequence

from .faces import FaceDirection, TileSide, adjacent
from .runs import Face

logger = logging.getLogger(__name__)


def lookup_index(index: int, side: TileSide, tile_resolution: int) -> int:
    """
    Map a texel index onto the run table of a neighbouring side.

    TOP and LEFT tables run opposite to the edge they are read across.
    """
    if side in (TileSide.TOP, TileSide.LEFT):
        return tile_resolution - index - 1
    return index


def select_depth_runs(vertical: Sequence[int], horizontal: Sequence[int]) -> List[int]:
    """
    Choose between the offsets seen across the Top and Left edges.

    Both lists are sorted deepest first. The first index where they differ
    decides: the list with the larger value there wins in full. If one list
    is a prefix of the other, the longer list wins. Identical lists return
    the vertical one.

    Args:
        vertical: Offsets from the face across the Top edge
        horizontal: Offsets from the face across the Left edge

    Returns:
        The winning offsets, sorted descending
    """
    vertical = sorted(vertical, reverse=True)
    horizontal = sorted(horizontal, reverse=True)

    for v, h in zip(vertical, horizontal):
        if v > h:
            return vertical
        if h > v:
            return horizontal

    if len(horizontal) > len(vertical):
        return horizontal
    return vertical


class FaceSet:
    """
    The six faces of one generation pass.

    This is the generation context: it is created per run by the caller and
    passed to the builder, so nothing is shared between runs.
    """

    def __init__(self, atlas):
        """
        Create one face per direction for an atlas.

        Args:
            atlas: AtlasTexture to encode from
        """
        self.atlas = atlas
        self.tile_resolution = atlas.tile_resolution
        self._faces: Dict[FaceDirection, Face] = {
            direction: Face(direction, self.tile_resolution)
            for direction in FaceDirection
        }
        self._encoded = False

    def __iter__(self) -> Iterator[Face]:
        return iter(self._faces[d] for d in FaceDirection)

    def __len__(self) -> int:
        return len(self._faces)

    def __getitem__(self, direction: FaceDirection) -> Face:
        return self._faces[FaceDirection(direction)]

    @property
    def is_encoded(self) -> bool:
        """Check whether every face has its run tables."""
        return self._encoded

    def encode(self) -> "FaceSet":
        """
        Encode the run tables of all six faces.

        Returns:
            self for method chaining
        """
        for face in self:
            face.encode(self.atlas)

        self._encoded = True
        logger.debug("Encoded %d faces at tile resolution %d", len(self), self.tile_resolution)
        return self

    def resolve_texel(self, direction: FaceDirection, x: int, y: int) -> List[float]:
        """
        Resolve the extrusion depths of one texel.

        Args:
            direction: Face owning the texel
            x: Texel column within the tile
            y: Texel row within the tile (y up)

        Returns:
            Normalized depths (offset / tile_resolution), deepest first
        """
        if not self._encoded:
            raise RuntimeError("Faces not encoded. Call encode() first.")

        t = self.tile_resolution
        if not (0 <= x < t and 0 <= y < t):
            raise IndexError(f"Texel ({x}, {y}) outside tile of size {t}")

        vertical_face, vertical_side = adjacent(direction, TileSide.TOP)
        horizontal_face, horizontal_side = adjacent(direction, TileSide.LEFT)

        vertical = self._faces[vertical_face].runs(
            vertical_side, lookup_index(x, vertical_side, t)
        )
        horizontal = self._faces[horizontal_face].runs(
            horizontal_side, lookup_index(y, horizontal_side, t)
        )

        return [offset / t for offset in select_depth_runs(vertical, horizontal)]

    def resolve_depths(self, direction: FaceDirection, x: float, y: float) -> List[float]:
        """
        Resolve the extrusion depths at a normalized face position.

        Args:
            direction: Face owning the texel
            x, y: Position on the face in [0, 1)

        Returns:
            Normalized depths, deepest first
        """
        t = self.tile_resolution
        return self.resolve_texel(direction, math.floor(x * t), math.floor(y * t))
