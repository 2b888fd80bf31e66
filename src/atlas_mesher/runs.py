"""
Pixel Run Encoding with Numba JIT Compilation

Each cube face records, along every column and row of its tile, where its
solid runs begin and end measured from each tile edge:

- Vertical scan (per column x, walking y upward):
    empty -> solid at counter c  records c      into BOTTOM[x]
    solid -> empty at counter c  records T - c  into TOP[x]
    a run reaching the far edge  records 0      into TOP[x]
- Horizontal scan (per row y, walking x rightward): same rule with LEFT as
  the near edge and RIGHT as the far edge.

These offsets are later read by neighbouring faces as extrusion depths.
"""

import logging
from typing import Dict, List, Tuple
import numpy as np
from numba import njit

from .faces import FaceDirection, TileSide, tile_index_of, uv_base_of

logger = logging.getLogger(__name__)

PixelRuns = Dict[TileSide, List[List[int]]]


@njit(cache=True)
def _scan_lines(solid: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Record run transitions along every line of a boolean mask.

    Args:
        solid: Boolean array of shape (lines, length)

    Returns:
        Tuple of (near, near_counts, far, far_counts) where near[i, :near_counts[i]]
        are run starts measured from the near edge and far[i, :far_counts[i]]
        are run ends measured from the far edge
    """
    num_lines, length = solid.shape

    # A line holds at most length runs; preallocate for the worst case
    near = np.zeros((num_lines, length), dtype=np.int64)
    far = np.zeros((num_lines, length), dtype=np.int64)
    near_counts = np.zeros(num_lines, dtype=np.int64)
    far_counts = np.zeros(num_lines, dtype=np.int64)

    for line in range(num_lines):
        in_run = False
        for counter in range(length):
            if solid[line, counter]:
                if not in_run:
                    near[line, near_counts[line]] = counter
                    near_counts[line] += 1
                    in_run = True
            elif in_run:
                far[line, far_counts[line]] = length - counter
                far_counts[line] += 1
                in_run = False

        # Run flush with the far edge
        if in_run:
            far[line, far_counts[line]] = 0
            far_counts[line] += 1

    return near, near_counts, far, far_counts


def _to_lists(values: np.ndarray, counts: np.ndarray) -> List[List[int]]:
    """Trim a preallocated kernel buffer into per-line Python lists."""
    return [values[i, :counts[i]].tolist() for i in range(len(counts))]


def encode_runs(solid: np.ndarray) -> PixelRuns:
    """
    Encode the run transitions of a tile for all four edges.

    Args:
        solid: Boolean mask of shape (T, T) indexed [x, y] with y up

    Returns:
        Mapping of tile side to T lists of offsets. TOP/BOTTOM lists are
        indexed by column, LEFT/RIGHT lists by row.
    """
    if solid.ndim != 2 or solid.shape[0] != solid.shape[1]:
        raise ValueError(f"Tile mask must be square, got shape {solid.shape}")

    columns = np.ascontiguousarray(solid, dtype=np.bool_)
    rows = np.ascontiguousarray(solid.T, dtype=np.bool_)

    bottom, bottom_counts, top, top_counts = _scan_lines(columns)
    left, left_counts, right, right_counts = _scan_lines(rows)

    return {
        TileSide.TOP: _to_lists(top, top_counts),
        TileSide.RIGHT: _to_lists(right, right_counts),
        TileSide.BOTTOM: _to_lists(bottom, bottom_counts),
        TileSide.LEFT: _to_lists(left, left_counts),
    }


def empty_runs(tile_resolution: int) -> PixelRuns:
    """Create run tables with an empty list for every line."""
    return {side: [[] for _ in range(tile_resolution)] for side in TileSide}


class Face:
    """
    Runtime state of one cube face for a single generation pass.

    Attributes:
        direction: Which cube face this is
        tile_resolution: Texels per tile edge
        solid: Boolean mask indexed [x, y], set by encode()
        pixel_runs: Run offsets per tile side, set by encode()
    """

    def __init__(self, direction: FaceDirection, tile_resolution: int):
        if tile_resolution <= 0:
            raise ValueError(f"Tile resolution must be positive, got {tile_resolution}")

        self.direction = FaceDirection(direction)
        self.tile_resolution = tile_resolution
        self.solid = np.zeros((tile_resolution, tile_resolution), dtype=bool)
        self.pixel_runs: PixelRuns = empty_runs(tile_resolution)
        self._encoded = False

    @property
    def tile_index(self) -> Tuple[int, int]:
        """Get the (col, row) atlas tile of this face."""
        return tile_index_of(self.direction)

    @property
    def uv_base(self) -> np.ndarray:
        """Get the UV origin of this face's tile."""
        return uv_base_of(self.direction)

    @property
    def is_encoded(self) -> bool:
        """Check whether run tables have been built."""
        return self._encoded

    def encode(self, atlas) -> "Face":
        """
        Build the solidity mask and run tables from an atlas.

        Args:
            atlas: AtlasTexture supplying the tile

        Returns:
            self for method chaining
        """
        if atlas.tile_resolution != self.tile_resolution:
            raise ValueError(
                f"Atlas tile resolution {atlas.tile_resolution} does not match "
                f"face resolution {self.tile_resolution}"
            )

        self.solid = atlas.solid_mask(self.direction)
        self.pixel_runs = encode_runs(self.solid)
        self._encoded = True

        logger.debug(
            "Encoded %s: %d solid texels, %d runs",
            self.direction.name,
            int(self.solid.sum()),
            sum(len(line) for line in self.pixel_runs[TileSide.BOTTOM]),
        )
        return self

    def runs(self, side: TileSide, index: int) -> List[int]:
        """
        Get the offsets recorded for one line of one edge.

        Args:
            side: Tile edge
            index: Column (TOP/BOTTOM) or row (LEFT/RIGHT) index

        Returns:
            The offsets in scan order
        """
        if not 0 <= index < self.tile_resolution:
            raise IndexError(
                f"Line {index} outside tile of size {self.tile_resolution}"
            )
        return self.pixel_runs[TileSide(side)][index]

    def __repr__(self) -> str:
        return f"Face({self.direction.name}, tile={self.tile_index})"
