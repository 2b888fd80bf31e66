"""
Cube Face Geometry and Atlas Tile Tables

This module holds the fixed lookup data shared by every stage:
- Face directions and tile sides
- Per-face normal (extrusion axis) and corner offset in mesh space
- Per-face tile position in the 3x3 atlas
- Edge adjacency between tiles, and opposite-face mirroring

Mesh space is the internal left-handed, Y-up system. The cube spans
[-0.5, 0.5] on every axis. Each face normal points into the cube, so a
positive extrusion depth pushes a quad from the face plane towards the
opposite face.

Atlas layout (row 0 is the bottom of the image):

    row 2 |  --    |  --   |  --   |
    row 1 |  TOP   | FRONT | BACK  |
    row 0 | BOTTOM | LEFT  | RIGHT |
            col 0    col 1   col 2
"""

from enum import IntEnum
from typing import Dict, Tuple
import numpy as np


ATLAS_TILES_PER_ROW = 3
UV_TILE_SIZE = 1.0 / ATLAS_TILES_PER_ROW


class FaceDirection(IntEnum):
    """Cube faces, in generation order."""
    TOP = 0
    BOTTOM = 1
    FRONT = 2
    BACK = 3
    LEFT = 4
    RIGHT = 5


class TileSide(IntEnum):
    """Edges of a square atlas tile."""
    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


# Extrusion axis for each face direction
FACE_NORMALS = np.array([
    [0, -1, 0],   # TOP
    [0, 1, 0],    # BOTTOM
    [0, 0, 1],    # FRONT
    [0, 0, -1],   # BACK
    [1, 0, 0],    # LEFT
    [-1, 0, 0],   # RIGHT
], dtype=np.float64)

# Mesh-space position of local (0, 0, 0) on each face
FACE_CORNER_OFFSETS = np.array([
    [-0.5, 0.5, -0.5],   # TOP
    [-0.5, -0.5, 0.5],   # BOTTOM
    [-0.5, -0.5, -0.5],  # FRONT
    [0.5, -0.5, 0.5],    # BACK
    [-0.5, -0.5, 0.5],   # LEFT
    [0.5, -0.5, -0.5],   # RIGHT
], dtype=np.float64)

# (col, row) of each face's tile in the atlas
TILE_INDICES: Dict[FaceDirection, Tuple[int, int]] = {
    FaceDirection.TOP: (0, 1),
    FaceDirection.BOTTOM: (0, 0),
    FaceDirection.FRONT: (1, 1),
    FaceDirection.BACK: (2, 1),
    FaceDirection.LEFT: (1, 0),
    FaceDirection.RIGHT: (2, 0),
}

_F = FaceDirection
_S = TileSide

# (face, side) -> (face, side) physically contiguous across that tile edge
ADJACENCY: Dict[Tuple[FaceDirection, TileSide], Tuple[FaceDirection, TileSide]] = {
    (_F.FRONT, _S.TOP): (_F.TOP, _S.BOTTOM),
    (_F.FRONT, _S.RIGHT): (_F.RIGHT, _S.LEFT),
    (_F.FRONT, _S.BOTTOM): (_F.BOTTOM, _S.TOP),
    (_F.FRONT, _S.LEFT): (_F.LEFT, _S.RIGHT),

    (_F.BACK, _S.TOP): (_F.TOP, _S.TOP),
    (_F.BACK, _S.RIGHT): (_F.LEFT, _S.LEFT),
    (_F.BACK, _S.BOTTOM): (_F.BOTTOM, _S.BOTTOM),
    (_F.BACK, _S.LEFT): (_F.RIGHT, _S.RIGHT),

    (_F.TOP, _S.TOP): (_F.BACK, _S.TOP),
    (_F.TOP, _S.RIGHT): (_F.RIGHT, _S.TOP),
    (_F.TOP, _S.BOTTOM): (_F.FRONT, _S.TOP),
    (_F.TOP, _S.LEFT): (_F.LEFT, _S.TOP),

    (_F.BOTTOM, _S.TOP): (_F.FRONT, _S.BOTTOM),
    (_F.BOTTOM, _S.RIGHT): (_F.RIGHT, _S.BOTTOM),
    (_F.BOTTOM, _S.BOTTOM): (_F.BACK, _S.BOTTOM),
    (_F.BOTTOM, _S.LEFT): (_F.LEFT, _S.BOTTOM),

    (_F.LEFT, _S.TOP): (_F.TOP, _S.LEFT),
    (_F.LEFT, _S.RIGHT): (_F.FRONT, _S.LEFT),
    (_F.LEFT, _S.BOTTOM): (_F.BOTTOM, _S.LEFT),
    (_F.LEFT, _S.LEFT): (_F.BACK, _S.RIGHT),

    (_F.RIGHT, _S.TOP): (_F.TOP, _S.RIGHT),
    (_F.RIGHT, _S.RIGHT): (_F.BACK, _S.LEFT),
    (_F.RIGHT, _S.BOTTOM): (_F.BOTTOM, _S.RIGHT),
    (_F.RIGHT, _S.LEFT): (_F.FRONT, _S.RIGHT),
}

OPPOSITE_FACES: Dict[FaceDirection, FaceDirection] = {
    _F.FRONT: _F.BACK,
    _F.BACK: _F.FRONT,
    _F.TOP: _F.BOTTOM,
    _F.BOTTOM: _F.TOP,
    _F.LEFT: _F.RIGHT,
    _F.RIGHT: _F.LEFT,
}

_WORLD_UP = np.array([0.0, 1.0, 0.0])
_WORLD_RIGHT = np.array([1.0, 0.0, 0.0])


def normal_of(direction: FaceDirection) -> np.ndarray:
    """Get the extrusion axis of a face."""
    return FACE_NORMALS[direction]


def corner_offset_of(direction: FaceDirection) -> np.ndarray:
    """Get the mesh-space origin of a face."""
    return FACE_CORNER_OFFSETS[direction]


def tile_index_of(direction: FaceDirection) -> Tuple[int, int]:
    """Get the (col, row) atlas tile of a face."""
    return TILE_INDICES[direction]


def uv_base_of(direction: FaceDirection) -> np.ndarray:
    """Get the UV coordinate of a face tile's bottom-left corner."""
    col, row = TILE_INDICES[direction]
    return np.array([col * UV_TILE_SIZE, row * UV_TILE_SIZE], dtype=np.float64)


def adjacent(
    direction: FaceDirection,
    side: TileSide
) -> Tuple[FaceDirection, TileSide]:
    """
    Get the face and tile side that touch a given tile edge.

    Args:
        direction: Face owning the edge
        side: Which edge of the face's tile

    Returns:
        (face, side) on the other side of the shared cube edge
    """
    return ADJACENCY[(FaceDirection(direction), TileSide(side))]


def opposite_of(direction: FaceDirection) -> FaceDirection:
    """Get the face on the far side of the cube."""
    return OPPOSITE_FACES[direction]


def mirrors_vertically(direction: FaceDirection) -> bool:
    """
    Check how a face's tile maps onto its opposite tile.

    Top and Bottom mirror along the tile's y axis; the side faces mirror
    along x.
    """
    return direction in (FaceDirection.TOP, FaceDirection.BOTTOM)


def face_basis(direction: FaceDirection) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the in-plane (right, up) axes of a face.

    The cross product with the world up axis degenerates for the Top and
    Bottom faces, so those use the world right axis directly.

    Returns:
        (right, up) unit vectors spanning the face plane
    """
    normal = FACE_NORMALS[direction]

    if abs(np.dot(normal, _WORLD_UP)) == 1.0:
        right = _WORLD_RIGHT.copy()
    else:
        right = np.cross(_WORLD_UP, normal)
        right = right / np.linalg.norm(right)

    up = np.cross(normal, right)
    up = up / np.linalg.norm(up)

    return right, up
