"""
Synthetic cube atlases for demos and tests.

Masks are boolean arrays indexed [x, y] with y up, the same convention as
AtlasTexture.solid_mask(). Faces without a mask are fully painted.
"""

from typing import Dict, Optional
import numpy as np

from .faces import ATLAS_TILES_PER_ROW, FaceDirection, tile_index_of


# Base tint per face so tiles are easy to tell apart in a viewer
FACE_COLORS = {
    FaceDirection.TOP: (120, 200, 90),
    FaceDirection.BOTTOM: (110, 80, 60),
    FaceDirection.FRONT: (220, 170, 90),
    FaceDirection.BACK: (200, 150, 80),
    FaceDirection.LEFT: (180, 120, 70),
    FaceDirection.RIGHT: (160, 110, 60),
}

DEMO_STYLES = ["Cube", "Notched", "Pillar", "Arch"]


def atlas_from_masks(
    tile_resolution: int,
    masks: Optional[Dict[FaceDirection, np.ndarray]] = None,
    checker: bool = True
) -> np.ndarray:
    """
    Paint an RGBA atlas from per-face alpha masks.

    Args:
        tile_resolution: Texels per tile edge
        masks: Optional painted mask per face, shape (T, T), indexed [x, y]
        checker: Darken alternate texels for a visible texel grid

    Returns:
        RGBA array of shape (3T, 3T, 4), top row first
    """
    t = tile_resolution
    size = ATLAS_TILES_PER_ROW * t
    masks = masks or {}
    rgba = np.zeros((size, size, 4), dtype=np.uint8)

    xs, ys = np.meshgrid(np.arange(t), np.arange(t), indexing="ij")
    shade = np.where((xs + ys) % 2 == 0, 1.0, 0.85) if checker else np.ones((t, t))

    for direction in FaceDirection:
        mask = masks.get(direction)
        if mask is None:
            mask = np.ones((t, t), dtype=bool)
        if mask.shape != (t, t):
            raise ValueError(f"Mask for {direction.name} must have shape {(t, t)}")

        col, row = tile_index_of(direction)
        tile = np.zeros((t, t, 4), dtype=np.uint8)
        tile[..., :3] = (np.array(FACE_COLORS[direction])[None, None, :] * shade[..., None]).astype(np.uint8)
        tile[..., 3] = np.where(mask, 255, 0)

        # [x, y] with y up -> image rows top first
        image_tile = np.flipud(tile.transpose(1, 0, 2))
        top = size - (row + 1) * t
        rgba[top:top + t, col * t:(col + 1) * t] = image_tile

    return rgba


def demo_atlas(style: str, tile_resolution: int = 16) -> np.ndarray:
    """
    Build one of the demo atlases.

    Args:
        style: One of DEMO_STYLES
        tile_resolution: Texels per tile edge

    Returns:
        RGBA atlas array
    """
    t = tile_resolution
    full = np.ones((t, t), dtype=bool)

    if style == "Cube":
        return atlas_from_masks(t)

    if style == "Notched":
        # Front quarter of the top is missing, pushing the front face in
        top = full.copy()
        top[:, :t // 4] = False
        return atlas_from_masks(t, {FaceDirection.TOP: top})

    if style == "Pillar":
        lo, hi = t // 4, t - t // 4
        sides = np.zeros((t, t), dtype=bool)
        sides[lo:hi, :] = True
        caps = np.zeros((t, t), dtype=bool)
        caps[lo:hi, lo:hi] = True
        return atlas_from_masks(t, {
            FaceDirection.TOP: caps,
            FaceDirection.BOTTOM: caps,
            FaceDirection.FRONT: sides,
            FaceDirection.BACK: sides,
            FaceDirection.LEFT: sides,
            FaceDirection.RIGHT: sides,
        })

    if style == "Arch":
        lo, hi = t // 3, t - t // 3
        face = full.copy()
        face[lo:hi, :t // 2] = False
        return atlas_from_masks(t, {
            FaceDirection.FRONT: face,
            FaceDirection.BACK: face[::-1, :].copy(),
        })

    raise ValueError(f"Unknown demo style: {style}. Valid: {DEMO_STYLES}")
