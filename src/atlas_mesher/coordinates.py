"""
Coordinate System Conversion

Meshes are built in a left-handed, Y-up space (the convention of the
engines the atlases are painted for). Exporters convert to their target
system here:

- Internal: Left-handed, Y-up  (+X Right, +Y Up, +Z Forward)
- glTF:     Right-handed, Y-up (+X Right, +Y Up, +Z Back)
- Blender:  Right-handed, Z-up (+X Right, +Y Forward, +Z Up)

A handedness change mirrors the geometry, so triangle winding is reversed
to keep faces pointing outward.
"""

from enum import Enum
import numpy as np

from .builder import MeshData


class CoordinateSystem(Enum):
    """Target coordinate system for export."""
    INTERNAL = "internal"    # Y-up, left-handed
    GLTF = "gltf"            # Y-up, right-handed
    BLENDER = "blender"      # Z-up, right-handed


def get_coordinate_transform(
    source: CoordinateSystem,
    target: CoordinateSystem
) -> np.ndarray:
    """
    Get the 3x3 transformation matrix between coordinate systems.

    Args:
        source: Source coordinate system
        target: Target coordinate system

    Returns:
        3x3 transformation matrix
    """
    # Identity for same systems
    if source == target:
        return np.eye(3, dtype=np.float64)

    # Internal to glTF: flip the forward axis
    internal_to_gltf = np.array([
        [1, 0, 0],
        [0, 1, 0],
        [0, 0, -1]
    ], dtype=np.float64)

    # Internal to Blender: x' = x, y' = z, z' = y
    internal_to_blender = np.array([
        [1, 0, 0],
        [0, 0, 1],
        [0, 1, 0]
    ], dtype=np.float64)

    transforms = {
        (CoordinateSystem.INTERNAL, CoordinateSystem.GLTF): internal_to_gltf,
        (CoordinateSystem.INTERNAL, CoordinateSystem.BLENDER): internal_to_blender,
    }

    # Direct lookup
    if (source, target) in transforms:
        return transforms[(source, target)]

    # Inverse lookup
    if (target, source) in transforms:
        return np.linalg.inv(transforms[(target, source)])

    # Chain through internal
    to_internal = get_coordinate_transform(source, CoordinateSystem.INTERNAL)
    from_internal = get_coordinate_transform(CoordinateSystem.INTERNAL, target)
    return from_internal @ to_internal


def transform_vertices(
    vertices: np.ndarray,
    source: CoordinateSystem,
    target: CoordinateSystem
) -> np.ndarray:
    """
    Transform an array of vertices between coordinate systems.

    Args:
        vertices: Array of shape (N, 3) containing vertex positions
        source: Source coordinate system
        target: Target coordinate system

    Returns:
        Transformed vertices array of shape (N, 3)
    """
    matrix = get_coordinate_transform(source, target)
    return (matrix @ vertices.T).T


def flips_handedness(source: CoordinateSystem, target: CoordinateSystem) -> bool:
    """Check whether converting between two systems mirrors geometry."""
    return np.linalg.det(get_coordinate_transform(source, target)) < 0


def transform_mesh(
    mesh: MeshData,
    target: CoordinateSystem,
    source: CoordinateSystem = CoordinateSystem.INTERNAL
) -> MeshData:
    """
    Convert positions, normals and winding of a mesh.

    Args:
        mesh: Mesh in the source system
        target: Target coordinate system
        source: Source coordinate system (default internal)

    Returns:
        MeshData in the target system
    """
    if source == target:
        return mesh

    indices = mesh.indices
    if flips_handedness(source, target):
        indices = indices.reshape(-1, 3)[:, ::-1].ravel()

    return MeshData(
        vertices=transform_vertices(mesh.vertices, source, target),
        normals=transform_vertices(mesh.normals, source, target),
        uvs=mesh.uvs,
        indices=indices
    )
