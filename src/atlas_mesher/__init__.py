"""
Atlas Mesher
============

Deterministic conversion of a 3x3 cube atlas texture into a 3D mesh.

Each of the six used atlas tiles paints one face of a unit cube; transparent
texels carve the cube away. The pipeline encodes the solid runs along every
tile edge, resolves per-texel extrusion depths from the neighbouring faces,
and emits one textured quad per depth.

Key Features:
- Binary alpha classification coupled across opposite faces
- Run encoding with Numba JIT compilation
- Vertex welding and iterative floating quad removal
- Export to glTF 2.0 (.glb) with embedded atlas, and Wavefront (.obj)

Example Usage:
    from atlas_mesher import AtlasMeshGenerator

    generator = AtlasMeshGenerator()
    generator.load_image("crate.png")
    generator.generate_mesh(optimize=True)
    generator.export_glb("crate.glb")
"""

__version__ = "1.0.0"
__author__ = "Atlas Mesher Team"

from .generator import AtlasMeshGenerator, BatchProcessor
from .faces import FaceDirection, TileSide
from .ingestion import AtlasError, AtlasErrorKind, AtlasLoader, AtlasTexture, validate_atlas
from .resolver import FaceSet
from .builder import MeshData, QuadMeshBuilder
from .optimizer import MeshOptimizer
from .coordinates import CoordinateSystem

__all__ = [
    "AtlasMeshGenerator",
    "BatchProcessor",
    "FaceDirection",
    "TileSide",
    "AtlasError",
    "AtlasErrorKind",
    "AtlasLoader",
    "AtlasTexture",
    "validate_atlas",
    "FaceSet",
    "MeshData",
    "QuadMeshBuilder",
    "MeshOptimizer",
    "CoordinateSystem",
]
