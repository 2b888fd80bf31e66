"""
Export modules for generated atlas meshes.

Supported formats:
- glTF 2.0 (.glb) - Optimal for game engines (Godot, Unity), texture embedded
- Wavefront (.obj) - Universal legacy support, texture via MTL
"""

from .gltf_exporter import GLTFExporter, read_glb
from .obj_exporter import OBJExporter

__all__ = ["GLTFExporter", "OBJExporter", "read_glb"]
