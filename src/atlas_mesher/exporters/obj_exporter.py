"""
Wavefront OBJ Format Exporter

OBJ is a universal text-based format supported by virtually all 3D software.
The generated mesh carries one UV channel into the atlas, so the export
writes:
- Positions (v), texture coordinates (vt) and normals (vn)
- Faces as v/vt/vn triplets
- Optionally an MTL file whose diffuse map is the atlas image

Limitations:
- Text format = larger file sizes
- Alpha cutout depends on the importer honouring map_d
"""

from pathlib import Path
from typing import List, Optional, Union
import logging
import numpy as np
from PIL import Image

from ..builder import MeshData
from ..coordinates import CoordinateSystem, transform_mesh

logger = logging.getLogger(__name__)


class OBJExporter:
    """
    Export mesh data to Wavefront OBJ format.

    Supports:
    - Standard OBJ with texture coordinates and normals
    - MTL material referencing the atlas texture
    - Coordinate system transformation
    """

    def __init__(
        self,
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF,
        scale: float = 1.0,
        include_normals: bool = True
    ):
        """
        Initialize the exporter.

        Args:
            coordinate_system: Target coordinate system
            scale: Scale factor for vertex positions
            include_normals: Whether to include vertex normals
        """
        self.coordinate_system = coordinate_system
        self.scale = scale
        self.include_normals = include_normals

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        model_name: str = "atlas_model",
        texture: Optional[np.ndarray] = None
    ):
        """
        Export mesh to OBJ file.

        Args:
            mesh: MeshData from the generator
            output_path: Output file path (.obj)
            model_name: Name for the model/object
            texture: Optional RGBA atlas; writes an MTL and PNG beside the OBJ
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ValueError("Cannot export empty mesh")

        mesh = transform_mesh(mesh, self.coordinate_system)
        vertices = mesh.vertices * self.scale
        indices = mesh.indices

        lines = []
        lines.append("# Atlas Mesher OBJ Export")
        lines.append(f"# Vertices: {len(vertices)}")
        lines.append(f"# Triangles: {len(indices) // 3}")
        lines.append("")

        if texture is not None:
            mtl_path = output_path.with_suffix('.mtl')
            lines.append(f"mtllib {mtl_path.name}")
            lines.append("")

        lines.append(f"o {model_name}")
        lines.append("")

        for v in vertices:
            lines.append(f"v {v[0]:.6f} {v[1]:.6f} {v[2]:.6f}")
        lines.append("")

        for uv in mesh.uvs:
            lines.append(f"vt {uv[0]:.6f} {uv[1]:.6f}")
        lines.append("")

        if self.include_normals:
            for n in mesh.normals:
                lines.append(f"vn {n[0]:.6f} {n[1]:.6f} {n[2]:.6f}")
            lines.append("")

        if texture is not None:
            lines.append(f"usemtl {model_name}_material")

        lines.extend(self._face_lines(indices))

        with open(output_path, 'w') as f:
            f.write('\n'.join(lines))
            f.write('\n')

        if texture is not None:
            self._write_material(output_path, model_name, texture)

        logger.info("Wrote %s (%d vertices)", output_path, len(vertices))

    def _face_lines(self, indices: np.ndarray) -> List[str]:
        """Build face records; vertex, UV and normal share one index."""
        lines = []
        for i in range(0, len(indices), 3):
            i0, i1, i2 = indices[i] + 1, indices[i+1] + 1, indices[i+2] + 1
            if self.include_normals:
                lines.append(f"f {i0}/{i0}/{i0} {i1}/{i1}/{i1} {i2}/{i2}/{i2}")
            else:
                lines.append(f"f {i0}/{i0} {i1}/{i1} {i2}/{i2}")
        return lines

    def _write_material(self, obj_path: Path, model_name: str, texture: np.ndarray):
        """Write the MTL file and the atlas image it references."""
        texture_path = obj_path.with_name(f"{obj_path.stem}_atlas.png")
        Image.fromarray(texture.astype(np.uint8)).save(texture_path)

        lines = []
        lines.append("# Atlas Mesher MTL Export")
        lines.append("")
        lines.append(f"newmtl {model_name}_material")
        lines.append("Kd 1.0 1.0 1.0")
        lines.append("Ka 0.0 0.0 0.0")
        lines.append("Ks 0.0 0.0 0.0")
        lines.append("Ns 0")
        lines.append("d 1.0")
        lines.append("illum 1")
        lines.append(f"map_Kd {texture_path.name}")
        lines.append(f"map_d {texture_path.name}")
        lines.append("")

        with open(obj_path.with_suffix('.mtl'), 'w') as f:
            f.write('\n'.join(lines))
