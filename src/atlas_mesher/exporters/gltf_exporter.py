"""
glTF 2.0 Exporter (.glb binary format)

glTF is the preferred format for game engines (Godot, Unity, Unreal).
This exporter generates binary glTF files with:
- Positions, normals and one UV channel
- Optional embedded atlas texture (PNG, nearest-neighbour sampling)
- Coordinate system transformation for different engines
- Efficient binary buffer packing

glTF Structure:
- JSON header describing scene graph
- Binary buffer containing geometry data
  - Indices (uint16/uint32)
  - Positions (float32 vec3)
  - Normals (float32 vec3)
  - Texture coordinates (float32 vec2)
  - Texture image (PNG bytes, when embedded)
"""

from io import BytesIO
from pathlib import Path
from typing import Union, Optional, Dict, Any, List
import json
import logging
import struct
import numpy as np
from PIL import Image

from ..builder import MeshData
from ..coordinates import CoordinateSystem, transform_mesh

logger = logging.getLogger(__name__)


# glTF constants
GLTF_VERSION = "2.0"
GENERATOR = "AtlasMesher"

# Component types
UNSIGNED_SHORT = 5123
UNSIGNED_INT = 5125
FLOAT = 5126

# Buffer view targets
ARRAY_BUFFER = 34962
ELEMENT_ARRAY_BUFFER = 34963

# Primitive modes
TRIANGLES = 4

# Sampler filters and wrapping
NEAREST = 9728
CLAMP_TO_EDGE = 33071

# GLB chunk magic numbers
GLB_MAGIC = 0x46546C67
JSON_CHUNK = 0x4E4F534A
BIN_CHUNK = 0x004E4942


def _pad4(data: bytes, fill: bytes = b'\x00') -> bytes:
    """Pad bytes to 4-byte alignment."""
    return data + fill * ((4 - len(data) % 4) % 4)


class GLTFExporter:
    """
    Export mesh data to glTF 2.0 binary format (.glb).

    Features:
    - TEXCOORD_0 with the glTF top-left UV origin
    - Embedded atlas texture with alpha cutout
    - Coordinate system conversion for different engines
    """

    def __init__(
        self,
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF,
        scale: float = 1.0,
        alpha_cutoff: float = 0.5
    ):
        """
        Initialize the exporter.

        Args:
            coordinate_system: Target coordinate system
            scale: Scale factor for vertex positions
            alpha_cutoff: Alpha MASK cutoff used when a texture is embedded
        """
        self.coordinate_system = coordinate_system
        self.scale = scale
        self.alpha_cutoff = alpha_cutoff

    def export(
        self,
        mesh: MeshData,
        output_path: Union[str, Path],
        texture: Optional[np.ndarray] = None,
        mesh_name: str = "AtlasMesh"
    ):
        """
        Export mesh to .glb file.

        Args:
            mesh: MeshData from the generator
            output_path: Output file path
            texture: Optional RGBA atlas array to embed
            mesh_name: Name for the mesh and node
        """
        output_path = Path(output_path)

        if len(mesh.vertices) == 0:
            raise ValueError("Cannot export empty mesh")

        mesh = transform_mesh(mesh, self.coordinate_system)
        vertices = (mesh.vertices * self.scale).astype(np.float32)
        normals = mesh.normals.astype(np.float32)

        # glTF puts the UV origin at the top-left of the image
        uvs = mesh.uvs.astype(np.float32).copy()
        uvs[:, 1] = 1.0 - uvs[:, 1]

        # Determine index type
        if mesh.indices.max() < 65536:
            index_type = UNSIGNED_SHORT
            indices = mesh.indices.astype(np.uint16)
        else:
            index_type = UNSIGNED_INT
            indices = mesh.indices.astype(np.uint32)

        image_bytes = self._encode_texture(texture) if texture is not None else None

        segments = [
            indices.tobytes(),
            vertices.tobytes(),
            normals.tobytes(),
            uvs.tobytes(),
        ]
        if image_bytes is not None:
            segments.append(image_bytes)

        buffer_data, views = self._pack(segments)

        gltf = self._build_gltf(
            vertices, indices, index_type, views,
            buffer_length=len(buffer_data),
            textured=image_bytes is not None,
            mesh_name=mesh_name
        )

        self._write_glb(output_path, gltf, buffer_data)
        logger.info("Wrote %s (%d vertices)", output_path, len(vertices))

    def _encode_texture(self, texture: np.ndarray) -> bytes:
        """Encode the atlas as PNG bytes."""
        stream = BytesIO()
        Image.fromarray(texture.astype(np.uint8)).save(stream, format="PNG")
        return stream.getvalue()

    def _pack(self, segments: List[bytes]):
        """
        Concatenate segments into one buffer with 4-byte aligned views.

        Returns:
            (buffer bytes, list of (byteOffset, byteLength) per segment)
        """
        parts = []
        views = []
        offset = 0
        for segment in segments:
            views.append((offset, len(segment)))
            padded = _pad4(segment)
            parts.append(padded)
            offset += len(padded)
        return b''.join(parts), views

    def _build_gltf(
        self,
        vertices: np.ndarray,
        indices: np.ndarray,
        index_type: int,
        views: List[tuple],
        buffer_length: int,
        textured: bool,
        mesh_name: str
    ) -> Dict[str, Any]:
        """Build the glTF JSON structure."""
        num_vertices = len(vertices)
        targets = [ELEMENT_ARRAY_BUFFER, ARRAY_BUFFER, ARRAY_BUFFER, ARRAY_BUFFER]

        buffer_views = []
        for i, (offset, length) in enumerate(views):
            view = {"buffer": 0, "byteOffset": offset, "byteLength": length}
            if i < len(targets):
                view["target"] = targets[i]
            buffer_views.append(view)

        material: Dict[str, Any] = {
            "name": f"{mesh_name}Material",
            "pbrMetallicRoughness": {
                "baseColorFactor": [1.0, 1.0, 1.0, 1.0],
                "metallicFactor": 0.0,
                "roughnessFactor": 0.9
            },
            "doubleSided": False
        }

        gltf: Dict[str, Any] = {
            "asset": {
                "version": GLTF_VERSION,
                "generator": GENERATOR
            },
            "scene": 0,
            "scenes": [
                {"nodes": [0]}
            ],
            "nodes": [
                {
                    "mesh": 0,
                    "name": mesh_name
                }
            ],
            "meshes": [
                {
                    "primitives": [
                        {
                            "attributes": {
                                "POSITION": 1,
                                "NORMAL": 2,
                                "TEXCOORD_0": 3
                            },
                            "indices": 0,
                            "material": 0,
                            "mode": TRIANGLES
                        }
                    ],
                    "name": mesh_name
                }
            ],
            "materials": [material],
            "accessors": [
                # 0: Indices
                {
                    "bufferView": 0,
                    "componentType": index_type,
                    "count": len(indices),
                    "type": "SCALAR"
                },
                # 1: Positions
                {
                    "bufferView": 1,
                    "componentType": FLOAT,
                    "count": num_vertices,
                    "type": "VEC3",
                    "min": vertices.min(axis=0).tolist(),
                    "max": vertices.max(axis=0).tolist()
                },
                # 2: Normals
                {
                    "bufferView": 2,
                    "componentType": FLOAT,
                    "count": num_vertices,
                    "type": "VEC3"
                },
                # 3: Texture coordinates
                {
                    "bufferView": 3,
                    "componentType": FLOAT,
                    "count": num_vertices,
                    "type": "VEC2"
                }
            ],
            "bufferViews": buffer_views,
            "buffers": [
                {
                    "byteLength": buffer_length
                }
            ]
        }

        if textured:
            material["pbrMetallicRoughness"]["baseColorTexture"] = {"index": 0}
            material["alphaMode"] = "MASK"
            material["alphaCutoff"] = self.alpha_cutoff
            gltf["samplers"] = [{
                "magFilter": NEAREST,
                "minFilter": NEAREST,
                "wrapS": CLAMP_TO_EDGE,
                "wrapT": CLAMP_TO_EDGE
            }]
            gltf["images"] = [{"bufferView": 4, "mimeType": "image/png"}]
            gltf["textures"] = [{"sampler": 0, "source": 0}]

        return gltf

    def _write_glb(
        self,
        output_path: Path,
        gltf: Dict[str, Any],
        buffer_data: bytes
    ):
        """Write the GLB binary file."""
        json_bytes = _pad4(json.dumps(gltf, separators=(',', ':')).encode('utf-8'), b' ')

        # Header + JSON chunk header + JSON + BIN chunk header + BIN
        total_length = 12 + 8 + len(json_bytes) + 8 + len(buffer_data)

        with open(output_path, 'wb') as f:
            # Header
            f.write(struct.pack('<I', GLB_MAGIC))
            f.write(struct.pack('<I', 2))           # Version 2
            f.write(struct.pack('<I', total_length))

            # JSON chunk
            f.write(struct.pack('<I', len(json_bytes)))
            f.write(struct.pack('<I', JSON_CHUNK))
            f.write(json_bytes)

            # Binary chunk
            f.write(struct.pack('<I', len(buffer_data)))
            f.write(struct.pack('<I', BIN_CHUNK))
            f.write(buffer_data)


def read_glb(path: Union[str, Path]):
    """
    Read back the JSON document and binary chunk of a .glb file.

    Returns:
        (gltf dict, buffer bytes)
    """
    with open(path, 'rb') as f:
        magic, version, total_length = struct.unpack('<III', f.read(12))
        if magic != GLB_MAGIC or version != 2:
            raise ValueError(f"{path} is not a glTF 2.0 binary file")

        json_length, json_type = struct.unpack('<II', f.read(8))
        gltf = json.loads(f.read(json_length).decode('utf-8'))

        bin_length, bin_type = struct.unpack('<II', f.read(8))
        buffer_data = f.read(bin_length)

    return gltf, buffer_data
