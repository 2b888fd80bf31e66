"""
Main AtlasMeshGenerator Class

This is the primary interface for the atlas meshing pipeline.
It orchestrates:
1. Atlas loading and validation (setup)
2. Run encoding of all six faces
3. Depth resolution and quad emission
4. Mesh cleanup (welding, floating quad removal)
5. Export to various formats

Example Usage:
    generator = AtlasMeshGenerator()
    generator.load_image("atlas.png")
    generator.generate_mesh(optimize=True)
    generator.export_glb("output.glb")
"""

import logging
from pathlib import Path
from typing import Optional, Union
import numpy as np

from .ingestion import AtlasLoader, AtlasTexture
from .resolver import FaceSet
from .builder import MeshData, QuadMeshBuilder
from .optimizer import MeshOptimizer, recalculate_normals
from .coordinates import CoordinateSystem
from .exporters import GLTFExporter, OBJExporter

logger = logging.getLogger(__name__)


class AtlasMeshGenerator:
    """
    High-level interface for turning a cube atlas into a mesh.

    Each generate_mesh() call builds a fresh FaceSet, so a generator can be
    re-run after loading a new atlas without leftover state.

    Attributes:
        alpha_threshold: Texels with alpha > threshold are painted
        scale: Vertex position scale factor
        weld_decimals: Rounding precision for welding and floating detection
        recalculate_normals: Recompute normals from winding after generation
    """

    def __init__(
        self,
        alpha_threshold: int = 0,
        scale: float = 1.0,
        weld_decimals: int = 6,
        recalculate_normals: bool = True
    ):
        """
        Initialize the AtlasMeshGenerator.

        Args:
            alpha_threshold: Texels with alpha > threshold count as painted
            scale: Scale factor for the unit cube in output
            weld_decimals: Decimal places compared when welding vertices
            recalculate_normals: If True, replace face-table normals with
                outward normals computed from the triangles
        """
        self.alpha_threshold = alpha_threshold
        self.scale = scale
        self.weld_decimals = weld_decimals
        self.recalculate_normals = recalculate_normals

        self._texture: Optional[AtlasTexture] = None
        self._face_set: Optional[FaceSet] = None
        self._mesh: Optional[MeshData] = None
        self._stats: dict = {}

    def _reset(self):
        self._texture = None
        self._face_set = None
        self._mesh = None
        self._stats = {}

    def setup(self, source: Union[str, Path, np.ndarray]) -> "AtlasMeshGenerator":
        """
        Load and validate an atlas from a path or an RGBA array.

        On failure the generator is left with no atlas, so a later
        generate_mesh() cannot run on stale data.

        Returns:
            self for method chaining
        """
        if isinstance(source, np.ndarray):
            return self.load_array(source)
        return self.load_image(source)

    def load_image(self, image_path: Union[str, Path]) -> "AtlasMeshGenerator":
        """
        Load a cube atlas image.

        Args:
            image_path: Path to the atlas image (PNG recommended)

        Returns:
            self for method chaining
        """
        self._reset()
        self._texture = AtlasLoader(self.alpha_threshold).load(image_path)
        logger.info(
            "Loaded atlas %s (%dx%d, tile resolution %d)",
            self._texture.name, *self._texture.size, self._texture.tile_resolution
        )
        return self

    def load_array(self, rgba_array: np.ndarray, name: str = "atlas") -> "AtlasMeshGenerator":
        """
        Load atlas data from a numpy array.

        Args:
            rgba_array: RGBA image array of shape (H, W, 4)
            name: Label for the atlas

        Returns:
            self for method chaining
        """
        self._reset()
        self._texture = AtlasLoader(self.alpha_threshold).load_from_array(rgba_array, name)
        return self

    def generate_mesh(self, optimize: bool = True) -> "AtlasMeshGenerator":
        """
        Build the mesh from the loaded atlas.

        Args:
            optimize: If True, weld vertices and remove floating quads

        Returns:
            self for method chaining
        """
        if self._texture is None:
            raise RuntimeError("No image loaded. Call load_image() first.")

        face_set = FaceSet(self._texture).encode()

        builder = QuadMeshBuilder(scale=self.scale)
        mesh = builder.build(face_set)

        stats = {
            "tile_resolution": face_set.tile_resolution,
            "emitted_quads": builder.total_quads,
            "quads_per_face": {d.name.lower(): n for d, n in builder.quad_counts.items()},
            "optimized": optimize,
        }

        if optimize:
            optimizer = MeshOptimizer(decimals=self.weld_decimals)
            mesh = optimizer.optimize(mesh)
            stats.update(optimizer.stats)

        if self.recalculate_normals:
            mesh = recalculate_normals(mesh)

        stats["vertex_count"] = len(mesh.vertices)
        stats["triangle_count"] = len(mesh.indices) // 3

        self._face_set = face_set
        self._mesh = mesh
        self._stats = stats

        logger.info(
            "Generated %s: %d quads emitted, %d vertices, %d triangles",
            self.mesh_name, stats["emitted_quads"],
            stats["vertex_count"], stats["triangle_count"],
        )
        return self

    def _require_mesh(self) -> MeshData:
        if self._mesh is None:
            self.generate_mesh()
        return self._mesh

    def export_glb(
        self,
        output_path: Union[str, Path],
        embed_texture: bool = True,
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF
    ):
        """
        Export to glTF 2.0 binary format (.glb).

        Args:
            output_path: Output file path
            embed_texture: Embed the atlas as the base color texture
            coordinate_system: Target coordinate system
        """
        mesh = self._require_mesh()

        exporter = GLTFExporter(
            coordinate_system=coordinate_system,
            scale=1.0  # Mesh is already scaled by the builder
        )
        exporter.export(
            mesh,
            output_path,
            texture=self._texture.rgba if embed_texture else None,
            mesh_name=self.mesh_name
        )

    def export_gltf(self, output_path: Union[str, Path], **kwargs):
        """Alias for export_glb."""
        self.export_glb(output_path, **kwargs)

    def export_obj(
        self,
        output_path: Union[str, Path],
        write_material: bool = True,
        coordinate_system: CoordinateSystem = CoordinateSystem.GLTF
    ):
        """
        Export to Wavefront OBJ format.

        Args:
            output_path: Output file path
            write_material: Write an MTL and the atlas PNG beside the OBJ
            coordinate_system: Target coordinate system
        """
        mesh = self._require_mesh()

        exporter = OBJExporter(
            coordinate_system=coordinate_system,
            scale=1.0  # Mesh is already scaled by the builder
        )
        exporter.export(
            mesh,
            output_path,
            model_name=self.mesh_name,
            texture=self._texture.rgba if write_material else None
        )

    def export_all(
        self,
        base_path: Union[str, Path],
        formats: Optional[list] = None,
        **kwargs
    ):
        """
        Export to multiple formats at once.

        Args:
            base_path: Base file path (without extension)
            formats: List of formats to export (default: glb and obj)
            **kwargs: coordinate_system and texture toggles
        """
        base_path = Path(base_path)
        formats = formats or ["glb", "obj"]
        coordinate_system = kwargs.get("coordinate_system", CoordinateSystem.GLTF)
        with_texture = kwargs.get("texture", True)

        if "glb" in formats or "gltf" in formats:
            self.export_glb(
                base_path.with_suffix(".glb"),
                embed_texture=with_texture,
                coordinate_system=coordinate_system
            )

        if "obj" in formats:
            self.export_obj(
                base_path.with_suffix(".obj"),
                write_material=with_texture,
                coordinate_system=coordinate_system
            )

    @property
    def texture(self) -> Optional[AtlasTexture]:
        """Get the loaded atlas."""
        return self._texture

    @property
    def face_set(self) -> Optional[FaceSet]:
        """Get the encoded faces of the last generation pass."""
        return self._face_set

    @property
    def mesh(self) -> Optional[MeshData]:
        """Get the current mesh data."""
        return self._mesh

    @property
    def mesh_name(self) -> str:
        """Get the name used for the generated mesh."""
        name = self._texture.name if self._texture is not None else "atlas"
        return f"TexToMesh_{name}"

    @property
    def tile_resolution(self) -> int:
        """Get the texels per tile edge of the loaded atlas."""
        if self._texture is None:
            return 0
        return self._texture.tile_resolution

    @property
    def vertex_count(self) -> int:
        """Get the number of mesh vertices."""
        if self._mesh is None:
            return 0
        return len(self._mesh.vertices)

    @property
    def triangle_count(self) -> int:
        """Get the number of mesh triangles."""
        if self._mesh is None:
            return 0
        return len(self._mesh.indices) // 3

    def get_mesh_stats(self) -> dict:
        """
        Get statistics of the last generation pass.

        Returns:
            Dictionary with emission and optimization counters
        """
        if self._mesh is None:
            return {"error": "No mesh generated"}
        return dict(self._stats)

    def preview(self) -> dict:
        """
        Get a preview of the current state.

        Returns:
            Dictionary with current state information
        """
        info = {
            "atlas_loaded": self._texture is not None,
            "meshed": self._mesh is not None,
        }

        if self._texture:
            info["image_size"] = self._texture.size
            info["tile_resolution"] = self._texture.tile_resolution

        if self._mesh:
            info["vertex_count"] = len(self._mesh.vertices)
            info["triangle_count"] = len(self._mesh.indices) // 3

        return info


class BatchProcessor:
    """
    Batch processing for directories of atlases with consistent settings.
    """

    def __init__(self, **generator_kwargs):
        """
        Initialize the batch processor.

        Args:
            **generator_kwargs: Arguments passed to AtlasMeshGenerator
        """
        self.generator_kwargs = generator_kwargs

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Union[str, Path],
        pattern: str = "*.png",
        optimize: bool = True,
        **export_kwargs
    ) -> list:
        """
        Process all atlases in a directory.

        Args:
            input_dir: Input directory
            output_dir: Output directory
            pattern: Glob pattern for input files
            optimize: Run mesh cleanup on each atlas
            **export_kwargs: formats, coordinate_system, texture

        Returns:
            List of output base paths
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        formats = export_kwargs.pop("formats", None) or ["glb"]
        outputs = []

        for image_path in sorted(input_dir.glob(pattern)):
            generator = AtlasMeshGenerator(**self.generator_kwargs)
            generator.load_image(image_path)
            generator.generate_mesh(optimize=optimize)

            base_path = output_dir / image_path.stem
            generator.export_all(base_path, formats, **export_kwargs)

            outputs.append(str(base_path))

        return outputs
