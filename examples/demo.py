#!/usr/bin/env python3
"""
Atlas Mesher Demo Script

This script demonstrates the full atlas meshing pipeline by:
1. Creating synthetic cube atlases (no external images needed)
2. Running generation with and without mesh cleanup
3. Exporting to all supported formats
4. Printing statistics and comparisons

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from PIL import Image

from atlas_mesher import AtlasMeshGenerator, CoordinateSystem, FaceSet, QuadMeshBuilder
from atlas_mesher.ingestion import AtlasTexture
from atlas_mesher.samples import DEMO_STYLES, atlas_from_masks, demo_atlas


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Atlas Mesher - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    total_start = time.time()

    for style in DEMO_STYLES:
        rgba = demo_atlas(style, tile_resolution=16)
        name = style.lower()

        print(f"\n--- Processing: {name} ---")
        print(f"Atlas size: {rgba.shape[1]}x{rgba.shape[0]} pixels")

        # Save the atlas so it can be fed to the CLI afterwards
        Image.fromarray(rgba).save(output_dir / f"{name}_atlas.png")

        atlas_start = time.time()
        generator = AtlasMeshGenerator()
        generator.load_array(rgba, name=name)

        print("\nRaw vs optimized:")
        for optimize in (False, True):
            gen_start = time.time()
            generator.generate_mesh(optimize=optimize)
            gen_time = time.time() - gen_start

            label = "optimized" if optimize else "raw"
            print(f"  {label}:")
            print(f"    Generation: {gen_time*1000:.1f}ms")
            print(f"    Vertices: {generator.vertex_count}")
            print(f"    Triangles: {generator.triangle_count}")

        stats = generator.get_mesh_stats()
        print(f"\n  Cleanup:")
        print(f"    Optimizer passes: {stats['passes']}")
        print(f"    Floating quads removed: {stats['removed_quads']}")

        print(f"\n  Exporting...")
        base_path = output_dir / name
        export_start = time.time()

        generator.export_glb(base_path.with_suffix(".glb"))
        print(f"    Saved: {base_path.with_suffix('.glb')}")

        generator.export_obj(
            base_path.with_suffix(".obj"),
            coordinate_system=CoordinateSystem.BLENDER
        )
        print(f"    Saved: {base_path.with_suffix('.obj')}")

        export_time = time.time() - export_start
        atlas_time = time.time() - atlas_start

        print(f"    Export time: {export_time*1000:.1f}ms")
        print(f"    Total time: {atlas_time*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_builder():
    """Benchmark encoding and quad emission on opaque atlases."""
    print("\n--- Builder Benchmark ---\n")

    for tile_resolution in [8, 16, 32, 64]:
        atlas = AtlasTexture(atlas_from_masks(tile_resolution, checker=False))

        start = time.time()
        face_set = FaceSet(atlas).encode()
        encode_time = time.time() - start

        builder = QuadMeshBuilder()
        start = time.time()
        mesh = builder.build(face_set)
        build_time = time.time() - start

        print(f"Tile resolution: {tile_resolution}")
        print(f"  Encode: {encode_time*1000:.1f}ms")
        print(f"  Build:  {build_time*1000:.1f}ms, {builder.total_quads} quads, {len(mesh.vertices)} verts")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_builder()
