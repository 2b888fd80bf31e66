"""
Command-Line Interface for Atlas Mesher

Usage:
    atlasmesh atlas.png -o output.glb
    atlasmesh atlas.png -o output --format glb obj --coordinate-system blender
    atlasmesh --batch atlases/ --output-dir meshes/

"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional
import time

from . import __version__
from .generator import AtlasMeshGenerator, BatchProcessor
from .coordinates import CoordinateSystem


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="atlasmesh",
        description="Atlas Mesher - Convert a 3x3 cube atlas texture into a 3D mesh",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  atlasmesh crate.png -o crate.glb
      Convert crate.png to glTF with the atlas embedded

  atlasmesh crate.png -o crate --format glb obj --coordinate-system blender
      Export both formats in Blender's Z-up space

  atlasmesh crate.png --no-optimize --stats
      Keep every emitted quad and print mesh statistics

  atlasmesh --batch atlases/ --output-dir meshes/ --format glb
      Batch process all PNGs in the atlases directory

Atlas layout (row 0 at the bottom of the image):
  row 1  | Top    | Front | Back  |
  row 0  | Bottom | Left  | Right |
        """
    )

    # Input
    parser.add_argument(
        "input",
        nargs="?",
        help="Input atlas image (square, side divisible by 3)"
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        help="Output file path (extension is replaced per --format)"
    )

    # Generation settings
    parser.add_argument(
        "--alpha-threshold",
        type=int,
        default=0,
        help="Texels with alpha above this value are solid (0-255, default: 0)"
    )

    parser.add_argument(
        "--scale",
        type=float,
        default=1.0,
        help="Output scale factor (default: 1.0)"
    )

    parser.add_argument(
        "--weld-decimals",
        type=int,
        default=6,
        help="Decimal places compared when welding vertices (default: 6)"
    )

    parser.add_argument(
        "--keep-face-normals",
        action="store_true",
        help="Keep the per-face extrusion axes instead of recomputed normals"
    )

    parser.add_argument(
        "--no-optimize",
        action="store_true",
        help="Skip vertex welding and floating quad removal (for debugging)"
    )

    # Output settings
    parser.add_argument(
        "-f", "--format",
        nargs="+",
        choices=["glb", "gltf", "obj"],
        default=["glb"],
        help="Output format(s) (default: glb)"
    )

    parser.add_argument(
        "--coordinate-system",
        choices=["gltf", "blender", "internal"],
        default="gltf",
        help="Target coordinate system (default: gltf)"
    )

    parser.add_argument(
        "--no-texture",
        action="store_true",
        help="Don't embed the atlas (glb) or write a material (obj)"
    )

    # Batch processing
    parser.add_argument(
        "--batch",
        help="Batch process directory of atlases"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for batch processing"
    )

    parser.add_argument(
        "--pattern",
        default="*.png",
        help="File pattern for batch processing (default: *.png)"
    )

    # Misc
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with statistics"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print mesh statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def get_coordinate_system(name: str) -> CoordinateSystem:
    """Convert string to CoordinateSystem enum."""
    return CoordinateSystem(name)


def make_generator(args) -> AtlasMeshGenerator:
    """Build a generator from parsed arguments."""
    return AtlasMeshGenerator(**generator_kwargs(args))


def generator_kwargs(args) -> dict:
    """Map CLI flags onto AtlasMeshGenerator keyword arguments."""
    return {
        "alpha_threshold": args.alpha_threshold,
        "scale": args.scale,
        "weld_decimals": args.weld_decimals,
        "recalculate_normals": not args.keep_face_normals,
    }


def print_stats(stats: dict):
    """Print the statistics of a generation pass."""
    print("\nMesh Statistics:")
    print(f"  Tile resolution: {stats['tile_resolution']}")
    print(f"  Emitted quads: {stats['emitted_quads']}")
    for face, count in stats["quads_per_face"].items():
        print(f"    {face}: {count}")
    if stats.get("optimized"):
        print(f"  Optimizer passes: {stats['passes']}")
        print(f"  Floating quads removed: {stats['removed_quads']}")
        print(f"  Vertices removed: {stats['removed_vertices']}")
    print(f"  Vertices: {stats['vertex_count']}")
    print(f"  Triangles: {stats['triangle_count']}")


def process_single(args) -> int:
    """Process a single atlas file."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    # Determine output path
    if args.output:
        output_base = Path(args.output)
    else:
        output_base = input_path.with_suffix("")

    start_time = time.time()

    try:
        generator = make_generator(args)

        if args.verbose:
            print(f"Loading: {input_path}")

        generator.setup(input_path)

        if args.verbose:
            print(f"Tile resolution: {generator.tile_resolution}")
            print("Generating mesh...")

        generator.generate_mesh(optimize=not args.no_optimize)

        if args.stats or args.verbose:
            print_stats(generator.get_mesh_stats())

        coord_sys = get_coordinate_system(args.coordinate_system)
        with_texture = not args.no_texture

        for fmt in args.format:
            if fmt in ("glb", "gltf"):
                output_path = output_base.with_suffix(".glb")
                generator.export_glb(
                    output_path,
                    embed_texture=with_texture,
                    coordinate_system=coord_sys
                )

            elif fmt == "obj":
                output_path = output_base.with_suffix(".obj")
                generator.export_obj(
                    output_path,
                    write_material=with_texture,
                    coordinate_system=coord_sys
                )

            if args.verbose:
                print(f"Exported: {output_path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_batch(args) -> int:
    """Process a directory of atlases."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else batch_dir / "output"

    start_time = time.time()

    try:
        processor = BatchProcessor(**generator_kwargs(args))

        outputs = processor.process_directory(
            batch_dir,
            output_dir,
            pattern=args.pattern,
            optimize=not args.no_optimize,
            formats=args.format,
            coordinate_system=get_coordinate_system(args.coordinate_system),
            texture=not args.no_texture
        )

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    if args.batch:
        return process_batch(args)
    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
