#!/usr/bin/env python3
"""
Atlas Mesher Web Interface

A simple Gradio-based web UI for turning a 3x3 cube atlas into a 3D mesh.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from atlas_mesher import AtlasMeshGenerator, CoordinateSystem
from atlas_mesher.samples import DEMO_STYLES, demo_atlas


def process_image(
    image,
    alpha_threshold: int,
    scale: float,
    optimize: bool,
    embed_texture: bool,
    export_glb: bool,
    export_obj: bool
):
    """
    Process an uploaded atlas and generate the mesh.

    Returns preview path, stats text, and file paths for downloads.
    """
    if image is None:
        return None, "Please upload an atlas first.", None, None

    # Convert to numpy array with RGBA
    if isinstance(image, np.ndarray):
        if image.ndim == 2:
            # Grayscale - convert to RGBA
            rgba = np.stack([image, image, image, np.full_like(image, 255)], axis=-1)
        elif image.shape[2] == 3:
            # RGB - add alpha
            rgba = np.concatenate([image, np.full((*image.shape[:2], 1), 255, dtype=np.uint8)], axis=-1)
        else:
            rgba = image.astype(np.uint8)
    else:
        return None, "Invalid image format.", None, None

    generator = AtlasMeshGenerator(
        alpha_threshold=int(alpha_threshold),
        scale=scale
    )

    try:
        generator.setup(rgba)
        generator.generate_mesh(optimize=optimize)
    except ValueError as e:
        return None, f"**Error:** {e}", None, None

    stats = generator.get_mesh_stats()
    if stats["vertex_count"] == 0:
        return None, "No solid texels: every face or its opposite face is transparent.", None, None

    faces_row = " / ".join(f"{name} {count}" for name, count in stats["quads_per_face"].items())
    removed = stats.get("removed_quads", 0)

    stats_text = f"""## Mesh Complete!

| Metric | Value |
|--------|-------|
| Atlas Size | {rgba.shape[1]} x {rgba.shape[0]} pixels |
| Tile Resolution | {stats['tile_resolution']} |
| Emitted Quads | {stats['emitted_quads']:,} |
| Floating Quads Removed | {removed:,} |
| Vertices | {stats['vertex_count']:,} |
| Triangles | {stats['triangle_count']:,} |

**Quads per face:** {faces_row}

**Settings:** Alpha>{int(alpha_threshold)}, Scale={scale}, Optimize={optimize}
"""

    # Create temp directory for exports
    export_dir = tempfile.mkdtemp(prefix="atlasmesh_")

    # Always create GLB for preview
    preview_path = str(Path(export_dir) / "preview.glb")
    generator.export_glb(preview_path, embed_texture=embed_texture)

    glb_path = None
    obj_path = None

    if export_glb:
        glb_path = str(Path(export_dir) / "model.glb")
        generator.export_glb(glb_path, embed_texture=embed_texture)

    if export_obj:
        obj_path = str(Path(export_dir) / "model.obj")
        generator.export_obj(
            obj_path,
            write_material=embed_texture,
            coordinate_system=CoordinateSystem.GLTF
        )

    return preview_path, stats_text, glb_path, obj_path


def create_demo_image(style: str):
    """Create a demo atlas for testing."""
    if not style:
        return None
    return demo_atlas(style, tile_resolution=16)


# Build the Gradio interface
with gr.Blocks(title="Atlas Mesher") as app:

    gr.Markdown("""
    # Atlas Mesher
    ### Convert a 3x3 Cube Atlas into a 3D Mesh

    Upload a PNG atlas or try a demo, adjust the settings, and download your 3D model!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Atlas")

            image_input = gr.Image(
                label="Upload Atlas (square, side divisible by 3)",
                type="numpy",
                image_mode="RGBA"
            )

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=DEMO_STYLES,
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            gr.Markdown("### Settings")

            alpha_threshold = gr.Slider(
                minimum=0,
                maximum=254,
                value=0,
                step=1,
                label="Alpha Threshold"
            )

            scale = gr.Slider(
                minimum=0.1,
                maximum=10.0,
                value=1.0,
                step=0.1,
                label="Scale"
            )

            optimize = gr.Checkbox(value=True, label="Weld and remove floating quads")
            embed_texture = gr.Checkbox(value=True, label="Embed atlas texture")

            gr.Markdown("### Export Formats")
            with gr.Row():
                export_glb = gr.Checkbox(value=True, label="GLB")
                export_obj = gr.Checkbox(value=False, label="OBJ")

            generate_btn = gr.Button("Generate Mesh", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### 3D Preview")
            gr.Markdown("*Click and drag to rotate, scroll to zoom*")

            model_preview = gr.Model3D(
                label="3D Model Preview",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Upload an atlas and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            glb_output = gr.File(label="GLB (Godot/Unity/Blender)")
            obj_output = gr.File(label="OBJ (Universal)")

            gr.Markdown("""
            ---
            **Atlas layout** (bottom row first):
            - Row 0: Bottom, Left, Right
            - Row 1: Top, Front, Back
            - Row 2: unused

            A texel is solid only when the mirrored
            texel on the opposite face is painted too.
            """)

    # Wire up events
    demo_btn.click(
        fn=create_demo_image,
        inputs=[demo_dropdown],
        outputs=[image_input]
    )

    generate_btn.click(
        fn=process_image,
        inputs=[
            image_input,
            alpha_threshold,
            scale,
            optimize,
            embed_texture,
            export_glb,
            export_obj
        ],
        outputs=[model_preview, stats_output, glb_output, obj_output]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Atlas Mesher Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
