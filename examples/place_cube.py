#!/usr/bin/env python3
"""Example: Place and flatten a simple cube.

This script demonstrates the basic workflow for glbplace:
1. Create a GLB in memory
2. Wrap it under a placement transform (temporary render path)
3. Flatten it into triangle soup (direct render path)

Run with: python examples/place_cube.py
"""

import trimesh

from glbplace import GlbPlaceConfig, apply_placement, decode, encode, flatten
from glbplace.pipeline import element_transform, prepare_mesh


def create_test_cube_glb(size: float = 2.0) -> bytes:
    """Create a cube and export it as GLB bytes."""
    mesh = trimesh.creation.box(extents=[size, size, size])
    return mesh.export(file_type="glb")


def main():
    config = GlbPlaceConfig.default()
    x, y, z = 120.0, -45.0, 12.5

    print("glbplace - Cube Example")
    print("=" * 40)

    print("\n1. Creating test cube...")
    data = create_test_cube_glb()
    document = decode(data)
    print(f"   {document!r}")

    print(f"\n2. Placing at ({x}, {y}, {z}) with scale {config.placement.scale}...")
    placed = apply_placement(document, x, y, z, config.placement.scale)
    wrapper = placed.node(placed.gltf.scenes[0].roots[0])
    print(f"   Wrapper translation (glTF Y-up): {wrapper.translation}")
    print(f"   Encoded size: {len(encode(placed)):,} bytes")

    print("\n3. Element transform (permanent element path)...")
    print(f"   {element_transform(x, y, z, config.placement.scale).to_list()}")

    print("\n4. Flattening to triangle soup...")
    geometry = flatten(document)
    print(f"   {geometry!r}")

    geometry, transform = prepare_mesh(
        data, x, y, z,
        scale=config.mesh_render.scale,
        axis_swap=config.mesh_render.axis_swap,
    )
    baked = geometry.transformed(transform)
    min_pt, max_pt = baked.bounds
    print(f"   Placed bounds: {min_pt.round(2)} to {max_pt.round(2)}")

    print("\n" + "=" * 40)
    print("Done!")


if __name__ == "__main__":
    main()
