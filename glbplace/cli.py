"""Command-line interface for glbplace.

Usage:
    glbplace info model.glb
    glbplace place model.glb -x 10 -y 5 -z 2 -o placed.glb
    glbplace flatten model.glb -o soup.npz
    glbplace matrix -x 10 -y 5 -z 2 --axis-swap
    glbplace init-config
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import GlbPlaceConfig
from .core.errors import GlbError
from .glb.codec import decode
from .pipeline import format_size, place_glb, prepare_mesh, read_glb_file
from .scene.transform import TransformMatrix, create_transform_matrix

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True),
    help="Path to glbplace config JSON",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """glbplace - place and flatten GLB files for a Z-up host."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = GlbPlaceConfig.from_file(config_path) if config_path else GlbPlaceConfig.default()
    setup_logging(verbose)


def _point_options(func):
    """Shared -x/-y/-z options for commands taking a placement point."""
    func = click.option("-z", type=float, default=0.0, show_default=True, help="Elevation (host Z)")(func)
    func = click.option("-y", type=float, default=0.0, show_default=True, help="Host Y coordinate")(func)
    func = click.option("-x", type=float, default=0.0, show_default=True, help="Host X coordinate")(func)
    return func


def _matrix_table(matrix: TransformMatrix, title: str) -> Table:
    table = Table(title=title)
    for col in range(4):
        table.add_column(f"col {col}", style="green", justify="right")
    m = matrix.to_matrix()
    for row in range(4):
        table.add_row(*(f"{m[row, col]:.4g}" for col in range(4)))
    return table


@main.command()
@click.argument("glb_path", type=click.Path(exists=True))
@click.pass_context
def info(ctx: click.Context, glb_path: str) -> None:
    """Show information about a GLB file.

    GLB_PATH: Path to .glb file
    """
    cfg: GlbPlaceConfig = ctx.obj["config"]
    path = Path(glb_path)

    console.print(f"\n[bold]GLB Info: {path.name}[/bold]\n")

    try:
        data = read_glb_file(path, cfg.limits)
        document = decode(data)
    except (GlbError, ValueError) as e:
        console.print(f"[red]Error loading: {e}[/red]")
        raise click.Abort()

    stats = document.stats()

    table = Table()
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("File", str(path))
    table.add_row("Size", format_size(len(data)))
    table.add_row("Scenes", f"{stats['scenes']:,}")
    table.add_row("Nodes", f"{stats['nodes']:,}")
    table.add_row("Meshes", f"{stats['meshes']:,}")
    table.add_row("Primitives", f"{stats['primitives']:,}")
    table.add_row("Accessors", f"{stats['accessors']:,}")
    table.add_row("Buffers", f"{stats['buffers']:,}")
    table.add_row("Binary data", format_size(stats["binary_bytes"]))
    console.print(table)

    if document.gltf.scenes:
        scenes = Table(title="Scenes")
        scenes.add_column("Index", style="cyan")
        scenes.add_column("Name", style="white")
        scenes.add_column("Roots", style="magenta")
        for index, scene in enumerate(document.gltf.scenes):
            scenes.add_row(str(index), scene.name or "", ", ".join(str(r) for r in scene.roots))
        console.print(scenes)


@main.command()
@click.argument("glb_path", type=click.Path(exists=True))
@_point_options
@click.option("--scale", "-s", type=float, default=None, help="Uniform scale (default from config)")
@click.option(
    "--output", "-o",
    type=click.Path(),
    required=True,
    help="Output path for the placed GLB",
)
@click.pass_context
def place(
    ctx: click.Context,
    glb_path: str,
    x: float,
    y: float,
    z: float,
    scale: float | None,
    output: str,
) -> None:
    """Wrap a GLB's scenes under a placement transform.

    GLB_PATH: Path to .glb file
    """
    cfg: GlbPlaceConfig = ctx.obj["config"]
    scale = cfg.placement.scale if scale is None else scale

    try:
        data = read_glb_file(glb_path, cfg.limits)
        placed = place_glb(data, x, y, z, scale)
    except (GlbError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort()

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(placed)

    console.print(
        f"[green]GLB placed at ({x:.1f}, {y:.1f}, {z:.1f}) "
        f"with scale {scale:g}: {out_path} ({format_size(len(placed))})[/green]"
    )


@main.command()
@click.argument("glb_path", type=click.Path(exists=True))
@click.option(
    "--output", "-o",
    type=click.Path(),
    required=True,
    help="Output path (.npz, or any mesh format trimesh exports: .stl, .ply, .obj)",
)
@click.option("--bake", is_flag=True, help="Bake the render transform into the vertices")
@_point_options
@click.option("--scale", "-s", type=float, default=None, help="Uniform scale (default from config)")
@click.option(
    "--axis-swap/--no-axis-swap",
    default=None,
    help="Rotate Y-up vertices to Z-up (default from config)",
)
@click.pass_context
def flatten(
    ctx: click.Context,
    glb_path: str,
    output: str,
    bake: bool,
    x: float,
    y: float,
    z: float,
    scale: float | None,
    axis_swap: bool | None,
) -> None:
    """Flatten all meshes of a GLB into triangle soup.

    GLB_PATH: Path to .glb file
    """
    cfg: GlbPlaceConfig = ctx.obj["config"]
    scale = cfg.mesh_render.scale if scale is None else scale
    axis_swap = cfg.mesh_render.axis_swap if axis_swap is None else axis_swap

    try:
        data = read_glb_file(glb_path, cfg.limits)
        geometry, transform = prepare_mesh(data, x, y, z, scale, axis_swap=axis_swap)
    except (GlbError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort()

    if bake:
        geometry = geometry.transformed(transform)

    if len(geometry) == 0 and Path(output).suffix.lower() != ".npz":
        console.print("[red]Error: no triangles to export[/red]")
        raise click.Abort()

    geometry.save(output)

    console.print(f"[green]Wrote {geometry!r} to {output}[/green]")
    if not bake:
        console.print(_matrix_table(transform, "Render transform"))


@main.command()
@_point_options
@click.option("--scale", "-s", type=float, default=None, help="Uniform scale (default from config)")
@click.option(
    "--axis-swap/--no-axis-swap",
    default=False,
    show_default=True,
    help="Include the +90 degree X rotation for index-free render data",
)
@click.pass_context
def matrix(
    ctx: click.Context,
    x: float,
    y: float,
    z: float,
    scale: float | None,
    axis_swap: bool,
) -> None:
    """Print the column-major placement matrix for a point."""
    cfg: GlbPlaceConfig = ctx.obj["config"]
    if scale is None:
        scale = cfg.mesh_render.scale if axis_swap else cfg.placement.scale

    transform = create_transform_matrix(x, y, z, scale, axis_swap=axis_swap)
    console.print(_matrix_table(transform, "Transform"))
    console.print(f"[dim]{transform.to_list()}[/dim]")


@main.command()
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="glbplace_config.json",
    help="Output path for config file",
)
def init_config(output: str) -> None:
    """Generate a default configuration file."""
    cfg = GlbPlaceConfig.default()
    cfg.to_file(output)
    console.print(f"[green]Created config file: {output}[/green]")


if __name__ == "__main__":
    main()
