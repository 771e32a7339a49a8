"""
CLI entry point — Click-based command-line interface.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from heatlayer import __version__
from heatlayer.core.geometry import Sector

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="heatlayer")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose: bool):
    """HEATLAYER — intensity heat maps rendered as map tiles."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
@click.option(
    "--sector",
    "-s",
    nargs=4,
    type=float,
    required=True,
    help="MIN_LAT MAX_LAT MIN_LON MAX_LON of the tile.",
)
@click.option("--size", default=None, type=int, help="Tile width and height in pixels.")
@click.option("--output", "-o", default="tile.png", type=click.Path(), help="Output PNG.")
def render(config_path: str, sector: tuple[float, float, float, float], size: int | None, output: str):
    """Render a single sector to a PNG tile."""
    from heatlayer.config import build_layer

    layer = build_layer(config_path)
    image = layer.render(Sector(*sector), size, size)

    out_path = Path(output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    _save_png(out_path, image)

    lit = int((image[..., 3] > 0).sum())
    console.print(
        f"[bold green]Rendered[/bold green] {image.shape[1]}x{image.shape[0]} tile "
        f"({lit} non-transparent pixels) → {output}"
    )


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
@click.option("--level", "-l", default=0, type=int, help="Tile pyramid level.")
@click.option("--output", "-o", default="tiles", type=click.Path(), help="Output directory.")
@click.option("--workers", "-w", default=None, type=int, help="Render threads.")
def tiles(config_path: str, level: int, output: str, workers: int | None):
    """Render every tile of a level that contains points."""
    from heatlayer.config import build_layer

    layer = build_layer(config_path)
    todo = layer.tiles_with_data(level)
    console.print(f"[bold blue]Level {level}:[/bold blue] {len(todo)} tiles with data")

    images = layer.render_tiles(todo, max_workers=workers)
    out_dir = Path(output)
    for tile, image in images.items():
        if image is None:
            continue
        path = out_dir / str(tile.level) / str(tile.row) / f"{tile.column}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        _save_png(path, image)

    console.print(f"[bold green]Done.[/bold green] Tiles → {out_dir}")


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
def gradient(config_path: str):
    """Print the colour gradient built for the dataset."""
    from heatlayer.config import build_layer

    layer = build_layer(config_path)

    table = Table(title=f"Gradient ({layer.options.interval_type.value})")
    table.add_column("Position", justify="right")
    table.add_column("Colour")
    for position, color in layer.gradient.sorted_stops():
        table.add_row(f"{position:.3f}", color)
    console.print(table)


@cli.command()
@click.argument("config_path", type=click.Path(exists=True))
def info(config_path: str):
    """Summarise the dataset and its spatial index."""
    from heatlayer.config import build_layer

    layer = build_layer(config_path)
    index = layer.index

    table = Table(title=layer.display_name, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Points", str(len(index)))
    table.add_row("Index Nodes", str(index.node_count))
    table.add_row("Index Depth", str(index.depth))
    table.add_row("Leaf Capacity", str(index.max_objects))
    table.add_row("Gradient Stops", str(len(layer.gradient)))
    table.add_row("Tile Size", f"{layer.options.tile_width}x{layer.options.tile_height}")
    console.print(table)


def _save_png(path: Path, image) -> None:
    from matplotlib.image import imsave

    imsave(path, image)


def main():
    cli()


if __name__ == "__main__":
    main()
