"""Command Line Interface for Map Planner.

This module provides a simple CLI for inspecting maps, converting them
between the expanded, compact and share-string forms, and applying
editing operations.
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .core.topology import build_room_graph
from .engine.api import apply_operations
from .engine.validators import InvalidOperation
from .io import compact
from .io.errors import DecodeError
from .io.parser import load_map, save_map
from .io.share import decode_share_string, encode_share_string

app = typer.Typer(
    name="mapplanner",
    help="A CLI tool for tabletop map documents",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Map Planner command line."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _flag(value: bool) -> str:
    return "yes" if value else "no"


@app.command()
def info(
    map_path: Path = typer.Option(..., "--map", "-m", help="Path to map JSON file"),
):
    """Show information about a map."""
    try:
        document = load_map(str(map_path))
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Map Information: {document.map_name}[/bold]")
    console.print(f"Floors: {', '.join(str(f) for f in document.floors()) or '-'}")
    console.print()

    # Rooms info
    console.print(f"[cyan]Rooms: {len(document.rooms)}[/cyan]")
    table = Table()
    table.add_column("Room ID", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Shape")
    table.add_column("Bounds", justify="right")
    table.add_column("Markers", justify="center")
    table.add_column("Walls", justify="center")
    table.add_column("Floor", justify="center")

    for room in document.rooms:
        table.add_row(
            str(room.id),
            room.label,
            room.shape,
            f"{room.x},{room.y} {room.width}x{room.height}",
            str(len(room.markers)),
            str(len(room.walls)),
            str(room.floor),
        )

    console.print(table)

    # Hallways info
    console.print(f"\n[cyan]Hallways: {len(document.hallways)}[/cyan]")
    graph = build_room_graph(document)
    connections = {data["path_id"]: (a, b) for a, b, data in graph.edges(data=True)}
    hallway_table = Table()
    hallway_table.add_column("Hallway ID", style="cyan")
    hallway_table.add_column("Label", style="green")
    hallway_table.add_column("Secret", justify="center")
    hallway_table.add_column("Nodes", justify="center")
    hallway_table.add_column("Connects", style="yellow")

    for hallway in document.hallways:
        rooms = connections.get(hallway.id)
        hallway_table.add_row(
            str(hallway.id),
            hallway.label,
            _flag(hallway.is_secret),
            str(len(hallway.nodes)),
            f"{rooms[0]}-{rooms[1]}" if rooms else "",
        )

    console.print(hallway_table)

    # Walls info
    walls = list(document.all_walls())
    console.print(f"\n[cyan]Walls: {len(walls)}[/cyan]")
    if walls:
        wall_table = Table()
        wall_table.add_column("Wall ID", style="cyan")
        wall_table.add_column("Room", style="green")
        wall_table.add_column("Dotted", justify="center")
        wall_table.add_column("Segments", justify="center")

        for wall in walls:
            wall_table.add_row(
                str(wall.id),
                "" if wall.parent_room_id is None else str(wall.parent_room_id),
                _flag(wall.is_dotted),
                str(len(wall.segments)),
            )

        console.print(wall_table)

    console.print(
        f"\n[cyan]Standalone markers: {len(document.standalone_markers)}, "
        f"standalone labels: {len(document.standalone_labels)}[/cyan]"
    )

    stale = document.stale_attachments()
    if stale:
        console.print(f"[yellow]{len(stale)} node(s) attached to rooms that no longer exist[/yellow]")


@app.command()
def share(
    map_path: Path = typer.Option(..., "--map", "-m", help="Path to map JSON file"),
):
    """Print the share string of a map."""
    try:
        document = load_map(str(map_path))
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    # Plain print so the string can be piped without markup or wrapping
    typer.echo(encode_share_string(document))


@app.command()
def unshare(
    output: Path = typer.Option(..., "--out", help="Path to output map JSON file"),
    share_string: str = typer.Option(None, "--string", "-s", help="Share string"),
    input_path: Path = typer.Option(None, "--input", "-i", help="File holding a share string"),
):
    """Decode a share string and save it as a map JSON file."""
    if (share_string is None) == (input_path is None):
        console.print("[red]Error: give exactly one of --string or --input[/red]")
        raise typer.Exit(1)

    try:
        if input_path is not None:
            share_string = input_path.read_text(encoding="utf-8")
        document = decode_share_string(share_string)
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except DecodeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    save_map(document, str(output))
    console.print(f"[green]✓[/green] Map '{document.map_name}' saved to {output}")


@app.command(name="compact")
def compact_command(
    map_path: Path = typer.Option(..., "--map", "-m", help="Path to map JSON file"),
    output: Path = typer.Option(..., "--out", help="Path to output compact JSON file"),
):
    """Write the compact form of a map."""
    try:
        document = load_map(str(map_path))
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(compact.dumps(compact.encode(document)), encoding="utf-8")
    console.print(f"[green]✓[/green] Compact map saved to {output}")


@app.command()
def apply(
    map_path: Path = typer.Option(..., "--map", "-m", help="Path to map JSON file"),
    operation: Path = typer.Option(..., "--op", help="Path to operation JSON file"),
    output: Path = typer.Option(..., "--out", help="Path to output map JSON file"),
):
    """Apply an operation (or a list of operations) to a map and save the result."""
    try:
        document = load_map(str(map_path))
        console.print(f"[green]✓[/green] Loaded map from {map_path}")

        with open(operation, encoding="utf-8") as f:
            operation_data = json.load(f)
    except FileNotFoundError as e:
        console.print(f"[red]Error: File not found - {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    operations = operation_data if isinstance(operation_data, list) else [operation_data]

    try:
        results = apply_operations(document, operations)
    except (InvalidOperation, ValueError) as e:
        console.print(f"[red]✗[/red] Operation failed: {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Applied {len(results)} operation(s)")
    save_map(document, str(output))
    console.print(f"[green]✓[/green] Result saved to {output}")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
