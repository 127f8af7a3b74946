"""CLI for metro-schematic."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from metro_schematic import __version__
from metro_schematic.errors import InputShapeError
from metro_schematic.layout import (
    PipelineConfig,
    quantize_features,
    run_pipeline,
    run_stage,
    stage_names,
)
from metro_schematic.layout.constants import ORTHO_TOLERANCE
from metro_schematic.layout.correction import diagonal_edges, station_clashes
from metro_schematic.layout.synthesis import find_illegal_intersections
from metro_schematic.parser import Network, load_network, save_network
from metro_schematic.render import render_svg
from metro_schematic.themes import THEMES


def _load_or_exit(path: Path) -> Network:
    """Load segment records, or quantize a raw feature collection."""
    try:
        return load_network(path, features=quantize_features)
    except InputShapeError as e:
        click.echo(f"Input error: {e}", err=True)
        raise SystemExit(1)


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """metro-schematic: Orthogonal metro-map schematics from transit networks."""


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output JSON file path. Defaults to <input>_schematic.json")
@click.option("--seed", type=int, default=None, help="Random seed for reproducible runs")
@click.option("--attempts", type=int, default=None,
              help="Synthesis attempts (default: 500)")
@click.option("--stop-after", type=click.Choice(stage_names()), default=None,
              help="Last stage to run")
@click.option("--no-flip", is_flag=True, help="Skip the flip optimization pass")
@click.option("--no-sequence", is_flag=True, help="Skip route sequencing and centre shrinking")
@click.option("--no-weights", is_flag=True, help="Skip weight generation and simplification")
@click.option("--scale-grid", is_flag=True, help="Widen grid cells exponentially by weight")
@click.option("--grouped", is_flag=True, help="Write route-grouped records")
@click.option("-v", "--verbose", count=True, help="Log stage summaries (-vv for debug)")
def run(
    input_file: Path,
    output: Path | None,
    seed: int | None,
    attempts: int | None,
    stop_after: str | None,
    no_flip: bool,
    no_sequence: bool,
    no_weights: bool,
    scale_grid: bool,
    grouped: bool,
    verbose: int,
) -> None:
    """Run the layout pipeline on a JSON network."""
    _setup_logging(verbose)
    network = _load_or_exit(input_file)
    try:
        config = PipelineConfig().with_overrides(
            seed=seed,
            max_attempts=attempts,
            flip=False if no_flip else None,
            sequence=False if no_sequence else None,
            weights=False if no_weights else None,
            scale_grid=True if scale_grid else None,
        )
    except ValueError as e:
        click.echo(f"Invalid option: {e}", err=True)
        raise SystemExit(1)

    try:
        result = run_pipeline(network, config, stop_after=stop_after)
    except InputShapeError as e:
        click.echo(f"Pipeline error: {e}", err=True)
        raise SystemExit(1)

    if output is None:
        output = input_file.with_name(f"{input_file.stem}_schematic.json")
    save_network(result, output, grouped=grouped)
    click.echo(f"Wrote {len(result.segments)} segments, "
               f"{len(result.real_stations())} stations -> {output}")


@cli.command()
@click.argument("name", type=click.Choice(stage_names()))
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output JSON file path. Defaults to <input>_<stage>.json")
@click.option("--seed", type=int, default=None, help="Random seed for reproducible runs")
@click.option("-v", "--verbose", count=True, help="Log stage summaries (-vv for debug)")
def stage(
    name: str,
    input_file: Path,
    output: Path | None,
    seed: int | None,
    verbose: int,
) -> None:
    """Run a single pipeline stage."""
    _setup_logging(verbose)
    network = _load_or_exit(input_file)
    try:
        result = run_stage(name, network, PipelineConfig(seed=seed))
    except InputShapeError as e:
        click.echo(f"Stage error: {e}", err=True)
        raise SystemExit(1)

    if output is None:
        output = input_file.with_name(f"{input_file.stem}_{name}.json")
    save_network(result, output)
    click.echo(f"{name}: {len(result.segments)} segments -> {output}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("--strict", is_flag=True,
              help="Also require axis-aligned edges and no illegal crossings")
def validate(input_file: Path, strict: bool) -> None:
    """Validate a network file."""
    network = _load_or_exit(input_file)

    errors = []
    clashes = station_clashes(network)
    if clashes:
        errors.append(f"{clashes} positions hold more than one station")

    if strict:
        diagonal = diagonal_edges(network, ORTHO_TOLERANCE)
        if diagonal:
            errors.append(f"{len(diagonal)} edges are not horizontal or vertical")
        crossings = find_illegal_intersections([seg.points for seg in network.segments])
        if crossings:
            errors.append(f"{len(crossings)} illegal crossings")

    if errors:
        click.echo("Validation errors:", err=True)
        for err in errors:
            click.echo(f"  - {err}", err=True)
        raise SystemExit(1)

    click.echo(f"Valid: {len(network.segments)} segments, "
               f"{len(network.routes())} routes, "
               f"{len(network.real_stations())} stations")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
def info(input_file: Path) -> None:
    """Show information about a network file."""
    network = _load_or_exit(input_file)

    stations = network.real_stations()
    transfers = sum(1 for _, node in stations.values() if node.is_transfer)
    crossings = find_illegal_intersections([seg.points for seg in network.segments])

    click.echo(f"Segments: {len(network.segments)}")
    click.echo(f"Stations: {len(stations)}")
    click.echo(f"Transfers: {transfers}")
    click.echo(f"Crossings: {len(crossings)}")
    click.echo(f"Routes: {len(network.routes())}")
    for route in network.routes():
        n_stations = sum(len(seg.station_indices()) for seg in route.segments)
        click.echo(f"  {route.name} ({route.color or 'no colour'}): "
                   f"{len(route.segments)} segments, {n_stations} station points")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output SVG file path. Defaults to <input>.svg")
@click.option("--theme", type=click.Choice(list(THEMES.keys())), default="dark",
              help="Visual theme (default: dark)")
@click.option("--scale", type=float, default=40.0,
              help="Pixels per grid unit (default: 40)")
@click.option("--no-legend", is_flag=True, help="Omit the route legend")
def render(
    input_file: Path,
    output: Path | None,
    theme: str,
    scale: float,
    no_legend: bool,
) -> None:
    """Render a network file to an SVG preview."""
    network = _load_or_exit(input_file)
    svg = render_svg(network, THEMES[theme], scale=scale, legend=not no_legend)

    if output is None:
        output = input_file.with_suffix(".svg")

    output.write_text(svg)
    click.echo(f"Rendered {len(network.segments)} segments, "
               f"{len(network.routes())} routes -> {output}")
