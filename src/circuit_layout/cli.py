"""CLI for circuit-layout."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from circuit_layout import __version__
from circuit_layout.layout import compute_layout, validate_topology
from circuit_layout.layout.graph_theory import build_graph, connected_components, has_cycle
from circuit_layout.layout.patterns import find_patterns
from circuit_layout.parser import parse_topology
from circuit_layout.parser.model import Topology
from circuit_layout.render import render_svg
from circuit_layout.themes import THEMES


def _load(input_file: Path) -> Topology:
    try:
        return parse_topology(input_file.read_text())
    except ValueError as e:
        raise click.ClickException(f"Parse error: {e}") from e


def _layout(topology: Topology, **options):
    try:
        return compute_layout(topology, **options)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def _layout_options(f):
    f = click.option("--no-patterns", is_flag=True, default=False,
                     help="Disable bridge/pi/T/series pattern recognition")(f)
    f = click.option("--planarity", is_flag=True, default=False,
                     help="Refine placement by simulated annealing to reduce crossings")(f)
    f = click.option("--iterations", type=int, default=300,
                     help="Annealing iterations (default: 300)")(f)
    f = click.option("--seed", type=int, default=0,
                     help="Random seed for annealing (default: 0)")(f)
    f = click.option("--grid-size", type=float, default=50.0,
                     help="Grid unit for node snapping (default: 50)")(f)
    f = click.option("--optimize", is_flag=True, default=False,
                     help="Try several seeds and grid sizes and keep the best placement")(f)
    return f


def _options_from(no_patterns, planarity, iterations, seed, grid_size, optimize) -> dict:
    return {
        "use_pattern_recognition": not no_patterns,
        "prioritize_planarity": planarity,
        "annealing_iterations": iterations,
        "seed": seed,
        "grid_size": grid_size,
        "use_optimization": optimize,
    }


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log layout stages to stderr")
def cli(verbose: bool) -> None:
    """circuit-layout: Textbook-style layouts for circuit topology graphs."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output JSON file path. Defaults to stdout")
@_layout_options
def layout(
    input_file: Path,
    output: Path | None,
    no_patterns: bool,
    planarity: bool,
    iterations: int,
    seed: int,
    grid_size: float,
    optimize: bool,
) -> None:
    """Compute a layout and write it as JSON."""
    topology = _load(input_file)
    graph = _layout(
        topology,
        **_options_from(no_patterns, planarity, iterations, seed, grid_size, optimize),
    )
    text = json.dumps(graph.to_dict(), indent=2)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text + "\n")
        click.echo(f"Laid out {len(graph.nodes)} nodes, {len(graph.edges)} edges -> {output}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None,
              help="Output SVG file path. Defaults to <input>.svg")
@click.option("--theme", type=click.Choice(list(THEMES.keys())), default="dark",
              help="Visual theme (default: dark)")
@click.option("--title", type=str, default=None, help="Title drawn above the circuit")
@click.option("--width", type=int, default=None, help="SVG width in pixels")
@click.option("--height", type=int, default=None, help="SVG height in pixels")
@_layout_options
def render(
    input_file: Path,
    output: Path | None,
    theme: str,
    title: str | None,
    width: int | None,
    height: int | None,
    no_patterns: bool,
    planarity: bool,
    iterations: int,
    seed: int,
    grid_size: float,
    optimize: bool,
) -> None:
    """Render a topology to SVG."""
    topology = _load(input_file)
    graph = _layout(
        topology,
        **_options_from(no_patterns, planarity, iterations, seed, grid_size, optimize),
    )

    kinds = {b.id: b.kind for b in topology.branches}
    svg = render_svg(graph, THEMES[theme], kinds=kinds, title=title,
                     width=width, height=height)

    if output is None:
        output = input_file.with_suffix(".svg")

    output.write_text(svg)
    click.echo(f"Rendered {len(graph.nodes)} nodes, "
               f"{len(graph.edges)} edges -> {output}")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
def validate(input_file: Path) -> None:
    """Validate a topology document."""
    topology = _load(input_file)
    try:
        validate_topology(topology)
    except ValueError as e:
        click.echo(f"Validation error: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Valid: {len(topology.nodes)} nodes, "
               f"{len(topology.branches)} branches")


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, path_type=Path))
def info(input_file: Path) -> None:
    """Show structural information about a topology."""
    topology = _load(input_file)
    graph = build_graph(topology.nodes, topology.branches)

    click.echo(f"Nodes: {len(topology.nodes)}")
    click.echo(f"Branches: {len(topology.branches)}")
    click.echo(f"Components: {len(connected_components(graph))}")
    click.echo(f"Cyclic: {'yes' if has_cycle(graph) else 'no'}")

    kinds: dict[str, int] = {}
    for branch in topology.branches:
        kinds[branch.kind] = kinds.get(branch.kind, 0) + 1
    for kind, count in kinds.items():
        click.echo(f"  {kind}: {count}")

    known = topology.node_ids()
    if all(b.from_node_id in known and b.to_node_id in known for b in topology.branches):
        matches = find_patterns(topology.nodes, topology.branches)
        click.echo(f"Patterns: {len(matches)}")
        for match in matches:
            click.echo(f"  {match.pattern.type.value}: "
                       f"{', '.join(match.pattern.nodes)}")
