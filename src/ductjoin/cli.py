"""
Command line shell for duct connector realignment.

This module provides a command-line interface around a network YAML file:
- show: List elements, connectors and links
- disconnect: Move a duct connector along its centerline
- reconnect: Drag the neighbouring fitting along the duct instead
- export: Write element bodies to a STEP file

Usage:
    ductjoin show network.yaml
    ductjoin disconnect network.yaml -e D1 --from 0.1 0 0.2 --to 5 5 3 -o moved.yaml
    ductjoin reconnect network.yaml            # picks are prompted
    ductjoin export network.yaml network.step
"""

import logging
from pathlib import Path

import click
import yaml

from . import __version__
from .errors import ElementNotFound, InvalidGeometry, RealignError
from .geometry import distance, is_almost_equal
from .logging_config import setup_logging
from .network_config import load_document, save_document
from .picking import PickedPoint, PromptPicker, ScriptedPicker, is_duct
from .realign import Result, run_command
from .shapes import export_step

POINT = click.Tuple([float, float, float])


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug).")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Also write logs to this file.")
def cli(verbose: int, log_file: Path | None):
    """ductjoin - move duct connections along the duct centerline."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    setup_logging(level, str(log_file) if log_file else None)


@cli.command()
@click.argument("network", type=click.Path(exists=True, path_type=Path))
def show(network: Path):
    """List the elements, connectors and links of a network file."""
    document = _load(network)

    click.echo(f"\nNetwork: {document.name} ({len(document)} elements, units: {document.settings.units})")
    click.echo("-" * 50)
    for element in document:
        click.echo(f"{element.id} [{element.category}]")
        for con in element.connectors.values():
            click.echo(f"  {con.name:<10} {_format_tuple(con.origin)}  {con.connector_type}")
            for ref in sorted(con.refs):
                try:
                    other = document.get_connector(ref)
                except ElementNotFound:
                    click.echo(f"    -> {ref} (missing)")
                    continue
                gap = distance(con.origin, other.origin)
                state = "joined" if is_almost_equal(con.origin, other.origin, document.settings.tolerance) else f"gap {gap:.4g}"
                click.echo(f"    -> {ref} ({state})")


def _realign_options(f):
    f = click.option(
        "--output", "-o",
        type=click.Path(path_type=Path),
        help="Output YAML file. Defaults to overwriting NETWORK.",
    )(f)
    f = click.option("--to", "to_point", type=POINT, default=None, help="Target point X Y Z.")(f)
    f = click.option("--from", "from_point", type=POINT, default=None, help="Point near the connection X Y Z.")(f)
    f = click.option("--element", "-e", default=None, help="Duct element id.")(f)
    f = click.argument("network", type=click.Path(exists=True, path_type=Path))(f)
    return f


@cli.command()
@_realign_options
def disconnect(network, element, from_point, to_point, output):
    """
    Move a duct connector to a target point on the duct centerline.

    The neighbouring fitting is not moved, so the connection is broken.
    Without --from/--to the two points are prompted for.
    """
    _run("disconnect", network, element, from_point, to_point, output)


@cli.command()
@_realign_options
def reconnect(network, element, from_point, to_point, output):
    """
    Move the fitting connected to a duct connector along the duct.

    The duct connector stays where it is; the neighbouring fitting is
    translated by the dragged distance.
    Without --from/--to the two points are prompted for.
    """
    _run("reconnect", network, element, from_point, to_point, output)


@cli.command()
@click.argument("network", type=click.Path(exists=True, path_type=Path))
@click.argument("step_file", type=click.Path(path_type=Path))
def export(network: Path, step_file: Path):
    """Export element bodies of a network to a STEP file."""
    document = _load(network)
    try:
        count = export_step(document, step_file)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Exported {count} bodies to: {step_file}")


def _run(operation, network, element, from_point, to_point, output):
    document = _load(network)

    if from_point is not None and to_point is not None:
        if element is None:
            raise click.UsageError("--element is required with --from/--to")
        if element not in document or not is_duct(document.get_element(element)):
            raise click.UsageError(f"'{element}' is not a duct in {network}")
        try:
            picks = [PickedPoint(element, from_point), PickedPoint(element, to_point)]
        except InvalidGeometry as e:
            raise click.BadParameter(str(e), param_hint="'--from' / '--to'") from e
        picker = ScriptedPicker(picks)
    elif from_point is None and to_point is None:
        picker = PromptPicker(default_element=element)
    else:
        raise click.UsageError("--from and --to must be given together")

    result = run_command(operation, document, picker)

    if result.status is Result.CANCELLED:
        click.echo("Cancelled. Nothing was changed.")
        return
    if result.status is Result.FAILED:
        raise click.ClickException(result.message)

    r = result.realignment
    click.echo(f"Connector: {r.element_id}.{r.connector} at {_format_tuple(r.original_origin)}")
    click.echo(f"Projected: {_format_tuple(r.projected)}")
    if r.operation == "disconnect":
        click.echo(f"Moved connector to {_format_tuple(r.projected)}")
    else:
        click.echo(f"Moved {r.moved_element_id} (via {r.neighbor}) by {_format_tuple(r.translation)}")

    output = output or network
    save_document(document, output)
    click.echo(f"Saved: {output}")


def _load(network: Path):
    """Load a network file, reporting a broken file as a CLI error."""
    try:
        return load_document(network)
    except (RealignError, ValueError, TypeError, yaml.YAMLError) as e:
        raise click.ClickException(f"{network}: {e}") from e


def _format_tuple(t: tuple) -> str:
    """Format a 3-tuple for display."""
    return f"({t[0]:.4f}, {t[1]:.4f}, {t[2]:.4f})"


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
