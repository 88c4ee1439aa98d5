"""CLI entry point for api-doc-generator."""

import logging
import sys
from pathlib import Path

import click

from api_doc_generator import __version__
from api_doc_generator.config import FileLevel, load_settings
from api_doc_generator.errors import DocGenError
from api_doc_generator.log import GenerationLog, Level
from api_doc_generator.pipeline import generate as run_generation
from api_doc_generator.pipeline import prepare


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _echo_log(log: GenerationLog) -> None:
    """Show warnings and errors of the run on stderr."""
    for entry in log:
        if entry.level == Level.INFO:
            continue
        location = f" [{entry.file}]" if entry.file else ""
        click.echo(f"{entry.level.value.upper()}: {entry.message}{location}", err=True)


@click.group()
@click.version_option(__version__, prog_name="api-doc-gen")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """API Doc Generator: render API and configuration docs from declarations."""
    _configure_logging(verbose)


@main.command()
@click.argument("input_path", type=click.Path(path_type=Path))
@click.argument("output", type=click.Path(path_type=Path))
@click.option(
    "--level",
    "file_level",
    default=None,
    type=click.Choice([level.value for level in FileLevel]),
    help="Output file granularity (default: flat).",
)
@click.option("--all", "include_all", is_flag=True, help="Also document framework and test projects.")
@click.option(
    "--show-description", "show_description", is_flag=True, help="Show operation descriptions."
)
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Settings YAML file.")
@click.option(
    "--classification", default=None, type=click.Path(exists=True, path_type=Path), help="Classification YAML file."
)
def generate(
    input_path: Path,
    output: Path,
    file_level: str | None,
    include_all: bool,
    show_description: bool,
    config_path: Path | None,
    classification: Path | None,
):
    """Generate frontend and backend documentation into OUTPUT."""
    try:
        settings = load_settings(
            config_path,
            input=input_path,
            output=output,
            file_level=file_level,
            include_all=include_all or None,
            hide_description=False if show_description else None,
            classification=classification,
        )
        click.echo(f"Reading declarations from {settings.input}...")
        result = run_generation(settings)
    except DocGenError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _echo_log(result.log)
    click.echo(
        f"Documented {result.operations} operations, {result.options_classes} options classes "
        f"and {result.registrations} registration methods."
    )
    click.echo(f"Output written to {result.output}")


@main.command()
@click.argument("input_path", type=click.Path(path_type=Path))
@click.option("--all", "include_all", is_flag=True, help="Also include framework and test projects.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="Settings YAML file.")
def report(input_path: Path, include_all: bool, config_path: Path | None):
    """Print the generation report of INPUT_PATH without writing files."""
    log = GenerationLog()
    try:
        settings = load_settings(config_path, input=input_path, include_all=include_all or None)
        run = prepare(settings, log)
    except DocGenError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(run.report())
