"""Command-line interface for batch diesel evaluation and event normalization."""

import json
import logging
from pathlib import Path

import click

from src.config.schema import load_config
from src.pipeline.batch import BatchRunner, read_records


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _runner(config, output_dir) -> BatchRunner:
    try:
        efficiency, normalizer = load_config(Path(config) if config else None)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--config")
    return BatchRunner(Path(output_dir), efficiency, normalizer)


@click.group()
def main():
    """Fleet diesel efficiency and driver-behaviour event tools."""


@main.command()
@click.option("--input", "input_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="CSV or JSON fuel records.")
@click.option("--config", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON file overriding norms and fleet sets.")
@click.option("--output-dir", default="output/", help="Output directory.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def diesel(input_path, config, output_dir, verbose):
    """Evaluate fuel records against fleet norms."""
    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    runner = _runner(config, output_dir)
    rows = read_records(Path(input_path))
    logger.info(f"Evaluating {len(rows)} fuel records from {input_path}...")
    manifest = runner.run_diesel(rows)
    click.echo(json.dumps(manifest, indent=2))


@main.command()
@click.option("--input", "input_path", required=True,
              type=click.Path(exists=True, dir_okay=False), help="CSV, JSON or JSONL raw events.")
@click.option("--config", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON file overriding event tables.")
@click.option("--output-dir", default="output/", help="Output directory.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def events(input_path, config, output_dir, verbose):
    """Normalize raw telematics events."""
    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    runner = _runner(config, output_dir)
    rows = read_records(Path(input_path))
    logger.info(f"Normalizing {len(rows)} raw events from {input_path}...")
    manifest = runner.run_events(rows)
    click.echo(json.dumps(manifest, indent=2))


if __name__ == "__main__":
    main()
