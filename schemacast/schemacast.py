import json
import logging
import sys
from pathlib import Path

import click

from . import __version__
from .cli_utils import configure_logging, reconstruct_command_line
from .errors import SchemaCompileError
from .pipeline import CodeGeneratorConfig, generate_all

logger = logging.getLogger(__name__)


def load_config(path: str | None) -> CodeGeneratorConfig:
    if path is None:
        return CodeGeneratorConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--config") from e
    if not isinstance(data, dict):
        raise click.BadParameter("must contain a JSON object", param_hint="--config")
    return CodeGeneratorConfig.from_dict(data)


@click.group()
@click.version_option(version=__version__, prog_name="schemacast")
def cli():
    """Compile JSON Schema documents into validating Python modules."""


@cli.command()
@click.argument("schema_dir", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option("--output-dir", "-o", default="generated", type=click.Path(file_okay=False), help="Directory the generated package is written to (cleared first)")
@click.option("--prefix", "-p", default="generated", type=str, help="Dotted namespace of the generated modules")
@click.option("--dry-run", is_flag=True, default=False, help="Run every step except clearing and writing")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug output")
def generate(schema_dir, output_dir, prefix, dry_run, config, verbose):
    """Generate a module for every generatable schema under SCHEMA_DIR."""
    configure_logging(verbose)

    generator_config = load_config(config)
    logger.debug("Configuration: %s", generator_config.to_dict())
    if generator_config.add_generation_comment:
        generator_config.generation_command = reconstruct_command_line(generate)

    try:
        report = generate_all(Path(schema_dir), Path(output_dir), prefix, dry_run, generator_config)
    except SchemaCompileError as e:
        raise click.ClickException(str(e)) from e

    for line in report.summary_lines():
        click.echo(line)

    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
