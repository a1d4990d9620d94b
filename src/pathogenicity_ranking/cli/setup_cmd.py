"""Setup check command: verify ANNOVAR scripts and databases are installed."""

import logging
import sys
from pathlib import Path

import click

from pathogenicity_ranking.annotation import check_annovar_setup
from pathogenicity_ranking.config.loader import load_config

logger = logging.getLogger(__name__)


@click.command('check-setup')
@click.option(
    '--annovar-path',
    type=click.Path(path_type=Path),
    default=None,
    help='ANNOVAR installation directory (default from config)'
)
@click.option(
    '--database-path',
    type=click.Path(path_type=Path),
    default=None,
    help='ANNOVAR database directory (default from config)'
)
@click.option(
    '--build',
    'genome_build',
    default=None,
    help='Genome build of the databases (default from config, else hg38)'
)
@click.pass_context
def check_setup(ctx, annovar_path, database_path, genome_build):
    """Check ANNOVAR installation and database availability.

    Exits 0 when the setup is complete and 1 otherwise.
    """
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== Checking ANNOVAR Setup ===", bold=True))

    annotator = load_config(config_path).annotator
    if annotator is not None:
        annovar_path = annovar_path or annotator.annovar_path
        database_path = database_path or annotator.database_path
        genome_build = genome_build or annotator.genome_build
    genome_build = genome_build or "hg38"

    if annovar_path is None or database_path is None:
        click.echo(click.style(
            "Error: ANNOVAR paths not given and no 'annotator' section in config",
            fg='red'
        ), err=True)
        sys.exit(1)

    report = check_annovar_setup(annovar_path, database_path, genome_build)

    if not report.annovar_dir_found:
        click.echo(click.style(f"ANNOVAR directory not found: {annovar_path}", fg='red'))
    elif report.missing_scripts:
        click.echo(click.style(
            f"Missing ANNOVAR scripts: {', '.join(report.missing_scripts)}", fg='red'
        ))
    else:
        click.echo(click.style("ANNOVAR installation found", fg='green'))

    if not report.database_dir_found:
        click.echo(click.style(f"Database directory not found: {database_path}", fg='red'))
    if report.available_databases:
        click.echo(click.style(
            f"Available databases: {', '.join(report.available_databases)}", fg='green'
        ))
    if report.missing_databases:
        click.echo(click.style(
            f"Missing databases: {', '.join(report.missing_databases)}", fg='yellow'
        ))
        click.echo("Install missing databases using:")
        for command in report.install_commands:
            click.echo(f"  {command}")

    click.echo()
    if report.ready:
        click.echo(click.style("ANNOVAR setup is complete and ready for use!", fg='green', bold=True))
    else:
        click.echo(click.style(
            "ANNOVAR setup is incomplete. Please install missing components.", fg='red', bold=True
        ))
        sys.exit(1)
