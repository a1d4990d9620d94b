"""Command-line entry point: ``pathogenicity-ranking``.

Global options (config file, verbosity) live on the group; each subcommand
reads the config path from the click context.
"""

import logging
from pathlib import Path

import click

from pathogenicity_ranking import __version__
from pathogenicity_ranking.cli.annotate_cmd import annotate, workflow
from pathogenicity_ranking.cli.score_cmd import score
from pathogenicity_ranking.cli.setup_cmd import check_setup
from pathogenicity_ranking.config.loader import load_config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


@click.group()
@click.version_option(__version__, prog_name='pathogenicity-ranking')
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default='config/default.yaml',
    show_default=True,
    help='Pipeline configuration YAML'
)
@click.option('--verbose', is_flag=True, help='Log at DEBUG level')
@click.pass_context
def cli(ctx, config, verbose):
    """Rank missense variants by a composite of normalized predictor scores.

    Each predictor (AlphaMissense, CADD, GERP++, phyloP, MPC, REVEL, MetaSVM,
    PolyPhen-2) is divided by its column maximum and the available scores are
    averaged per variant. Raw VCFs can be annotated with ANNOVAR first.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config, verbose=verbose)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Show the version and a summary of the active configuration."""
    config_path = ctx.obj['config_path']
    click.echo(f"pathogenicity-ranking {__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)

    click.echo(f"Config Hash: {config.config_hash()[:16]}...")
    click.echo(f"Output directory: {config.output_dir}")
    click.echo()

    scoring = config.scoring
    click.echo(click.style("Scoring schema:", bold=True))
    click.echo(f"  Identifier column: {scoring.id_column}")
    for alias, source in scoring.predictors.items():
        marker = " (anchor)" if alias in scoring.anchors else ""
        click.echo(f"  {alias:<14} <- {source}{marker}")
    click.echo(f"  Missing-value tokens: {scoring.missing_tokens}")
    click.echo()

    click.echo(click.style("ANNOVAR:", bold=True))
    annotator = config.annotator
    if annotator is None:
        click.echo("  Not configured")
        return
    timeout = f"{annotator.timeout_seconds}s" if annotator.timeout_seconds else "none"
    click.echo(f"  Installation: {annotator.annovar_path}")
    click.echo(f"  Databases:    {annotator.database_path}")
    click.echo(f"  Genome build: {annotator.genome_build}")
    click.echo(f"  Protocol:     {','.join(annotator.protocol)}")
    click.echo(f"  Operation:    {','.join(annotator.operation)}")
    click.echo(f"  Timeout:      {timeout}")


cli.add_command(score)
cli.add_command(annotate)
cli.add_command(workflow)
cli.add_command(check_setup)


if __name__ == '__main__':
    cli()
