"""Score command: rank variants in an annotated table by composite score."""

import logging
import sys
from pathlib import Path

import click

from pathogenicity_ranking.analysis import analyze_table, analyze_table_enhanced, summarize_scores
from pathogenicity_ranking.config.loader import load_config
from pathogenicity_ranking.persistence import ProvenanceTracker
from pathogenicity_ranking.scoring import (
    COMPOSITE_COLUMN,
    VARIANT_COLUMN,
    InputFileNotFoundError,
    MissingColumnsError,
    ScoreParseError,
    UnsupportedFormatError,
    iter_scored_variants,
    read_variant_table,
)

logger = logging.getLogger(__name__)


def echo_top_variants(scored, limit: int = 10) -> None:
    """Print the top-ranked variants with how many predictors scored each."""
    predictors = [c for c in scored.columns if c not in (VARIANT_COLUMN, COMPOSITE_COLUMN)]
    click.echo(click.style(f"Top {min(limit, scored.height)} variants:", bold=True))
    top = iter_scored_variants(scored.head(limit), predictors)
    for rank, variant in enumerate(top, start=1):
        score_value = variant.composite_score
        score_text = f"{score_value:.4f}" if score_value is not None else "NA"
        available = sum(v is not None for v in variant.normalized_scores.values())
        click.echo(
            f"  {rank:>3}. {variant.variant_id}  {score_text}  "
            f"({available}/{len(predictors)} predictors)"
        )


@click.command('score')
@click.argument('input_file', type=click.Path(path_type=Path))
@click.option(
    '--output-csv',
    type=click.Path(path_type=Path),
    default=None,
    help='Ranked CSV path (default: {output_dir}/{input stem}_results.csv)'
)
@click.option(
    '--pdf',
    'pdf_output',
    type=click.Path(path_type=Path),
    default=None,
    help='Ranking chart PDF path (default: {output_dir}/{input stem}_ranking.pdf)'
)
@click.option(
    '--png',
    'png_output',
    type=click.Path(path_type=Path),
    default=None,
    help='Ranking chart PNG path (default: {output_dir}/{input stem}_ranking.png)'
)
@click.option(
    '--enhanced',
    is_flag=True,
    help='Also render heatmap, scatter and distribution charts'
)
@click.option(
    '--prefix',
    type=click.Path(path_type=Path),
    default=None,
    help='Output prefix for --enhanced (default: {output_dir}/{input stem})'
)
@click.option('--no-heatmap', is_flag=True, help='Skip the heatmap (--enhanced)')
@click.option('--no-scatter', is_flag=True, help='Skip the scatter plot (--enhanced)')
@click.option('--no-distribution', is_flag=True, help='Skip the distribution plot (--enhanced)')
@click.option(
    '--scatter-predictor',
    default=None,
    help='Predictor alias for the scatter plot (default from config)'
)
@click.option(
    '--show',
    is_flag=True,
    help='Display charts when an interactive display is available'
)
@click.pass_context
def score(ctx, input_file, output_csv, pdf_output, png_output, enhanced, prefix,
          no_heatmap, no_scatter, no_distribution, scatter_predictor, show):
    """Compute composite pathogenicity scores for a variant table.

    INPUT_FILE is a .csv, .txt/.tsv or .xlsx/.xls table with the identifier
    and predictor columns named in the config. Each predictor is divided by
    its column maximum and the composite score is the mean of the available
    normalized scores.

    Examples:

        # Basic ranking (CSV + bar chart)
        pathogenicity-ranking score variants.xlsx

        # Explicit outputs
        pathogenicity-ranking score variants.csv --output-csv out/ranked.csv \\
            --pdf out/ranked.pdf --png out/ranked.png

        # All charts
        pathogenicity-ranking score variants.csv --enhanced --prefix out/study
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Composite Pathogenicity Scoring ===", bold=True))
    click.echo()

    try:
        click.echo("Loading configuration...")
        config = load_config(config_path)
        provenance = ProvenanceTracker.from_config(config)
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo()

        click.echo(f"Reading {input_file}...")
        try:
            df = read_variant_table(input_file)
        except (InputFileNotFoundError, UnsupportedFormatError) as e:
            click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
            sys.exit(1)
        click.echo(click.style(f"  Read {df.height} rows", fg='green'))
        click.echo()
        provenance.record_input(input_file)
        provenance.record_step('read_variant_table', {
            'input_file': str(input_file),
            'rows': df.height,
        })

        stem = input_file.stem
        base = prefix or (config.output_dir / stem)

        click.echo("Scoring variants...")
        try:
            if enhanced:
                result = analyze_table_enhanced(
                    df,
                    base,
                    create_heatmap=not no_heatmap,
                    create_scatter=not no_scatter,
                    create_distribution=not no_distribution,
                    show_plots=show,
                    scatter_predictor=scatter_predictor,
                    schema=config.scoring,
                    viz=config.visualization,
                )
                scored = result.scored
                csv_path = result.csv_path
                chart_files = [p for pair in result.plots.values() for p in pair]
            else:
                csv_path = output_csv or Path(f"{base}_results.csv")
                pdf_path = pdf_output or Path(f"{base}_ranking.pdf")
                png_path = png_output or Path(f"{base}_ranking.png")
                scored = analyze_table(
                    df,
                    csv_path,
                    pdf_path,
                    png_path,
                    show_plot=show,
                    schema=config.scoring,
                    viz=config.visualization,
                )
                chart_files = [pdf_path, png_path]
        except (MissingColumnsError, ScoreParseError) as e:
            click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
            sys.exit(1)

        summary = summarize_scores(scored)
        click.echo(click.style(
            f"  Scored {summary['scored_variants']}/{summary['total_variants']} variants "
            f"({df.height - scored.height} dropped for missing anchor scores)",
            fg='green'
        ))
        click.echo()
        provenance.record_step('score_variants', summary)

        provenance_path = provenance.save_sidecar(csv_path)

        click.echo(click.style("=== Summary ===", bold=True))
        if summary['scored_variants']:
            click.echo(f"Mean composite score:   {summary['mean_score']:.4f}")
            click.echo(f"Median composite score: {summary['median_score']:.4f}")
            click.echo(f"Top variant: {summary['top_variant']}")
        click.echo()
        echo_top_variants(scored)
        click.echo()
        click.echo(f"Results CSV: {csv_path}")
        for path in chart_files:
            click.echo(f"Chart: {path}")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()
        click.echo(click.style("Scoring complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Scoring command failed: {e}", fg='red'), err=True)
        logger.exception("Scoring command failed")
        sys.exit(1)
