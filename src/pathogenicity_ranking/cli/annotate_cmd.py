"""Annotation commands: run ANNOVAR, filter missense variants, score them.

Commands for:
- Annotating a VCF / VCF.gz / ANNOVAR input and keeping missense variants
- The full annotate -> filter -> score workflow
"""

import logging
import sys
from pathlib import Path

import click

from pathogenicity_ranking.annotation import (
    AnnotationError,
    AnnotationFailedError,
    annotate_and_analyze,
    annotate_with_annovar,
    filter_missense_file,
)
from pathogenicity_ranking.config.loader import load_config_with_overrides
from pathogenicity_ranking.persistence import ProvenanceTracker
from pathogenicity_ranking.cli.score_cmd import echo_top_variants

logger = logging.getLogger(__name__)


def load_annotator_config(config_path, genome_build, min_quality, timeout, keep_intermediate):
    """Load config with CLI overrides; exit if no annotator section exists."""
    overrides = {}
    if genome_build is not None:
        overrides['annotator.genome_build'] = genome_build
    if min_quality is not None:
        overrides['annotator.min_quality'] = min_quality
    if timeout is not None:
        overrides['annotator.timeout_seconds'] = timeout
    if keep_intermediate:
        overrides['annotator.keep_intermediate'] = True

    try:
        config = load_config_with_overrides(config_path, overrides)
    except KeyError:
        config = None
    if config is None or config.annotator is None:
        click.echo(click.style(
            "Error: no 'annotator' section in config (annovar_path, database_path)",
            fg='red'
        ), err=True)
        sys.exit(1)
    return config


def echo_annotation_error(e: AnnotationError) -> None:
    click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
    if isinstance(e, AnnotationFailedError) and e.run.stderr:
        click.echo("  Last lines of tool output:", err=True)
        for line in e.run.stderr.strip().splitlines()[-10:]:
            click.echo(f"    {line}", err=True)


annotator_options = [
    click.option('--prefix', type=click.Path(path_type=Path), default=None,
                 help='Output prefix (default: {output_dir}/{input stem})'),
    click.option('--build', 'genome_build', default=None,
                 help='Genome build override (e.g. hg19, hg38)'),
    click.option('--min-quality', type=float, default=None,
                 help='Drop missense variants with QUAL below this value'),
    click.option('--timeout', type=int, default=None,
                 help='Kill each ANNOVAR subprocess after this many seconds'),
    click.option('--keep-intermediate', is_flag=True,
                 help='Keep .avinput and decompressed VCF files'),
]


def with_annotator_options(func):
    for option in reversed(annotator_options):
        func = option(func)
    return func


def _input_stem(input_file: Path) -> str:
    name = input_file.name
    for suffix in ('.vcf.gz', '.vcf', '.avinput'):
        if name.lower().endswith(suffix):
            return name[: -len(suffix)]
    return input_file.stem


@click.command('annotate')
@click.argument('input_file', type=click.Path(path_type=Path))
@with_annotator_options
@click.pass_context
def annotate(ctx, input_file, prefix, genome_build, min_quality, timeout, keep_intermediate):
    """Annotate variants with ANNOVAR and keep missense variants.

    Writes {prefix}_annotated.{build}_multianno.csv and {prefix}_missense.csv.

    Examples:

        pathogenicity-ranking annotate sample.vcf.gz --prefix out/sample
    """
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== ANNOVAR Annotation ===", bold=True))
    click.echo()

    config = load_annotator_config(config_path, genome_build, min_quality, timeout, keep_intermediate)
    annotator = config.annotator
    prefix = prefix or (config.output_dir / _input_stem(input_file))

    try:
        click.echo("Step 1: Annotating variants with ANNOVAR...")
        try:
            result = annotate_with_annovar(
                input_file,
                annotator.annovar_path,
                annotator.database_path,
                prefix,
                genome_build=annotator.genome_build,
                protocol=annotator.protocol,
                operation=annotator.operation,
                nastring=annotator.nastring,
                timeout=annotator.timeout_seconds,
                keep_intermediate=annotator.keep_intermediate,
            )
        except (AnnotationError, FileNotFoundError) as e:
            if isinstance(e, AnnotationError):
                echo_annotation_error(e)
            else:
                click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
            sys.exit(1)
        click.echo(click.style(f"  Annotated table: {result.annotated_csv}", fg='green'))
        click.echo()

        click.echo("Step 2: Filtering for missense variants...")
        missense_file = filter_missense_file(
            result.annotated_csv,
            Path(f"{prefix}_missense.csv"),
            min_quality=annotator.min_quality,
            nastring=annotator.nastring,
        )
        if missense_file is None:
            click.echo(click.style(
                "  No missense variants found after filtering. Check your annotation results.",
                fg='yellow'
            ))
            return
        click.echo(click.style(f"  Missense variants saved to: {missense_file}", fg='green'))
        click.echo()
        click.echo(click.style("Annotation complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Annotate command failed: {e}", fg='red'), err=True)
        logger.exception("Annotate command failed")
        sys.exit(1)


@click.command('workflow')
@click.argument('input_file', type=click.Path(path_type=Path))
@with_annotator_options
@click.option('--enhanced', is_flag=True,
              help='Render heatmap, scatter and distribution charts too')
@click.option('--no-analysis', is_flag=True,
              help='Stop after annotation and missense filtering')
@click.option('--allow-few-predictors', is_flag=True,
              help='Score even when fewer than three predictors are available')
@click.pass_context
def workflow(ctx, input_file, prefix, genome_build, min_quality, timeout,
             keep_intermediate, enhanced, no_analysis, allow_few_predictors):
    """Annotate, filter missense variants and compute composite scores.

    Pipeline steps:
    1. ANNOVAR annotation (VCF conversion if needed)
    2. Missense filter
    3. Predictor availability check
    4. Composite scoring and charts

    Examples:

        pathogenicity-ranking workflow sample.vcf --prefix out/study --enhanced
    """
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== Annotate and Analyze Workflow ===", bold=True))
    click.echo(f"Input file: {input_file}")
    click.echo()

    config = load_annotator_config(config_path, genome_build, min_quality, timeout, keep_intermediate)
    prefix = prefix or (config.output_dir / _input_stem(input_file))
    provenance = ProvenanceTracker.from_config(config)

    try:
        try:
            result = annotate_and_analyze(
                input_file,
                config.annotator,
                prefix,
                schema=config.scoring,
                viz=config.visualization,
                run_analysis=not no_analysis,
                enhanced_analysis=enhanced,
                require_min_predictors=not allow_few_predictors,
            )
        except (AnnotationError, FileNotFoundError) as e:
            if isinstance(e, AnnotationError):
                echo_annotation_error(e)
            else:
                click.echo(click.style(f"  Error: {e}", fg='red'), err=True)
            sys.exit(1)

        provenance.record_input(input_file)
        provenance.record_step('annotate_with_annovar', {
            'annotated_csv': str(result.annotation.annotated_csv),
            'tool_runs': len(result.annotation.runs),
        })
        provenance.record_step('filter_missense_variants', {
            'missense_variants': result.missense_count,
        })

        click.echo(f"Annotated table:   {result.annotation.annotated_csv}")
        click.echo(f"Missense variants: {result.missense_count} ({result.missense_file})")
        click.echo(f"Available scores:  {', '.join(result.available_predictors) or 'none'}")
        for warning in result.warnings:
            click.echo(click.style(f"  Warning: {warning}", fg='yellow'))
        click.echo()

        if result.analysis_skipped:
            click.echo(click.style("Scoring skipped", fg='yellow'))
        else:
            provenance.record_step('score_variants', {
                'scored_variants': result.scored.height,
                'enhanced': enhanced,
            })
            echo_top_variants(result.scored)
            if result.analysis is not None:
                for name, (pdf_path, png_path) in result.analysis.plots.items():
                    click.echo(f"Chart ({name}): {pdf_path}, {png_path}")

        provenance_path = provenance.save_sidecar(Path(f"{prefix}_workflow.json"))
        click.echo()
        click.echo(f"Provenance: {provenance_path}")
        click.echo(click.style("=== Workflow Completed Successfully ===", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Workflow failed: {e}", fg='red'), err=True)
        logger.exception("Workflow failed")
        sys.exit(1)
