"""Annotate raw variant calls and score the missense variants in one run."""

from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
import structlog

from pathogenicity_ranking.analysis import (
    AnalysisResult,
    analyze_table,
    analyze_table_enhanced,
)
from pathogenicity_ranking.annotation.annovar import annotate_with_annovar
from pathogenicity_ranking.annotation.filter import (
    filter_missense_variants,
    read_annotated_table,
)
from pathogenicity_ranking.annotation.models import AnnotationResult, NoMissenseVariantsError
from pathogenicity_ranking.config.schema import (
    AnnotatorConfig,
    ScoringSchema,
    VisualizationConfig,
)
from pathogenicity_ranking.output.writers import write_variant_table
from pathogenicity_ranking.scoring.models import MissingColumnsError

logger = structlog.get_logger()

MIN_PREDICTORS_FOR_ANALYSIS = 3


@dataclass
class WorkflowResult:
    """Files and results produced by annotate_and_analyze.

    Attributes:
        annotation: ANNOVAR run result
        missense_file: CSV of filtered missense variants
        missense_count: Number of missense variants kept
        available_predictors: Predictor source columns present after annotation
        missing_predictors: Predictor source columns absent after annotation
        analysis_skipped: Scoring was skipped (not requested or too few predictors)
        scored: Ranked DataFrame (None if skipped)
        analysis: Enhanced analysis result (None unless enhanced analysis ran)
        warnings: Human-readable data-quality warnings
    """
    annotation: AnnotationResult
    missense_file: Path
    missense_count: int
    available_predictors: list[str] = field(default_factory=list)
    missing_predictors: list[str] = field(default_factory=list)
    analysis_skipped: bool = False
    scored: pl.DataFrame | None = None
    analysis: AnalysisResult | None = None
    warnings: list[str] = field(default_factory=list)


def check_predictor_availability(df: pl.DataFrame, schema: ScoringSchema) -> tuple[list[str], list[str]]:
    """Split the schema's predictor source columns into (available, missing)."""
    sources = list(schema.predictors.values())
    available = [c for c in sources if c in df.columns]
    missing = [c for c in sources if c not in df.columns]
    return available, missing


def fill_missing_predictors(df: pl.DataFrame, missing: list[str]) -> pl.DataFrame:
    """Add absent predictor columns as all-NULL text columns."""
    if not missing:
        return df
    return df.with_columns([pl.lit(None, dtype=pl.String).alias(c) for c in missing])


def annotate_and_analyze(
    input_file: Path | str,
    annotator: AnnotatorConfig,
    output_prefix: Path | str,
    schema: ScoringSchema | None = None,
    viz: VisualizationConfig | None = None,
    run_analysis: bool = True,
    enhanced_analysis: bool = False,
    require_min_predictors: bool = True,
    show_plots: bool = False,
) -> WorkflowResult:
    """Annotate with ANNOVAR, keep missense variants and score them.

    Steps:
    1. annotate_with_annovar -> {prefix}_annovar_annotated.<build>_multianno.csv
    2. filter_missense_variants -> {prefix}_missense.csv
    3. Check which predictor columns the annotation provided
    4. Basic ({prefix}_pathogenicity_results.csv + ranking chart) or enhanced
       ({prefix}_pathogenicity_*) analysis

    With fewer than three predictors available the scoring step is skipped
    when require_min_predictors is set; otherwise it proceeds with a warning
    and the absent predictors scored as missing.

    Args:
        input_file: Raw variant calls (.vcf, .vcf.gz or ANNOVAR input)
        annotator: ANNOVAR settings
        output_prefix: Prefix (may include directories) for all outputs
        schema: Column schema (defaults to ScoringSchema())
        viz: Figure settings
        run_analysis: Score the missense variants
        enhanced_analysis: Render heatmap, scatter and distribution charts too
        require_min_predictors: Skip scoring with fewer than three predictors
        show_plots: Display charts when an interactive backend is active

    Returns:
        WorkflowResult

    Raises:
        AnnotationError subclasses: Fatal annotation failures
        NoMissenseVariantsError: No missense variants survived filtering
        MissingColumnsError: schema.id_column is not a column of the
            annotated table (checked before scoring, after the missense
            CSV is written)
    """
    schema = schema or ScoringSchema()
    warnings_list: list[str] = []

    logger.info("workflow_start", input_file=str(input_file), output_prefix=str(output_prefix))

    # Step 1: annotation
    annotation = annotate_with_annovar(
        input_file,
        annotator.annovar_path,
        annotator.database_path,
        f"{output_prefix}_annovar",
        genome_build=annotator.genome_build,
        protocol=annotator.protocol,
        operation=annotator.operation,
        nastring=annotator.nastring,
        timeout=annotator.timeout_seconds,
        keep_intermediate=annotator.keep_intermediate,
    )

    # Step 2: missense filter
    annotated = read_annotated_table(annotation.annotated_csv, nastring=annotator.nastring)
    missense = filter_missense_variants(annotated, min_quality=annotator.min_quality)
    if missense is None:
        raise NoMissenseVariantsError(
            f"No missense variants found in {annotation.annotated_csv}. Workflow cannot continue."
        )

    missense_file = write_variant_table(missense, Path(f"{output_prefix}_missense.csv"))

    result = WorkflowResult(
        annotation=annotation,
        missense_file=missense_file,
        missense_count=missense.height,
        warnings=warnings_list,
    )

    # Step 3: identifier and predictor availability
    if run_analysis and schema.id_column not in missense.columns:
        logger.error("id_column_missing", id_column=schema.id_column, missense_file=str(missense_file))
        raise MissingColumnsError([schema.id_column])

    available, missing = check_predictor_availability(missense, schema)
    result.available_predictors = available
    result.missing_predictors = missing
    logger.info("predictor_availability", available=available, missing=missing)

    if missing:
        warnings_list.append(
            f"Missing pathogenicity scores: {', '.join(missing)}. "
            "Ensure the ANNOVAR databases include dbnsfp42c (CADD, GERP++, phyloP, "
            "MPC, REVEL, MetaSVM, PolyPhen-2) and AlphaMissense."
        )

    if not run_analysis:
        result.analysis_skipped = True
        return result

    if len(available) < MIN_PREDICTORS_FOR_ANALYSIS:
        message = (
            f"Only {len(available)} pathogenicity scores available; at least "
            f"{MIN_PREDICTORS_FOR_ANALYSIS} are required for composite analysis."
        )
        warnings_list.append(message)
        logger.warning("insufficient_predictors", available=len(available))
        if require_min_predictors:
            result.analysis_skipped = True
            return result

    # Step 4: scoring
    to_score = fill_missing_predictors(missense, missing)
    analysis_prefix = f"{output_prefix}_pathogenicity"

    if enhanced_analysis:
        result.analysis = analyze_table_enhanced(
            to_score,
            analysis_prefix,
            show_plots=show_plots,
            schema=schema,
            viz=viz,
        )
        result.scored = result.analysis.scored
    else:
        result.scored = analyze_table(
            to_score,
            Path(f"{analysis_prefix}_results.csv"),
            Path(f"{analysis_prefix}_ranking.pdf"),
            Path(f"{analysis_prefix}_ranking.png"),
            show_plot=show_plots,
            schema=schema,
            viz=viz,
        )

    logger.info(
        "workflow_complete",
        missense_variants=result.missense_count,
        scored_variants=result.scored.height,
        warnings=len(warnings_list),
    )

    return result
