"""End-to-end scoring runs: load a table, score it, write the CSV and charts."""

from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
import structlog

from pathogenicity_ranking.config.schema import ScoringSchema, VisualizationConfig
from pathogenicity_ranking.output.visualizations import (
    ChartPaths,
    generate_all_plots,
    plot_composite_ranking,
)
from pathogenicity_ranking.output.writers import write_scored_variants
from pathogenicity_ranking.scoring.load import read_variant_table
from pathogenicity_ranking.scoring.models import COMPOSITE_COLUMN, VARIANT_COLUMN
from pathogenicity_ranking.scoring.transform import score_variants

logger = structlog.get_logger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of an enhanced analysis run.

    Attributes:
        scored: Ranked DataFrame
        csv_path: Written results CSV
        plots: Chart name -> (pdf, png) paths
        summary: Summary statistics of the composite scores
    """
    scored: pl.DataFrame
    csv_path: Path
    plots: dict[str, ChartPaths] = field(default_factory=dict)
    summary: dict = field(default_factory=dict)


def summarize_scores(df: pl.DataFrame) -> dict:
    """Count, mean/median/min/max composite score and the top-ranked variant."""
    scores = df[COMPOSITE_COLUMN].drop_nulls()
    if len(scores) == 0:
        return {
            "total_variants": df.height,
            "scored_variants": 0,
            "mean_score": None,
            "median_score": None,
            "max_score": None,
            "min_score": None,
            "top_variant": None,
        }

    return {
        "total_variants": df.height,
        "scored_variants": len(scores),
        "mean_score": float(scores.mean()),
        "median_score": float(scores.median()),
        "max_score": float(scores.max()),
        "min_score": float(scores.min()),
        "top_variant": df[VARIANT_COLUMN][0],
    }


def analyze_table(
    df: pl.DataFrame,
    output_csv: Path | str,
    pdf_output: Path | str,
    png_output: Path | str,
    show_plot: bool = False,
    schema: ScoringSchema | None = None,
    viz: VisualizationConfig | None = None,
) -> pl.DataFrame:
    """Score an in-memory variant table, write the ranked CSV and bar chart."""
    scored = score_variants(df, schema)

    write_scored_variants(scored, output_csv)
    plot_composite_ranking(scored, Path(pdf_output), Path(png_output), viz=viz, show=show_plot)

    return scored


def analyze_table_enhanced(
    df: pl.DataFrame,
    output_prefix: Path | str,
    create_heatmap: bool = True,
    create_scatter: bool = True,
    create_distribution: bool = True,
    show_plots: bool = False,
    scatter_predictor: str | None = None,
    schema: ScoringSchema | None = None,
    viz: VisualizationConfig | None = None,
) -> AnalysisResult:
    """Score an in-memory variant table and render ranking plus optional charts.

    Outputs are named from output_prefix: {prefix}_results.csv and
    {prefix}_{ranking,heatmap,scatter,distribution}.{pdf,png}.
    """
    schema = schema or ScoringSchema()
    scored = score_variants(df, schema)

    csv_path = Path(f"{output_prefix}_results.csv")
    write_scored_variants(scored, csv_path)

    plots = generate_all_plots(
        scored,
        output_prefix,
        create_heatmap=create_heatmap,
        create_scatter=create_scatter,
        create_distribution=create_distribution,
        scatter_predictor=scatter_predictor,
        predictors=schema.aliases,
        viz=viz,
        show=show_plots,
    )

    summary = summarize_scores(scored)
    logger.info("enhanced_analysis_complete", csv_path=str(csv_path), plots=list(plots), **summary)

    return AnalysisResult(scored=scored, csv_path=csv_path, plots=plots, summary=summary)


def run_pathogenicity_analysis(
    input_file: Path | str,
    output_csv: Path | str,
    pdf_output: Path | str,
    png_output: Path | str,
    show_plot: bool = False,
    schema: ScoringSchema | None = None,
    viz: VisualizationConfig | None = None,
) -> pl.DataFrame:
    """Score a variant table file and write the ranked CSV and bar chart.

    Args:
        input_file: .csv, .txt/.tsv or .xlsx/.xls variant table
        output_csv: Destination of the ranked CSV
        pdf_output: Destination of the vector bar chart
        png_output: Destination of the raster bar chart
        show_plot: Display the chart when an interactive backend is active
        schema: Column schema (defaults to ScoringSchema())
        viz: Figure settings (defaults to VisualizationConfig())

    Returns:
        Ranked DataFrame with normalized predictor scores and CompositeScore

    Raises:
        InputFileNotFoundError, UnsupportedFormatError, MissingColumnsError,
        ScoreParseError
    """
    df = read_variant_table(input_file)
    scored = analyze_table(
        df, output_csv, pdf_output, png_output,
        show_plot=show_plot, schema=schema, viz=viz,
    )

    logger.info(
        "run_pathogenicity_analysis_complete",
        input_file=str(input_file),
        output_csv=str(output_csv),
        variants=scored.height,
    )

    return scored


def run_enhanced_analysis(
    input_file: Path | str,
    output_prefix: Path | str,
    create_heatmap: bool = True,
    create_scatter: bool = True,
    create_distribution: bool = True,
    show_plots: bool = False,
    scatter_predictor: str | None = None,
    schema: ScoringSchema | None = None,
    viz: VisualizationConfig | None = None,
) -> AnalysisResult:
    """Score a variant table file and render the ranking plus optional charts."""
    df = read_variant_table(input_file)
    return analyze_table_enhanced(
        df,
        output_prefix,
        create_heatmap=create_heatmap,
        create_scatter=create_scatter,
        create_distribution=create_distribution,
        show_plots=show_plots,
        scatter_predictor=scatter_predictor,
        schema=schema,
        viz=viz,
    )
