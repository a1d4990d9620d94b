"""Chart rendering for scored variants.

Every chart is written twice: PDF (vector) and PNG (raster, 300 DPI by default).
"""

import logging
import os
import sys
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend when no display is available (headless/CLI use)
if sys.platform.startswith("linux") and not (
    os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY")
):
    matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

from pathogenicity_ranking.config.schema import VisualizationConfig  # noqa: E402
from pathogenicity_ranking.scoring.models import COMPOSITE_COLUMN, VARIANT_COLUMN  # noqa: E402

logger = logging.getLogger(__name__)

NON_INTERACTIVE_BACKENDS = {"agg", "pdf", "ps", "svg", "pgf", "cairo", "template"}

ChartPaths = tuple[Path, Path]


def _predictor_columns(df: pl.DataFrame) -> list[str]:
    """Numeric columns other than the composite score, in frame order."""
    return [
        c for c in df.columns
        if c not in (VARIANT_COLUMN, COMPOSITE_COLUMN) and df[c].dtype.is_numeric()
    ]


def _is_interactive_backend() -> bool:
    return matplotlib.get_backend().lower() not in NON_INTERACTIVE_BACKENDS


def _save_figure(
    fig,
    pdf_path: Path,
    png_path: Path,
    dpi: int,
    show: bool,
) -> ChartPaths:
    """Save fig as PDF and PNG, optionally show it, then close it."""
    pdf_path = Path(pdf_path)
    png_path = Path(png_path)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)
    png_path.parent.mkdir(parents=True, exist_ok=True)

    fig.savefig(pdf_path, bbox_inches="tight")
    fig.savefig(png_path, dpi=dpi, bbox_inches="tight")

    if show:
        if _is_interactive_backend():
            plt.show()
        else:
            logger.debug("Display requested but backend is non-interactive; skipping")

    # Close figure to prevent memory leak
    plt.close(fig)

    return pdf_path, png_path


def plot_composite_ranking(
    df: pl.DataFrame,
    pdf_path: Path,
    png_path: Path,
    viz: VisualizationConfig | None = None,
    show: bool = False,
) -> ChartPaths:
    """
    Create horizontal bar chart of composite scores, highest at the top.

    Args:
        df: Ranked DataFrame with Variant and CompositeScore columns
        pdf_path: Where the vector copy is written
        png_path: Where the raster copy is written
        viz: Figure settings (defaults to VisualizationConfig())
        show: Display the chart when an interactive backend is active

    Returns:
        (pdf_path, png_path)

    Notes:
        - Bars are positional, so repeated variant identifiers each get a bar
        - Variants without a composite score are not drawn
    """
    viz = viz or VisualizationConfig()
    ranked = df.filter(pl.col(COMPOSITE_COLUMN).is_not_null()).sort(
        COMPOSITE_COLUMN, descending=True, maintain_order=True
    )

    labels = ranked[VARIANT_COLUMN].fill_null("NA").to_list()
    scores = ranked[COMPOSITE_COLUMN].to_list()

    sns.set_theme(style="whitegrid", context="paper", font_scale=1.2)
    height = max(viz.height, 0.3 * len(labels) + 1.5)
    fig, ax = plt.subplots(figsize=(viz.width, height))

    # Reverse so the best-ranked variant sits at the top
    positions = list(range(len(labels)))
    ax.barh(positions, scores[::-1], color=viz.bar_color)
    ax.set_yticks(positions)
    ax.set_yticklabels(labels[::-1])

    ax.set_xlabel("Composite Score (Normalized)")
    ax.set_ylabel("Variant")
    ax.set_title("Composite Pathogenicity Ranking", fontweight="bold")
    ax.grid(axis="y", visible=False)

    result = _save_figure(fig, pdf_path, png_path, viz.dpi, show)
    logger.info(f"Saved composite ranking plot to {pdf_path} and {png_path}")
    return result


def plot_score_heatmap(
    df: pl.DataFrame,
    pdf_path: Path,
    png_path: Path,
    predictors: list[str] | None = None,
    viz: VisualizationConfig | None = None,
    show: bool = False,
) -> ChartPaths:
    """
    Create heatmap of normalized predictor scores (variants x predictors).

    Uses a diverging palette centered at 0.5 over the 0-1 range; missing
    scores are left blank.
    """
    viz = viz or VisualizationConfig()
    predictors = predictors or _predictor_columns(df)

    pdf = df.select([VARIANT_COLUMN, *predictors]).to_pandas().set_index(VARIANT_COLUMN)

    sns.set_theme(style="white", context="paper")
    height = max(viz.height, 0.3 * len(pdf) + 2)
    fig, ax = plt.subplots(figsize=(viz.width, height))

    sns.heatmap(
        pdf,
        cmap="RdBu_r",
        center=0.5,
        vmin=0.0,
        vmax=1.0,
        linewidths=0.5,
        cbar_kws={"label": "Normalized Score"},
        ax=ax,
    )

    plt.setp(ax.get_xticklabels(), rotation=45, ha="right")
    ax.set_xlabel("Predictor")
    ax.set_ylabel("Variant")
    ax.set_title("Normalized Predictor Scores", fontweight="bold")

    result = _save_figure(fig, pdf_path, png_path, viz.dpi, show)
    logger.info(f"Saved score heatmap to {pdf_path} and {png_path}")
    return result


def plot_composite_scatter(
    df: pl.DataFrame,
    predictor: str,
    pdf_path: Path,
    png_path: Path,
    viz: VisualizationConfig | None = None,
    show: bool = False,
) -> ChartPaths:
    """
    Create scatter plot of composite score against one predictor with a
    linear trend line.

    Raises:
        ValueError: If predictor is not a column of df
    """
    viz = viz or VisualizationConfig()
    if predictor not in df.columns:
        raise ValueError(
            f"Predictor '{predictor}' not found. Available: {', '.join(_predictor_columns(df))}"
        )

    pdf = df.select([predictor, COMPOSITE_COLUMN]).drop_nulls().to_pandas()

    sns.set_theme(style="whitegrid", context="paper", font_scale=1.2)
    fig, ax = plt.subplots(figsize=(viz.width, viz.height))

    sns.regplot(
        data=pdf,
        x=predictor,
        y=COMPOSITE_COLUMN,
        fit_reg=len(pdf) >= 2,
        scatter_kws={"alpha": 0.7, "color": viz.bar_color},
        line_kws={"color": "#D55E00"},
        ax=ax,
    )

    ax.set_xlabel(f"{predictor} Score (Normalized)")
    ax.set_ylabel("Composite Score")
    ax.set_title(f"Composite Score vs {predictor}", fontweight="bold")

    result = _save_figure(fig, pdf_path, png_path, viz.dpi, show)
    logger.info(f"Saved composite scatter plot to {pdf_path} and {png_path}")
    return result


def plot_score_distribution(
    df: pl.DataFrame,
    pdf_path: Path,
    png_path: Path,
    viz: VisualizationConfig | None = None,
    show: bool = False,
) -> ChartPaths:
    """
    Create histogram of composite scores with a dashed line at the median.
    """
    viz = viz or VisualizationConfig()
    scores = df[COMPOSITE_COLUMN].drop_nulls()
    median = scores.median()

    sns.set_theme(style="whitegrid", context="paper", font_scale=1.2)
    fig, ax = plt.subplots(figsize=(viz.width, viz.height))

    sns.histplot(
        x=scores.to_numpy(),
        bins=min(30, max(len(scores), 1)),
        color=viz.bar_color,
        alpha=0.8,
        ax=ax,
    )

    if median is not None:
        ax.axvline(median, color="#D55E00", linestyle="--", linewidth=1.5, label=f"Median: {median:.3f}")
        ax.legend()

    ax.set_xlabel("Composite Score")
    ax.set_ylabel("Variant Count")
    ax.set_title("Distribution of Composite Scores", fontweight="bold")

    result = _save_figure(fig, pdf_path, png_path, viz.dpi, show)
    logger.info(f"Saved score distribution plot to {pdf_path} and {png_path}")
    return result


def chart_paths(output_prefix: Path | str, name: str) -> ChartPaths:
    """Return (pdf, png) paths for a named chart under an output prefix."""
    return (
        Path(f"{output_prefix}_{name}.pdf"),
        Path(f"{output_prefix}_{name}.png"),
    )


def generate_all_plots(
    df: pl.DataFrame,
    output_prefix: Path | str,
    create_heatmap: bool = True,
    create_scatter: bool = True,
    create_distribution: bool = True,
    scatter_predictor: str | None = None,
    predictors: list[str] | None = None,
    viz: VisualizationConfig | None = None,
    show: bool = False,
) -> dict[str, ChartPaths]:
    """
    Generate the ranking chart plus any requested optional charts.

    Args:
        df: Ranked DataFrame from score_variants
        output_prefix: Charts are written as {prefix}_{chart}.pdf/.png
        create_heatmap: Render the predictor heatmap
        create_scatter: Render composite vs. scatter_predictor
        create_distribution: Render the composite score histogram
        scatter_predictor: Predictor alias for the scatter plot
            (defaults to viz.scatter_predictor)
        predictors: Predictor columns for the heatmap (defaults to all numeric
            columns except CompositeScore)
        viz: Figure settings
        show: Display each chart when an interactive backend is active

    Returns:
        Dictionary mapping chart name to (pdf, png) paths

    Notes:
        - Wraps each plot in try/except to continue on individual failures
    """
    viz = viz or VisualizationConfig()
    scatter_predictor = scatter_predictor or viz.scatter_predictor

    plots: dict[str, ChartPaths] = {}

    try:
        plots["ranking"] = plot_composite_ranking(
            df, *chart_paths(output_prefix, "ranking"), viz=viz, show=show
        )
    except Exception as e:
        logger.warning(f"Failed to create ranking plot: {e}")

    if create_heatmap:
        try:
            plots["heatmap"] = plot_score_heatmap(
                df, *chart_paths(output_prefix, "heatmap"),
                predictors=predictors, viz=viz, show=show,
            )
        except Exception as e:
            logger.warning(f"Failed to create heatmap: {e}")

    if create_scatter:
        try:
            plots["scatter"] = plot_composite_scatter(
                df, scatter_predictor, *chart_paths(output_prefix, "scatter"),
                viz=viz, show=show,
            )
        except Exception as e:
            logger.warning(f"Failed to create scatter plot: {e}")

    if create_distribution:
        try:
            plots["distribution"] = plot_score_distribution(
                df, *chart_paths(output_prefix, "distribution"), viz=viz, show=show
            )
        except Exception as e:
            logger.warning(f"Failed to create distribution plot: {e}")

    logger.info(f"Generated {len(plots)} plots with prefix {output_prefix}")
    return plots
