"""Tests for chart rendering."""

from unittest.mock import patch

import polars as pl
import pytest

from pathogenicity_ranking.config.schema import VisualizationConfig
from pathogenicity_ranking.output.visualizations import (
    chart_paths,
    generate_all_plots,
    plot_composite_ranking,
    plot_composite_scatter,
    plot_score_distribution,
    plot_score_heatmap,
)
from pathogenicity_ranking.scoring import COMPOSITE_COLUMN, VARIANT_COLUMN


@pytest.fixture
def scored_df():
    """Ranked table with a repeated identifier and some missing predictor scores."""
    n = 12
    return pl.DataFrame({
        VARIANT_COLUMN: [f"GENE{i}:p.X{i}Y" for i in range(n - 1)] + ["GENE0:p.X0Y"],
        "AlphaMissense": [1.0 - i * 0.05 for i in range(n)],
        "CADD": [0.9 - i * 0.04 if i % 3 else None for i in range(n)],
        "REVEL": [0.5 + (i % 4) * 0.1 for i in range(n)],
        COMPOSITE_COLUMN: [0.95 - i * 0.05 for i in range(n)],
    })


@pytest.fixture
def small_viz():
    return VisualizationConfig(dpi=72, width=4, height=3)


def assert_chart_files(paths):
    pdf_path, png_path = paths
    assert pdf_path.suffix == ".pdf"
    assert png_path.suffix == ".png"
    assert pdf_path.stat().st_size > 0
    assert png_path.stat().st_size > 0


def test_plot_composite_ranking_creates_files(scored_df, small_viz, tmp_path):
    pdf_path = tmp_path / "charts" / "ranking.pdf"
    png_path = tmp_path / "charts" / "ranking.png"

    result = plot_composite_ranking(scored_df, pdf_path, png_path, viz=small_viz)

    assert result == (pdf_path, png_path)
    assert_chart_files(result)


def test_plot_composite_ranking_skips_null_scores(small_viz, tmp_path):
    df = pl.DataFrame({
        VARIANT_COLUMN: ["V1", "V2"],
        COMPOSITE_COLUMN: [0.5, None],
    })

    result = plot_composite_ranking(df, tmp_path / "r.pdf", tmp_path / "r.png", viz=small_viz)

    assert_chart_files(result)


def test_plot_score_heatmap_creates_files(scored_df, small_viz, tmp_path):
    result = plot_score_heatmap(
        scored_df,
        tmp_path / "heatmap.pdf",
        tmp_path / "heatmap.png",
        predictors=["AlphaMissense", "CADD", "REVEL"],
        viz=small_viz,
    )

    assert_chart_files(result)


def test_plot_composite_scatter_creates_files(scored_df, small_viz, tmp_path):
    result = plot_composite_scatter(
        scored_df, "CADD", tmp_path / "scatter.pdf", tmp_path / "scatter.png", viz=small_viz
    )

    assert_chart_files(result)


def test_plot_composite_scatter_single_point(small_viz, tmp_path):
    df = pl.DataFrame({VARIANT_COLUMN: ["V1"], "CADD": [1.0], COMPOSITE_COLUMN: [1.0]})

    result = plot_composite_scatter(df, "CADD", tmp_path / "s.pdf", tmp_path / "s.png", viz=small_viz)

    assert_chart_files(result)


def test_plot_composite_scatter_unknown_predictor(scored_df, tmp_path):
    with pytest.raises(ValueError, match="MPC"):
        plot_composite_scatter(scored_df, "MPC", tmp_path / "s.pdf", tmp_path / "s.png")


def test_plot_score_distribution_creates_files(scored_df, small_viz, tmp_path):
    result = plot_score_distribution(
        scored_df, tmp_path / "dist.pdf", tmp_path / "dist.png", viz=small_viz
    )

    assert_chart_files(result)


def test_chart_paths(tmp_path):
    assert chart_paths(tmp_path / "study", "heatmap") == (
        tmp_path / "study_heatmap.pdf",
        tmp_path / "study_heatmap.png",
    )


def test_generate_all_plots_returns_every_chart(scored_df, small_viz, tmp_path):
    plots = generate_all_plots(
        scored_df, tmp_path / "study", scatter_predictor="REVEL", viz=small_viz
    )

    assert set(plots) == {"ranking", "heatmap", "scatter", "distribution"}
    for paths in plots.values():
        assert_chart_files(paths)


def test_generate_all_plots_continues_after_failure(scored_df, small_viz, tmp_path):
    """A failing chart is logged and skipped; the rest are still written."""
    plots = generate_all_plots(
        scored_df, tmp_path / "study", scatter_predictor="MPC", viz=small_viz
    )

    assert "scatter" not in plots
    assert {"ranking", "heatmap", "distribution"} <= set(plots)


def test_generate_all_plots_only_ranking(scored_df, small_viz, tmp_path):
    plots = generate_all_plots(
        scored_df,
        tmp_path / "study",
        create_heatmap=False,
        create_scatter=False,
        create_distribution=False,
        viz=small_viz,
    )

    assert list(plots) == ["ranking"]


def test_show_on_headless_backend_does_not_block(scored_df, small_viz, tmp_path):
    with patch("pathogenicity_ranking.output.visualizations._is_interactive_backend", return_value=False), \
         patch("pathogenicity_ranking.output.visualizations.plt.show") as mock_show:
        result = plot_composite_ranking(
            scored_df, tmp_path / "r.pdf", tmp_path / "r.png", viz=small_viz, show=True
        )

    mock_show.assert_not_called()
    assert_chart_files(result)


def test_show_on_interactive_backend_displays(scored_df, small_viz, tmp_path):
    with patch("pathogenicity_ranking.output.visualizations._is_interactive_backend", return_value=True), \
         patch("pathogenicity_ranking.output.visualizations.plt.show") as mock_show:
        plot_score_distribution(
            scored_df, tmp_path / "d.pdf", tmp_path / "d.png", viz=small_viz, show=True
        )

    mock_show.assert_called_once()
