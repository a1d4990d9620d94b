"""Output generation: scored CSV writing and chart rendering."""

from pathogenicity_ranking.output.visualizations import (
    chart_paths,
    generate_all_plots,
    plot_composite_ranking,
    plot_composite_scatter,
    plot_score_distribution,
    plot_score_heatmap,
)
from pathogenicity_ranking.output.writers import (
    read_scored_variants,
    write_scored_variants,
    write_variant_table,
)

__all__ = [
    "write_scored_variants",
    "read_scored_variants",
    "write_variant_table",
    "chart_paths",
    "generate_all_plots",
    "plot_composite_ranking",
    "plot_score_heatmap",
    "plot_composite_scatter",
    "plot_score_distribution",
]
