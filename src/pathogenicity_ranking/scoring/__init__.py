"""Variant table loading and composite pathogenicity scoring."""

from pathogenicity_ranking.scoring.models import (
    COMPOSITE_COLUMN,
    VARIANT_COLUMN,
    InputFileNotFoundError,
    MissingColumnsError,
    ScoredVariant,
    ScoreParseError,
    UnsupportedFormatError,
)
from pathogenicity_ranking.scoring.load import (
    detect_format,
    read_variant_table,
)
from pathogenicity_ranking.scoring.transform import (
    compute_composite_scores,
    filter_anchor_rows,
    find_missing_columns,
    iter_scored_variants,
    normalize_predictors,
    rank_variants,
    score_variants,
    select_predictor_columns,
)

__all__ = [
    "COMPOSITE_COLUMN",
    "VARIANT_COLUMN",
    "InputFileNotFoundError",
    "MissingColumnsError",
    "ScoredVariant",
    "ScoreParseError",
    "UnsupportedFormatError",
    "detect_format",
    "read_variant_table",
    "compute_composite_scores",
    "filter_anchor_rows",
    "find_missing_columns",
    "iter_scored_variants",
    "normalize_predictors",
    "rank_variants",
    "score_variants",
    "select_predictor_columns",
]
