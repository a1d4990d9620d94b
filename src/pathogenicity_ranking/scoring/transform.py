"""Column selection, anchor filtering, normalization and composite scoring."""

from typing import Iterator

import polars as pl
import structlog

from pathogenicity_ranking.config.schema import ScoringSchema
from pathogenicity_ranking.scoring.models import (
    COMPOSITE_COLUMN,
    VARIANT_COLUMN,
    MissingColumnsError,
    ScoredVariant,
    ScoreParseError,
)

logger = structlog.get_logger(__name__)


def find_missing_columns(df: pl.DataFrame, schema: ScoringSchema) -> list[str]:
    """Return required source columns absent from df, in schema order."""
    present = set(df.columns)
    return [col for col in schema.source_columns if col not in present]


def select_predictor_columns(df: pl.DataFrame, schema: ScoringSchema) -> pl.DataFrame:
    """Extract the identifier and predictor columns and rename them to aliases.

    Source columns are matched by exact, case-sensitive name. Predictor values
    are coerced to Float64; cells equal to a configured missing-value token
    (after trimming whitespace) become NULL. Text that parses to NaN or
    infinity is rejected like any other non-numeric value.

    Args:
        df: Raw variant table (String columns, as produced by read_variant_table)
        schema: ScoringSchema naming the identifier and predictor columns

    Returns:
        DataFrame with columns Variant followed by the predictor aliases

    Raises:
        MissingColumnsError: If any required source column is absent
            (all absent columns are reported together)
        ScoreParseError: If a predictor cell is neither numeric nor a
            missing-value token, or parses to a non-finite float
    """
    missing = find_missing_columns(df, schema)
    if missing:
        raise MissingColumnsError(missing)

    selected = df.select(
        pl.col(schema.id_column).cast(pl.String).alias(VARIANT_COLUMN),
        *[pl.col(source).alias(alias) for alias, source in schema.predictors.items()],
    )

    tokens = schema.missing_tokens
    for alias, source in schema.predictors.items():
        text = pl.col(alias).cast(pl.String).str.strip_chars()
        try:
            selected = selected.with_columns(
                pl.when(text.is_in(tokens))
                .then(pl.lit(None, dtype=pl.String))
                .otherwise(text)
                .cast(pl.Float64)
                .alias(alias)
            )
        except (pl.exceptions.InvalidOperationError, pl.exceptions.ComputeError) as e:
            raise ScoreParseError(alias, source) from e
        # "nan" and "inf" parse as floats but are not scores
        if not selected[alias].drop_nulls().is_finite().all():
            raise ScoreParseError(alias, source)

    logger.info(
        "select_predictor_columns_complete",
        rows=selected.height,
        null_counts={alias: selected[alias].null_count() for alias in schema.aliases},
    )

    return selected


def filter_anchor_rows(df: pl.DataFrame, anchors: list[str]) -> pl.DataFrame:
    """Drop rows where any anchor predictor is NULL.

    Non-anchor predictors may be missing freely; they are simply left out of
    that row's mean.
    """
    if not anchors:
        return df

    filtered = df.filter(pl.all_horizontal([pl.col(a).is_not_null() for a in anchors]))

    logger.info(
        "filter_anchor_rows_complete",
        anchors=anchors,
        rows_before=df.height,
        rows_after=filtered.height,
        dropped=df.height - filtered.height,
    )

    return filtered


def normalize_predictors(df: pl.DataFrame, predictors: list[str]) -> pl.DataFrame:
    """Divide each predictor column by its own maximum.

    A column that is entirely NULL, or whose maximum is exactly 0, is left
    untouched. Maxima ignore NULLs and are taken over the rows of df only, so
    normalized values are not comparable across runs.

    Args:
        df: DataFrame with Float64 predictor columns
        predictors: Predictor column names to normalize

    Returns:
        DataFrame with predictor columns replaced by normalized values
    """
    exprs = []
    skipped = []

    for col in predictors:
        col_max = df[col].max()
        if col_max is None or col_max == 0:
            skipped.append(col)
            continue
        exprs.append((pl.col(col) / col_max).alias(col))

    if skipped:
        logger.info("normalize_predictors_skipped", columns=skipped)

    return df.with_columns(exprs) if exprs else df


def compute_composite_scores(df: pl.DataFrame, predictors: list[str]) -> pl.DataFrame:
    """Add CompositeScore as the row-wise mean of the available predictors.

    NULL predictors are excluded from both sum and count. A row with every
    predictor NULL receives a NULL composite score.
    """
    return df.with_columns(
        pl.mean_horizontal([pl.col(c) for c in predictors]).alias(COMPOSITE_COLUMN)
    )


def rank_variants(df: pl.DataFrame) -> pl.DataFrame:
    """Sort by CompositeScore descending; ties keep input order, NULLs last.

    A NaN composite is treated as NULL and sorts with them.
    """
    return df.with_columns(pl.col(COMPOSITE_COLUMN).fill_nan(None)).sort(
        COMPOSITE_COLUMN,
        descending=True,
        nulls_last=True,
        maintain_order=True,
    )


def score_variants(df: pl.DataFrame, schema: ScoringSchema | None = None) -> pl.DataFrame:
    """Run column selection, anchor filter, normalization, scoring and ranking.

    Pure: nothing is written to disk. Persist the returned frame with
    pathogenicity_ranking.output.write_scored_variants.

    Args:
        df: Raw variant table
        schema: Column schema (defaults to ScoringSchema())

    Returns:
        Ranked DataFrame with columns Variant, predictor aliases (normalized),
        CompositeScore
    """
    schema = schema or ScoringSchema()
    aliases = schema.aliases

    selected = select_predictor_columns(df, schema)
    filtered = filter_anchor_rows(selected, schema.anchors)
    normalized = normalize_predictors(filtered, aliases)
    scored = compute_composite_scores(normalized, aliases)
    ranked = rank_variants(scored)

    non_null = ranked[COMPOSITE_COLUMN].drop_nulls()
    logger.info(
        "score_variants_complete",
        input_rows=df.height,
        scored_rows=ranked.height,
        null_composite=ranked.height - len(non_null),
        mean_score=f"{non_null.mean():.4f}" if len(non_null) > 0 else None,
    )

    return ranked


def iter_scored_variants(df: pl.DataFrame, predictors: list[str]) -> Iterator[ScoredVariant]:
    """Yield ScoredVariant models for each row of a ranked frame."""
    for row in df.iter_rows(named=True):
        yield ScoredVariant(
            variant_id=row[VARIANT_COLUMN],
            normalized_scores={p: row[p] for p in predictors},
            composite_score=row[COMPOSITE_COLUMN],
        )
