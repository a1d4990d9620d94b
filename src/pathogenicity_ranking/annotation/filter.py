"""Read ANNOVAR multianno tables and keep missense variants."""

import warnings
from pathlib import Path

import polars as pl
import structlog

from pathogenicity_ranking.annotation.models import (
    AACHANGE_COLUMN,
    AACHANGE_VER_COLUMN,
    COORDINATE_COLUMNS,
    EXONIC_FUNC_COLUMN,
    FUNC_COLUMN,
    QUAL_COLUMN,
    NoMissenseVariantsWarning,
)
from pathogenicity_ranking.output.writers import write_variant_table
from pathogenicity_ranking.scoring.models import InputFileNotFoundError, MissingColumnsError

logger = structlog.get_logger()


def read_annotated_table(path: Path | str, nastring: str = ".") -> pl.DataFrame:
    """Read a multianno CSV as text, turning the ANNOVAR nastring into NULL.

    Raises:
        InputFileNotFoundError: If path does not exist
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileNotFoundError(f"Annotated file not found: {path}")

    df = pl.read_csv(path, infer_schema=False, null_values=[nastring])
    logger.info("read_annotated_table_complete", path=str(path), rows=df.height)
    return df


def filter_missense_variants(
    df: pl.DataFrame,
    min_quality: float | None = None,
) -> pl.DataFrame | None:
    """Keep exonic missense variants with identifier and coordinates.

    A row is kept when:
    - Func.refGene is exactly "exonic"
    - ExonicFunc.refGene contains "missense" (case-insensitive)
    - AAChange.refGene or AAChange.refGeneWithVer is present
    - Chr, Start and End are present
    - QUAL >= min_quality, when min_quality is set and a QUAL column exists

    When only AAChange.refGene exists it is copied to AAChange.refGeneWithVer,
    the identifier column used for scoring. Filtering is idempotent.

    Args:
        df: Multianno table (NULL for missing values)
        min_quality: Optional minimum QUAL

    Returns:
        Filtered DataFrame, or None when no row survives. None is accompanied
        by a NoMissenseVariantsWarning; the function never raises for an
        empty result.

    Raises:
        MissingColumnsError: If the functional-annotation or coordinate
            columns are absent (the table is not a multianno table)
    """
    id_columns = [c for c in (AACHANGE_COLUMN, AACHANGE_VER_COLUMN) if c in df.columns]
    required = [FUNC_COLUMN, EXONIC_FUNC_COLUMN, *COORDINATE_COLUMNS]
    missing = [c for c in required if c not in df.columns]
    if not id_columns:
        missing.append(AACHANGE_COLUMN)
    if missing:
        raise MissingColumnsError(missing)

    total = df.height

    missense = df.filter(
        (pl.col(FUNC_COLUMN).cast(pl.String) == "exonic")
        & pl.col(EXONIC_FUNC_COLUMN)
        .cast(pl.String)
        .str.to_lowercase()
        .str.contains("missense", literal=True)
        & pl.any_horizontal([pl.col(c).is_not_null() for c in id_columns])
        & pl.all_horizontal([pl.col(c).is_not_null() for c in COORDINATE_COLUMNS])
    )

    removed_by_quality = 0
    if min_quality is not None and QUAL_COLUMN in missense.columns:
        before = missense.height
        qual = pl.col(QUAL_COLUMN).cast(pl.Float64, strict=False)
        missense = missense.filter(qual.is_not_null() & (qual >= min_quality))
        removed_by_quality = before - missense.height

    logger.info(
        "filter_missense_variants_complete",
        total_variants=total,
        missense_variants=missense.height,
        removed_by_quality=removed_by_quality,
    )

    if missense.height == 0:
        message = "No missense variants found after filtering. Check your annotation results."
        logger.warning("no_missense_variants", total_variants=total)
        warnings.warn(message, NoMissenseVariantsWarning, stacklevel=2)
        return None

    if AACHANGE_VER_COLUMN not in missense.columns:
        missense = missense.with_columns(pl.col(AACHANGE_COLUMN).alias(AACHANGE_VER_COLUMN))

    return missense


def filter_missense_file(
    annotated_file: Path | str,
    output_file: Path | str,
    min_quality: float | None = None,
    nastring: str = ".",
) -> Path | None:
    """Filter a multianno CSV and write the missense rows to output_file.

    Returns:
        output_file, or None when no missense variants were found (nothing
        is written in that case)
    """
    df = read_annotated_table(annotated_file, nastring=nastring)
    missense = filter_missense_variants(df, min_quality=min_quality)
    if missense is None:
        return None

    path = write_variant_table(missense, output_file)
    logger.info("filtered_missense_saved", path=str(path), rows=missense.height)
    return path
