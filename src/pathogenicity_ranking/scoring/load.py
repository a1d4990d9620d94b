"""Load variant tables from CSV, tab-delimited and Excel files."""

from pathlib import Path

import polars as pl
import structlog

from pathogenicity_ranking.scoring.models import (
    CSV_SUFFIXES,
    EXCEL_SUFFIXES,
    SUPPORTED_SUFFIXES,
    TSV_SUFFIXES,
    InputFileNotFoundError,
    UnsupportedFormatError,
)

logger = structlog.get_logger(__name__)


def detect_format(path: Path | str) -> str:
    """Return "csv", "tsv" or "excel" from the file suffix (case-insensitive).

    Raises:
        UnsupportedFormatError: If the suffix is not recognised
    """
    suffix = Path(path).suffix.lower()
    if suffix in CSV_SUFFIXES:
        return "csv"
    if suffix in TSV_SUFFIXES:
        return "tsv"
    if suffix in EXCEL_SUFFIXES:
        return "excel"
    raise UnsupportedFormatError(
        f"Unsupported file type '{suffix or Path(path).name}'. "
        f"Please use one of: {', '.join(SUPPORTED_SUFFIXES)}"
    )


def read_variant_table(path: Path | str) -> pl.DataFrame:
    """Read a variant table with every column as text.

    Values are kept as strings so that missing-value tokens such as "." can
    be resolved in one place by the column schema rather than by the reader.

    Args:
        path: .csv (comma), .txt/.tsv (tab) or .xlsx/.xls file

    Returns:
        DataFrame with String columns

    Raises:
        InputFileNotFoundError: If path is not an existing file
        UnsupportedFormatError: If the suffix is not supported
    """
    path = Path(path)

    if not path.is_file():
        raise InputFileNotFoundError(f"Input file not found: {path}")

    fmt = detect_format(path)

    if fmt == "csv":
        df = pl.read_csv(path, infer_schema=False)
    elif fmt == "tsv":
        df = pl.read_csv(path, separator="\t", infer_schema=False)
    else:
        df = pl.read_excel(path)
        df = df.with_columns(pl.all().cast(pl.String))

    logger.info(
        "read_variant_table_complete",
        path=str(path),
        format=fmt,
        rows=df.height,
        columns=len(df.columns),
    )

    return df
