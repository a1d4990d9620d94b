"""Data models and error types for variant scoring."""

from pydantic import BaseModel

# Canonical column names produced by the scoring step
VARIANT_COLUMN = "Variant"
COMPOSITE_COLUMN = "CompositeScore"

# Input formats recognised by file suffix (lower-cased)
CSV_SUFFIXES = (".csv",)
TSV_SUFFIXES = (".txt", ".tsv")
EXCEL_SUFFIXES = (".xlsx", ".xls")
SUPPORTED_SUFFIXES = CSV_SUFFIXES + TSV_SUFFIXES + EXCEL_SUFFIXES


class InputFileNotFoundError(FileNotFoundError):
    """Input table path does not resolve to an existing file."""


class UnsupportedFormatError(ValueError):
    """Input table suffix is not one of the supported formats."""


class MissingColumnsError(ValueError):
    """One or more required source columns are absent from the input table.

    Attributes:
        missing: Absent source column names, in schema order
    """

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Required columns missing from input: {', '.join(missing)}")


class ScoreParseError(ValueError):
    """A predictor column holds text that is neither numeric nor a missing-value token."""

    def __init__(self, column: str, source: str):
        self.column = column
        self.source = source
        super().__init__(
            f"Predictor column '{source}' ({column}) contains non-numeric values "
            f"that are not recognised missing-value tokens"
        )


class ScoredVariant(BaseModel):
    """One ranked output row.

    Attributes:
        variant_id: Carried over from the input row
        normalized_scores: Predictor alias -> max-normalized score (None if missing)
        composite_score: Mean of the available normalized scores
            (None when every predictor is missing)

    Composite scores are only comparable within a single scoring run: each
    predictor is divided by its own column maximum over the rows of that run.
    """

    variant_id: str | None
    normalized_scores: dict[str, float | None]
    composite_score: float | None = None
