"""CSV writer for scored variants with provenance sidecar."""

from datetime import datetime, timezone
from pathlib import Path

import polars as pl
import yaml

from pathogenicity_ranking.scoring.models import COMPOSITE_COLUMN, VARIANT_COLUMN


def write_scored_variants(df: pl.DataFrame, output_path: Path | str) -> dict:
    """
    Write ranked variants to CSV with a YAML provenance sidecar.

    The output path is always supplied by the caller; nothing is written to
    the working directory implicitly.

    Args:
        df: Ranked DataFrame from score_variants (Variant, predictor aliases,
            CompositeScore)
        output_path: Destination CSV path (parent directories are created)

    Returns:
        Dictionary with output file paths:
        {
            "csv": Path to CSV file,
            "provenance": Path to YAML provenance sidecar
        }

    Notes:
        - Row order of df is preserved (already ranked)
        - Missing scores are written as empty cells
        - Provenance YAML holds generated_at, row count, score summary and
          column names
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    provenance_path = output_path.with_name(f"{output_path.stem}.provenance.yaml")

    df.write_csv(output_path, include_header=True)

    scores = df[COMPOSITE_COLUMN].drop_nulls() if COMPOSITE_COLUMN in df.columns else pl.Series([])
    provenance = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "output_files": [output_path.name],
        "statistics": {
            "total_variants": df.height,
            "scored_variants": len(scores),
            "max_composite_score": float(scores.max()) if len(scores) > 0 else None,
            "min_composite_score": float(scores.min()) if len(scores) > 0 else None,
        },
        "column_count": len(df.columns),
        "column_names": df.columns,
    }

    with open(provenance_path, "w") as f:
        yaml.dump(provenance, f, default_flow_style=False, sort_keys=False)

    return {
        "csv": output_path,
        "provenance": provenance_path,
    }


def read_scored_variants(path: Path | str) -> pl.DataFrame:
    """Read a CSV written by write_scored_variants back into typed columns."""
    df = pl.read_csv(path, schema_overrides={VARIANT_COLUMN: pl.String})
    return df.with_columns(pl.exclude(VARIANT_COLUMN).cast(pl.Float64))


def write_variant_table(df: pl.DataFrame, output_path: Path | str) -> Path:
    """Write an intermediate variant table (e.g. filtered missense rows) as CSV."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(output_path, include_header=True)
    return output_path
