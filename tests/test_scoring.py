"""Unit tests for the scoring module.

Tests:
- Table loading by file suffix
- Column selection, renaming and missing-value tokens
- Anchor filtering, per-column normalization, composite score, ranking
"""

from pathlib import Path

import polars as pl
import pytest
from polars.testing import assert_series_equal

from pathogenicity_ranking.config.schema import ScoringSchema
from pathogenicity_ranking.scoring import (
    COMPOSITE_COLUMN,
    VARIANT_COLUMN,
    InputFileNotFoundError,
    MissingColumnsError,
    ScoredVariant,
    ScoreParseError,
    UnsupportedFormatError,
    compute_composite_scores,
    detect_format,
    filter_anchor_rows,
    iter_scored_variants,
    normalize_predictors,
    rank_variants,
    read_variant_table,
    score_variants,
    select_predictor_columns,
)

HEADER = (
    "AAChange.refGeneWithVer,AlphaMissense_score,CADD_phred,GERP++_RS,"
    "phyloP17way_primate,MPC_score,REVEL_score,MetaSVM_score,Polyphen2_HVAR_score,Func.refGene"
)

ANNOTATED_ROWS = [
    "GENE1:p.K1E,0.9,30,5.0,0.6,2.0,0.8,0.5,1.0,exonic",
    "GENE2:p.R2W,0.45,15,.,.,1.0,0.4,-0.5,0.5,exonic",
    "GENE3:p.G3D,.,20,4.0,0.3,1.0,0.2,0.1,0.2,exonic",
    "GENE4:p.L4P,0.9,30,5.0,0.6,2.0,0.8,0.5,1.0,exonic",
    "GENE5:p.A5V,0.2,.,1.0,0.1,0.5,0.1,0.0,0.1,exonic",
]


@pytest.fixture
def annotated_csv(tmp_path: Path) -> Path:
    """Annotator-style CSV using "." for missing scores.

    - GENE1 and GENE4 are identical (tie at the top)
    - GENE2 misses GERP and phyloP (kept, excluded from its mean)
    - GENE3 misses AlphaMissense (anchor: dropped)
    - GENE5 misses CADD (anchor: dropped)
    """
    path = tmp_path / "variants.csv"
    path.write_text("\n".join([HEADER, *ANNOTATED_ROWS]) + "\n")
    return path


@pytest.fixture
def two_predictor_schema() -> ScoringSchema:
    return ScoringSchema(
        id_column="id",
        predictors={"A": "a_score", "B": "b_score"},
        anchors=["A", "B"],
    )


def raw_frame(ids, **columns) -> pl.DataFrame:
    """Build a String-typed raw table like read_variant_table produces."""
    data = {"id": ids}
    for name, values in columns.items():
        data[name] = [None if v is None else str(v) for v in values]
    return pl.DataFrame(data, schema={k: pl.String for k in data})


# --- loading ---------------------------------------------------------------


def test_detect_format_by_suffix():
    assert detect_format("a.csv") == "csv"
    assert detect_format("a.CSV") == "csv"
    assert detect_format("a.txt") == "tsv"
    assert detect_format("a.tsv") == "tsv"
    assert detect_format("a.XLSX") == "excel"

    with pytest.raises(UnsupportedFormatError):
        detect_format("a.json")


def test_read_csv_keeps_text(annotated_csv):
    df = read_variant_table(annotated_csv)

    assert df.height == 5
    assert all(dtype == pl.String for dtype in df.dtypes)
    assert df["GERP++_RS"][1] == "."


def test_read_tab_delimited_txt(tmp_path):
    path = tmp_path / "variants.TXT"
    path.write_text("AAChange.refGeneWithVer\tCADD_phred\nV1\t25.1\nV2\t.\n")

    df = read_variant_table(path)

    assert df.columns == ["AAChange.refGeneWithVer", "CADD_phred"]
    assert df["CADD_phred"].to_list() == ["25.1", "."]


def test_read_excel(tmp_path):
    path = tmp_path / "variants.xlsx"
    pl.DataFrame({
        "AAChange.refGeneWithVer": ["V1", "V2"],
        "CADD_phred": [25.0, 12.5],
    }).write_excel(path)

    df = read_variant_table(path)

    assert df.height == 2
    assert df["CADD_phred"].dtype == pl.String
    assert float(df["CADD_phred"][1]) == 12.5


def test_read_missing_file_raises(tmp_path):
    with pytest.raises(InputFileNotFoundError, match="Input file not found"):
        read_variant_table(tmp_path / "absent.csv")


def test_missing_file_reported_before_format(tmp_path):
    """A missing path is reported as not found even with an unsupported suffix."""
    with pytest.raises(FileNotFoundError):
        read_variant_table(tmp_path / "absent.json")


def test_read_unsupported_suffix_raises(tmp_path):
    path = tmp_path / "variants.json"
    path.write_text("{}")

    with pytest.raises(UnsupportedFormatError, match="Unsupported file type"):
        read_variant_table(path)


# --- column selection --------------------------------------------------------


def test_select_renames_and_coerces(annotated_csv):
    df = select_predictor_columns(read_variant_table(annotated_csv), ScoringSchema())

    assert df.columns == [
        VARIANT_COLUMN, "AlphaMissense", "CADD", "GERP", "phyloP",
        "MPC", "REVEL", "MetaSVM", "PolyPhen2",
    ]
    assert df["AlphaMissense"].dtype == pl.Float64
    assert df["GERP"][1] is None
    assert df["AlphaMissense"][2] is None
    assert df["MetaSVM"][1] == -0.5


def test_select_handles_all_missing_tokens(two_predictor_schema):
    raw = raw_frame(
        ["V1", "V2", "V3", "V4", "V5"],
        a_score=["1.5", ".", "NA", " . ", "NaN"],
        b_score=["2", "", None, "3", "4"],
    )

    df = select_predictor_columns(raw, two_predictor_schema)

    assert df["A"].to_list() == [1.5, None, None, None, None]
    assert df["B"].to_list() == [2.0, None, None, 3.0, 4.0]


def test_select_reports_every_missing_column(annotated_csv):
    raw = read_variant_table(annotated_csv).drop(["CADD_phred", "REVEL_score"])

    with pytest.raises(MissingColumnsError) as exc_info:
        select_predictor_columns(raw, ScoringSchema())

    assert exc_info.value.missing == ["CADD_phred", "REVEL_score"]
    assert "CADD_phred" in str(exc_info.value)


def test_select_is_case_sensitive(two_predictor_schema):
    raw = raw_frame(["V1"], A_SCORE=["1"], b_score=["1"])

    with pytest.raises(MissingColumnsError) as exc_info:
        select_predictor_columns(raw, two_predictor_schema)

    assert exc_info.value.missing == ["a_score"]


def test_select_rejects_non_numeric_text(two_predictor_schema):
    raw = raw_frame(["V1", "V2"], a_score=["1.0", "high"], b_score=["1", "2"])

    with pytest.raises(ScoreParseError, match="a_score"):
        select_predictor_columns(raw, two_predictor_schema)


@pytest.mark.parametrize("text", ["nan", "NAN", "inf", "-inf", "Infinity"])
def test_select_rejects_non_finite_text(two_predictor_schema, text):
    raw = raw_frame(["V1", "V2", "V3"], a_score=["1", text, "0.5"], b_score=["1", "1", "1"])

    with pytest.raises(ScoreParseError, match="a_score"):
        select_predictor_columns(raw, two_predictor_schema)


def test_score_variants_rejects_nan_text_without_anchors():
    schema = ScoringSchema(
        id_column="id",
        predictors={"A": "a_score", "B": "b_score"},
        anchors=[],
    )
    raw = raw_frame(["V1", "V2", "V3"], a_score=["1", "nan", "0.5"], b_score=["1", "1", "1"])

    with pytest.raises(ScoreParseError):
        score_variants(raw, schema)


# --- filter / normalize / composite / rank ----------------------------------


def test_filter_anchor_rows_drops_missing_anchors():
    df = pl.DataFrame({
        VARIANT_COLUMN: ["V1", "V2", "V3"],
        "A": [1.0, None, 2.0],
        "B": [1.0, 1.0, None],
        "C": [None, None, None],
    })

    filtered = filter_anchor_rows(df, ["A", "B"])

    assert filtered[VARIANT_COLUMN].to_list() == ["V1"]


def test_filter_without_anchors_keeps_everything():
    df = pl.DataFrame({VARIANT_COLUMN: ["V1"], "A": [None]}, schema={VARIANT_COLUMN: pl.String, "A": pl.Float64})
    assert filter_anchor_rows(df, []).height == 1


def test_normalize_sets_column_max_to_one():
    df = pl.DataFrame({
        "A": [2.0, 8.0, None, 4.0],
        "B": [0.3, 0.1, 0.7, None],
    })

    normalized = normalize_predictors(df, ["A", "B"])

    assert normalized["A"].max() == 1.0
    assert normalized["B"].max() == 1.0
    assert normalized["A"].to_list() == [0.25, 1.0, None, 0.5]
    assert normalized["B"][2] == 1.0


def test_normalize_leaves_degenerate_columns_unchanged():
    df = pl.DataFrame(
        {
            "all_null": [None, None, None],
            "all_zero": [0.0, 0.0, 0.0],
            "zero_max": [-2.0, 0.0, None],
            "normal": [1.0, 2.0, 4.0],
        },
        schema={c: pl.Float64 for c in ["all_null", "all_zero", "zero_max", "normal"]},
    )

    normalized = normalize_predictors(df, df.columns)

    for col in ["all_null", "all_zero", "zero_max"]:
        assert_series_equal(normalized[col], df[col])
    assert normalized["normal"].to_list() == [0.25, 0.5, 1.0]


def test_normalize_with_negative_values():
    df = pl.DataFrame({"GERP": [-4.0, 2.0, 4.0]})

    normalized = normalize_predictors(df, ["GERP"])

    assert normalized["GERP"].to_list() == [-1.0, 0.5, 1.0]


def test_composite_is_mean_of_available():
    df = pl.DataFrame(
        {
            "A": [1.0, 0.5, None],
            "B": [0.5, None, None],
            "C": [0.0, 0.25, None],
        },
        schema={"A": pl.Float64, "B": pl.Float64, "C": pl.Float64},
    )

    scored = compute_composite_scores(df, ["A", "B", "C"])

    assert scored[COMPOSITE_COLUMN][0] == pytest.approx(0.5)
    assert scored[COMPOSITE_COLUMN][1] == pytest.approx(0.375)
    assert scored[COMPOSITE_COLUMN][2] is None


def test_rank_is_stable_with_nulls_last():
    df = pl.DataFrame({
        VARIANT_COLUMN: ["V1", "V2", "V3", "V4", "V5"],
        COMPOSITE_COLUMN: [0.5, None, 0.9, 0.5, 0.5],
    })

    ranked = rank_variants(df)

    assert ranked[VARIANT_COLUMN].to_list() == ["V3", "V1", "V4", "V5", "V2"]


def test_rank_puts_nan_composite_last():
    df = pl.DataFrame({
        VARIANT_COLUMN: ["V1", "V2", "V3", "V4"],
        COMPOSITE_COLUMN: [1.0, float("nan"), 0.75, None],
    })

    ranked = rank_variants(df)

    assert ranked[VARIANT_COLUMN].to_list() == ["V1", "V3", "V2", "V4"]
    assert ranked[COMPOSITE_COLUMN].to_list() == [1.0, 0.75, None, None]


def test_two_anchor_scenario(two_predictor_schema):
    """Rows missing either anchor are dropped; survivors normalize per column."""
    raw = raw_frame(
        ["V1", "V2", "V3", "V4"],
        a_score=["10", "5", "NA", "10"],
        b_score=["4", "4", "4", "NA"],
    )

    scored = score_variants(raw, two_predictor_schema)

    assert scored[VARIANT_COLUMN].to_list() == ["V1", "V2"]
    assert scored["A"].to_list() == [1.0, 0.5]
    assert scored["B"].to_list() == [1.0, 1.0]
    assert scored[COMPOSITE_COLUMN].to_list() == [1.0, 0.75]


def test_score_variants_end_to_end(annotated_csv):
    scored = score_variants(read_variant_table(annotated_csv))

    assert scored.columns[0] == VARIANT_COLUMN
    assert scored.columns[-1] == COMPOSITE_COLUMN
    # GENE3 and GENE5 lack an anchor; GENE1/GENE4 tie and keep input order
    assert scored[VARIANT_COLUMN].to_list() == ["GENE1:p.K1E", "GENE4:p.L4P", "GENE2:p.R2W"]
    assert scored[COMPOSITE_COLUMN][0] == pytest.approx(1.0)
    assert scored[COMPOSITE_COLUMN][1] == pytest.approx(1.0)
    # GENE2: five predictors at 0.5, MetaSVM at -1.0, GERP/phyloP missing
    assert scored[COMPOSITE_COLUMN][2] == pytest.approx(0.25)


def test_scored_rows_satisfy_ranking_properties(annotated_csv):
    scored = score_variants(read_variant_table(annotated_csv))
    predictors = ScoringSchema().aliases

    for row in scored.iter_rows(named=True):
        present = [row[p] for p in predictors if row[p] is not None]
        assert min(present) - 1e-12 <= row[COMPOSITE_COLUMN] <= max(present) + 1e-12

    for p in predictors:
        col_max = scored[p].max()
        if col_max is not None and col_max != 0:
            assert col_max == 1.0

    composites = scored[COMPOSITE_COLUMN].to_list()
    assert composites == sorted(composites, reverse=True)


def test_row_with_every_predictor_missing_sorts_last():
    schema = ScoringSchema(
        id_column="id",
        predictors={"A": "a_score", "B": "b_score"},
        anchors=[],
    )
    raw = raw_frame(["V1", "V2", "V3"], a_score=[".", "2", "1"], b_score=[".", "1", "1"])

    scored = score_variants(raw, schema)

    assert scored[VARIANT_COLUMN].to_list() == ["V2", "V3", "V1"]
    assert scored[COMPOSITE_COLUMN][2] is None


def test_score_variants_does_not_write_files(annotated_csv, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    before = set(tmp_path.iterdir())

    score_variants(read_variant_table(annotated_csv))

    assert set(tmp_path.iterdir()) == before


def test_iter_scored_variants(two_predictor_schema):
    raw = raw_frame(["V1", "V2"], a_score=["10", "5"], b_score=["4", "2"])
    scored = score_variants(raw, two_predictor_schema)

    variants = list(iter_scored_variants(scored, two_predictor_schema.aliases))

    assert all(isinstance(v, ScoredVariant) for v in variants)
    assert variants[0].variant_id == "V1"
    assert variants[0].normalized_scores == {"A": 1.0, "B": 1.0}
    assert variants[1].composite_score == pytest.approx(0.5)
