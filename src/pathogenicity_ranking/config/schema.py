"""Pydantic models for pipeline configuration."""

import hashlib
import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator


class MissingValue(str, Enum):
    """Text tokens that mean "no score" in annotator output."""

    PERIOD = "."
    NA = "NA"
    NAN = "NaN"
    EMPTY = ""


DEFAULT_PREDICTORS: dict[str, str] = {
    "AlphaMissense": "AlphaMissense_score",
    "CADD": "CADD_phred",
    "GERP": "GERP++_RS",
    "phyloP": "phyloP17way_primate",
    "MPC": "MPC_score",
    "REVEL": "REVEL_score",
    "MetaSVM": "MetaSVM_score",
    "PolyPhen2": "Polyphen2_HVAR_score",
}


class ScoringSchema(BaseModel):
    """Column schema for the scoring step.

    Maps annotator column names onto the short aliases used downstream.
    Alias order is preserved in every output table and chart.
    """

    id_column: str = Field(
        default="AAChange.refGeneWithVer",
        description=(
            "Source column holding the amino-acid change identifier. The "
            "annotate-and-analyze workflow scores ANNOVAR output, so there it "
            "must name a multianno column (the missense filter guarantees "
            "AAChange.refGeneWithVer)"
        ),
    )
    predictors: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PREDICTORS),
        description="Predictor alias -> source column name (exact, case-sensitive)",
    )
    anchors: list[str] = Field(
        default_factory=lambda: ["AlphaMissense", "CADD"],
        description="Predictor aliases that must be present for a row to be scored",
    )
    missing_values: list[MissingValue] = Field(
        default_factory=lambda: list(MissingValue),
        description="Tokens treated as missing when coercing predictor columns",
    )

    @field_validator("predictors")
    @classmethod
    def require_predictors(cls, v: dict[str, str]) -> dict[str, str]:
        """Reject an empty predictor mapping."""
        if not v:
            raise ValueError("At least one predictor column must be configured")
        return v

    @model_validator(mode="after")
    def anchors_are_predictors(self) -> "ScoringSchema":
        unknown = [a for a in self.anchors if a not in self.predictors]
        if unknown:
            raise ValueError(f"Anchor predictors not in predictor mapping: {unknown}")
        return self

    @property
    def aliases(self) -> list[str]:
        return list(self.predictors.keys())

    @property
    def source_columns(self) -> list[str]:
        """All source columns required by the schema, identifier first."""
        return [self.id_column, *self.predictors.values()]

    @property
    def missing_tokens(self) -> list[str]:
        return [m.value for m in self.missing_values]


class AnnotatorConfig(BaseModel):
    """Configuration for the ANNOVAR annotation step."""

    annovar_path: Path = Field(
        ...,
        description="ANNOVAR installation directory (holds the .pl scripts)",
    )
    database_path: Path = Field(
        ...,
        description="ANNOVAR reference database directory (humandb)",
    )
    genome_build: str = Field(
        default="hg38",
        description="Genome build passed as -buildver",
    )
    protocol: list[str] = Field(
        default_factory=lambda: ["refGene", "avsnp150", "dbnsfp42c"],
        description="Annotation sources passed as -protocol",
    )
    operation: list[str] = Field(
        default_factory=lambda: ["g", "f", "f"],
        description="Operation code per protocol entry passed as -operation",
    )
    nastring: str = Field(
        default=".",
        description="Placeholder ANNOVAR writes for missing values",
    )
    timeout_seconds: int | None = Field(
        default=None,
        ge=1,
        description="Kill the annotator after this many seconds (None = wait)",
    )
    keep_intermediate: bool = Field(
        default=False,
        description="Keep .avinput and decompressed VCF files after success",
    )
    min_quality: float | None = Field(
        default=None,
        description="Drop missense rows with QUAL below this value",
    )

    @model_validator(mode="after")
    def protocol_matches_operation(self) -> "AnnotatorConfig":
        if len(self.protocol) != len(self.operation):
            raise ValueError(
                f"protocol ({len(self.protocol)} entries) and operation "
                f"({len(self.operation)} entries) must have the same length"
            )
        return self


class VisualizationConfig(BaseModel):
    """Figure settings shared by all charts."""

    dpi: int = Field(
        default=300,
        ge=72,
        description="Raster (PNG) resolution",
    )
    width: float = Field(default=10.0, gt=0, description="Figure width in inches")
    height: float = Field(default=6.0, gt=0, description="Figure height in inches")
    bar_color: str = Field(
        default="#0072B2",
        description="Fill color of the ranking bar chart",
    )
    scatter_predictor: str = Field(
        default="AlphaMissense",
        description="Predictor alias plotted against the composite score",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    output_dir: Path = Field(
        ...,
        description="Directory for result tables, charts and provenance",
    )
    scoring: ScoringSchema = Field(
        default_factory=ScoringSchema,
        description="Scoring column schema",
    )
    annotator: AnnotatorConfig | None = Field(
        default=None,
        description="ANNOVAR settings (only needed for annotation commands)",
    )
    visualization: VisualizationConfig = Field(
        default_factory=VisualizationConfig,
        description="Chart settings",
    )

    @field_validator("output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking which settings produced a result set.
        """
        config_dict = self.model_dump(mode="json")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
