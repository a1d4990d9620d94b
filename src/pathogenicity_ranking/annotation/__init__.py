"""ANNOVAR annotation, missense filtering and setup checks."""

from pathogenicity_ranking.annotation.models import (
    AnnotationError,
    AnnotationFailedError,
    AnnotationResult,
    AnnotatorNotFoundError,
    MissingArtifactError,
    NoMissenseVariantsError,
    NoMissenseVariantsWarning,
    ToolRun,
)
from pathogenicity_ranking.annotation.annovar import (
    annotate_with_annovar,
    annotated_csv_path,
    convert_to_avinput,
    is_compressed_vcf,
    is_vcf,
    run_table_annovar,
    validate_annovar_paths,
)
from pathogenicity_ranking.annotation.filter import (
    filter_missense_file,
    filter_missense_variants,
    read_annotated_table,
)
from pathogenicity_ranking.annotation.setup_check import (
    SetupReport,
    check_annovar_setup,
)
from pathogenicity_ranking.annotation.workflow import (
    WorkflowResult,
    annotate_and_analyze,
)

__all__ = [
    "AnnotationError",
    "AnnotationFailedError",
    "AnnotationResult",
    "AnnotatorNotFoundError",
    "MissingArtifactError",
    "NoMissenseVariantsError",
    "NoMissenseVariantsWarning",
    "ToolRun",
    "annotate_with_annovar",
    "annotated_csv_path",
    "convert_to_avinput",
    "is_compressed_vcf",
    "is_vcf",
    "run_table_annovar",
    "validate_annovar_paths",
    "filter_missense_file",
    "filter_missense_variants",
    "read_annotated_table",
    "SetupReport",
    "check_annovar_setup",
    "WorkflowResult",
    "annotate_and_analyze",
]
