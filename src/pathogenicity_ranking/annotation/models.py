"""Constants, result types and error types for ANNOVAR annotation."""

from dataclasses import dataclass, field
from pathlib import Path

PERL = "perl"

# Scripts shipped with an ANNOVAR installation
TABLE_ANNOVAR = "table_annovar.pl"
CONVERT2ANNOVAR = "convert2annovar.pl"
ANNOTATE_VARIATION = "annotate_variation.pl"
REQUIRED_SCRIPTS = (TABLE_ANNOVAR, CONVERT2ANNOVAR, ANNOTATE_VARIATION)

# Databases required by the default protocol (prefixed with the genome build)
REQUIRED_DATABASES = ("refGene", "avsnp150", "dbnsfp42c")

DEFAULT_PROTOCOL = ("refGene", "avsnp150", "dbnsfp42c")
DEFAULT_OPERATION = ("g", "f", "f")

# Columns of the table_annovar multianno CSV used by the missense filter
FUNC_COLUMN = "Func.refGene"
EXONIC_FUNC_COLUMN = "ExonicFunc.refGene"
AACHANGE_COLUMN = "AAChange.refGene"
AACHANGE_VER_COLUMN = "AAChange.refGeneWithVer"
COORDINATE_COLUMNS = ("Chr", "Start", "End")
QUAL_COLUMN = "QUAL"


@dataclass
class ToolRun:
    """Record of one external tool invocation.

    Attributes:
        command: Argument vector that was executed
        returncode: Exit status (None if the process was killed on timeout)
        stdout: Captured standard output
        stderr: Captured standard error
        output_path: File the tool was expected to produce
    """
    command: list[str]
    returncode: int | None
    stdout: str = ""
    stderr: str = ""
    output_path: Path | None = None


@dataclass
class AnnotationResult:
    """Successful annotation run.

    Attributes:
        annotated_csv: The <prefix>_annotated.<build>_multianno.csv table
        avinput: ANNOVAR input file that was annotated (None once cleaned up)
        runs: Every tool invocation, in order
    """
    annotated_csv: Path
    avinput: Path | None = None
    runs: list[ToolRun] = field(default_factory=list)


class AnnotationError(RuntimeError):
    """Base class for fatal annotation errors."""


class AnnotatorNotFoundError(AnnotationError, FileNotFoundError):
    """ANNOVAR installation, database directory or interpreter is missing."""


class AnnotationFailedError(AnnotationError):
    """An external tool exited non-zero or was killed on timeout.

    Attributes:
        run: The failed ToolRun (stdout/stderr captured for diagnosis)
    """

    def __init__(self, message: str, run: ToolRun):
        self.run = run
        super().__init__(message)


class MissingArtifactError(AnnotationError):
    """An external tool exited 0 but its expected output file is absent.

    Attributes:
        path: Expected output path
        run: The ToolRun that should have produced it
    """

    def __init__(self, message: str, path: Path, run: ToolRun | None = None):
        self.path = path
        self.run = run
        super().__init__(message)


class NoMissenseVariantsError(AnnotationError):
    """The annotate-and-analyze workflow found no missense variants to score."""


class NoMissenseVariantsWarning(UserWarning):
    """Missense filtering kept zero rows."""
