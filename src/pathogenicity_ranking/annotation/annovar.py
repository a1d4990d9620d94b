"""Run ANNOVAR: VCF conversion and table_annovar annotation.

Thin orchestration over ANNOVAR's perl scripts. Each step runs as a blocking
subprocess; a non-zero exit (or timeout) and a missing output file are
reported as distinct errors. Intermediate files are removed only after the
whole run succeeds.
"""

import gzip
import shlex
import shutil
import subprocess
from pathlib import Path

import structlog

from pathogenicity_ranking.annotation.models import (
    CONVERT2ANNOVAR,
    DEFAULT_OPERATION,
    DEFAULT_PROTOCOL,
    PERL,
    TABLE_ANNOVAR,
    AnnotationFailedError,
    AnnotationResult,
    AnnotatorNotFoundError,
    MissingArtifactError,
    ToolRun,
)
from pathogenicity_ranking.scoring.models import InputFileNotFoundError

logger = structlog.get_logger()


def validate_annovar_paths(annovar_path: Path | str, database_path: Path | str) -> None:
    """Check that the ANNOVAR installation and database directories exist.

    Raises:
        AnnotatorNotFoundError: Naming whichever directory is missing
    """
    if not Path(annovar_path).is_dir():
        raise AnnotatorNotFoundError(f"ANNOVAR directory not found: {annovar_path}")
    if not Path(database_path).is_dir():
        raise AnnotatorNotFoundError(f"ANNOVAR database directory not found: {database_path}")


def is_compressed_vcf(path: Path | str) -> bool:
    """True for *.vcf.gz (case-insensitive)."""
    return str(path).lower().endswith(".vcf.gz")


def is_vcf(path: Path | str) -> bool:
    """True for *.vcf or *.vcf.gz (case-insensitive)."""
    return str(path).lower().endswith(".vcf") or is_compressed_vcf(path)


def annotated_csv_path(output_prefix: Path | str, genome_build: str) -> Path:
    """Path of the CSV table_annovar writes for -out {prefix}_annotated -csvout."""
    return Path(f"{output_prefix}_annotated.{genome_build}_multianno.csv")


def _as_text(stream) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode(errors="replace")
    return stream


def _run_tool(
    command: list[str],
    output_path: Path,
    step: str,
    timeout: int | None = None,
) -> ToolRun:
    """Run one external command and verify it produced output_path.

    Raises:
        AnnotatorNotFoundError: If the interpreter cannot be executed
        AnnotationFailedError: On non-zero exit or timeout (process is killed)
        MissingArtifactError: If the command succeeded but output_path is absent
    """
    logger.info("run_tool_start", step=step, command=shlex.join(command), timeout=timeout)

    try:
        proc = subprocess.run(command, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        run = ToolRun(
            command=command,
            returncode=None,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
            output_path=output_path,
        )
        logger.error("run_tool_timeout", step=step, timeout=timeout)
        raise AnnotationFailedError(f"{step} timed out after {timeout}s and was killed", run) from e
    except FileNotFoundError as e:
        raise AnnotatorNotFoundError(f"Cannot execute '{command[0]}' for {step}: {e}") from e

    run = ToolRun(
        command=command,
        returncode=proc.returncode,
        stdout=proc.stdout,
        stderr=proc.stderr,
        output_path=output_path,
    )

    if proc.returncode != 0:
        logger.error("run_tool_failed", step=step, returncode=proc.returncode, stderr=proc.stderr[-2000:])
        raise AnnotationFailedError(
            f"{step} failed with exit status {proc.returncode}. "
            "Check ANNOVAR installation and database paths.",
            run,
        )

    if not output_path.exists():
        logger.error("run_tool_missing_output", step=step, expected=str(output_path))
        raise MissingArtifactError(f"{step} output not found: {output_path}", output_path, run)

    logger.info("run_tool_complete", step=step, output=str(output_path))
    return run


def decompress_vcf(input_file: Path | str, output_path: Path | str) -> Path:
    """Stream-decompress a .vcf.gz into a plain VCF."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with gzip.open(input_file, "rb") as src, open(output_path, "wb") as dst:
        shutil.copyfileobj(src, dst)

    logger.info("decompress_vcf_complete", input=str(input_file), output=str(output_path))
    return output_path


def convert_to_avinput(
    input_file: Path | str,
    annovar_path: Path | str,
    output_prefix: Path | str,
    timeout: int | None = None,
) -> tuple[Path, list[ToolRun], list[Path]]:
    """Convert a VCF (optionally gzipped) to ANNOVAR input format.

    Runs ``perl convert2annovar.pl -format vcf4old <vcf> -outfile <prefix>.avinput``.
    Gzipped input is first decompressed to ``<prefix>.vcf``.

    Returns:
        (avinput path, tool runs, intermediate files created)
    """
    input_file = Path(input_file)
    avinput = Path(f"{output_prefix}.avinput")
    avinput.parent.mkdir(parents=True, exist_ok=True)
    intermediates = [avinput]

    vcf = input_file
    if is_compressed_vcf(input_file):
        vcf = decompress_vcf(input_file, Path(f"{output_prefix}.vcf"))
        intermediates.append(vcf)

    command = [
        PERL,
        str(Path(annovar_path) / CONVERT2ANNOVAR),
        "-format", "vcf4old",
        str(vcf),
        "-outfile", str(avinput),
    ]
    run = _run_tool(command, avinput, "VCF conversion", timeout=timeout)

    return avinput, [run], intermediates


def run_table_annovar(
    avinput: Path | str,
    annovar_path: Path | str,
    database_path: Path | str,
    output_prefix: Path | str,
    genome_build: str = "hg38",
    protocol: list[str] | tuple[str, ...] = DEFAULT_PROTOCOL,
    operation: list[str] | tuple[str, ...] = DEFAULT_OPERATION,
    nastring: str = ".",
    timeout: int | None = None,
) -> ToolRun:
    """Annotate an ANNOVAR input file with table_annovar.pl in CSV mode.

    Output is ``<prefix>_annotated.<build>_multianno.csv``.
    """
    out = f"{output_prefix}_annotated"
    command = [
        PERL,
        str(Path(annovar_path) / TABLE_ANNOVAR),
        str(avinput),
        str(database_path),
        "-buildver", genome_build,
        "-out", out,
        "-remove",
        "-protocol", ",".join(protocol),
        "-operation", ",".join(operation),
        "-nastring", nastring,
        "-csvout",
    ]
    return _run_tool(
        command,
        annotated_csv_path(output_prefix, genome_build),
        "ANNOVAR annotation",
        timeout=timeout,
    )


def annotate_with_annovar(
    input_file: Path | str,
    annovar_path: Path | str,
    database_path: Path | str,
    output_prefix: Path | str,
    genome_build: str = "hg38",
    protocol: list[str] | tuple[str, ...] = DEFAULT_PROTOCOL,
    operation: list[str] | tuple[str, ...] = DEFAULT_OPERATION,
    nastring: str = ".",
    timeout: int | None = None,
    keep_intermediate: bool = False,
) -> AnnotationResult:
    """Annotate raw variant calls with ANNOVAR.

    Steps:
    1. Validate ANNOVAR and database directories, then the input file
    2. Convert .vcf / .vcf.gz to .avinput (other inputs are passed through)
    3. Run table_annovar.pl with the fixed protocol/operation plan
    4. Remove intermediates unless keep_intermediate (success only)

    Args:
        input_file: .vcf, .vcf.gz or a ready ANNOVAR input file
        annovar_path: ANNOVAR installation directory
        database_path: ANNOVAR database directory
        output_prefix: Prefix (may include directories) for every file written
        genome_build: -buildver value
        protocol: -protocol entries
        operation: -operation entries, one per protocol entry
        nastring: -nastring placeholder for missing values
        timeout: Seconds before each subprocess is killed (None = no limit)
        keep_intermediate: Keep .avinput / decompressed VCF files

    Returns:
        AnnotationResult with the multianno CSV path and tool runs

    Raises:
        AnnotatorNotFoundError: ANNOVAR or database directory missing
        InputFileNotFoundError: input_file does not exist
        AnnotationFailedError: A subprocess exited non-zero or timed out
        MissingArtifactError: A subprocess succeeded but its output is absent
    """
    validate_annovar_paths(annovar_path, database_path)

    input_file = Path(input_file)
    if not input_file.is_file():
        raise InputFileNotFoundError(f"Input file not found: {input_file}")

    runs: list[ToolRun] = []
    intermediates: list[Path] = []

    if is_vcf(input_file):
        logger.info("annovar_convert_start", input=str(input_file), compressed=is_compressed_vcf(input_file))
        avinput, convert_runs, intermediates = convert_to_avinput(
            input_file, annovar_path, output_prefix, timeout=timeout
        )
        runs.extend(convert_runs)
    else:
        avinput = input_file

    logger.info("annovar_annotate_start", avinput=str(avinput), genome_build=genome_build)
    runs.append(
        run_table_annovar(
            avinput,
            annovar_path,
            database_path,
            output_prefix,
            genome_build=genome_build,
            protocol=protocol,
            operation=operation,
            nastring=nastring,
            timeout=timeout,
        )
    )

    annotated_csv = annotated_csv_path(output_prefix, genome_build)
    result_avinput: Path | None = avinput

    if not keep_intermediate and intermediates:
        for path in intermediates:
            path.unlink(missing_ok=True)
        result_avinput = None
        logger.info("annovar_intermediates_removed", files=[str(p) for p in intermediates])

    logger.info("annovar_complete", annotated_csv=str(annotated_csv), runs=len(runs))

    return AnnotationResult(annotated_csv=annotated_csv, avinput=result_avinput, runs=runs)
