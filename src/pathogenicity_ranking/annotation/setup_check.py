"""Check that an ANNOVAR installation has the scripts and databases we need."""

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from pathogenicity_ranking.annotation.models import (
    ANNOTATE_VARIATION,
    REQUIRED_DATABASES,
    REQUIRED_SCRIPTS,
)

logger = structlog.get_logger()


@dataclass
class SetupReport:
    """Result of an ANNOVAR setup check.

    Attributes:
        ready: True when every script and database is present
        annovar_dir_found: Installation directory exists
        database_dir_found: Database directory exists
        missing_scripts: Script filenames not found
        missing_databases: Database filenames not found
        available_databases: Database filenames found
        install_commands: annotate_variation.pl commands that would fetch
            the missing databases
    """
    ready: bool
    annovar_dir_found: bool
    database_dir_found: bool
    missing_scripts: list[str] = field(default_factory=list)
    missing_databases: list[str] = field(default_factory=list)
    available_databases: list[str] = field(default_factory=list)
    install_commands: list[str] = field(default_factory=list)


def required_database_files(genome_build: str) -> list[str]:
    """Filenames such as hg38_refGene.txt for each required database."""
    return [f"{genome_build}_{db}.txt" for db in REQUIRED_DATABASES]


def check_annovar_setup(
    annovar_path: Path | str,
    database_path: Path | str,
    genome_build: str = "hg38",
) -> SetupReport:
    """Check the filesystem for ANNOVAR scripts and reference databases.

    Existence checks only: no version or checksum validation.

    Args:
        annovar_path: ANNOVAR installation directory
        database_path: ANNOVAR database directory
        genome_build: Build prefix of the database filenames

    Returns:
        SetupReport; report.ready is the overall verdict
    """
    annovar_path = Path(annovar_path)
    database_path = Path(database_path)

    annovar_dir_found = annovar_path.is_dir()
    database_dir_found = database_path.is_dir()

    missing_scripts = [s for s in REQUIRED_SCRIPTS if not (annovar_path / s).is_file()]

    available_databases = []
    missing_databases = []
    for db_file in required_database_files(genome_build):
        if (database_path / db_file).is_file():
            available_databases.append(db_file)
        else:
            missing_databases.append(db_file)

    install_commands = []
    for db_file in missing_databases:
        db_name = db_file.removeprefix(f"{genome_build}_").removesuffix(".txt")
        install_commands.append(
            f"perl {ANNOTATE_VARIATION} -buildver {genome_build} -downdb "
            f"-webfrom annovar {db_name} {database_path}"
        )

    ready = annovar_dir_found and database_dir_found and not missing_scripts and not missing_databases

    if ready:
        logger.info("annovar_setup_ready", annovar_path=str(annovar_path), database_path=str(database_path))
    else:
        logger.warning(
            "annovar_setup_incomplete",
            annovar_dir_found=annovar_dir_found,
            database_dir_found=database_dir_found,
            missing_scripts=missing_scripts,
            missing_databases=missing_databases,
        )

    return SetupReport(
        ready=ready,
        annovar_dir_found=annovar_dir_found,
        database_dir_found=database_dir_found,
        missing_scripts=missing_scripts,
        missing_databases=missing_databases,
        available_databases=available_databases,
        install_commands=install_commands,
    )
