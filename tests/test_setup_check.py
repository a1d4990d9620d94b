"""Tests for the ANNOVAR installation check."""

import pytest

from pathogenicity_ranking.annotation import check_annovar_setup
from pathogenicity_ranking.annotation.setup_check import required_database_files


@pytest.fixture
def complete_install(tmp_path):
    annovar = tmp_path / "annovar"
    humandb = annovar / "humandb"
    humandb.mkdir(parents=True)
    for script in ["table_annovar.pl", "convert2annovar.pl", "annotate_variation.pl"]:
        (annovar / script).write_text("#!/usr/bin/env perl\n")
    for db_file in required_database_files("hg38"):
        (humandb / db_file).write_text("")
    return annovar, humandb


def test_required_database_files():
    assert required_database_files("hg19") == [
        "hg19_refGene.txt",
        "hg19_avsnp150.txt",
        "hg19_dbnsfp42c.txt",
    ]


def test_complete_install_is_ready(complete_install):
    annovar, humandb = complete_install

    report = check_annovar_setup(annovar, humandb)

    assert report.ready
    assert report.missing_scripts == []
    assert report.missing_databases == []
    assert len(report.available_databases) == 3
    assert report.install_commands == []


def test_missing_database_reports_install_command(complete_install):
    annovar, humandb = complete_install
    (humandb / "hg38_dbnsfp42c.txt").unlink()

    report = check_annovar_setup(annovar, humandb)

    assert not report.ready
    assert report.missing_databases == ["hg38_dbnsfp42c.txt"]
    assert report.install_commands == [
        f"perl annotate_variation.pl -buildver hg38 -downdb -webfrom annovar dbnsfp42c {humandb}"
    ]


def test_missing_script(complete_install):
    annovar, humandb = complete_install
    (annovar / "convert2annovar.pl").unlink()

    report = check_annovar_setup(annovar, humandb)

    assert not report.ready
    assert report.missing_scripts == ["convert2annovar.pl"]


def test_other_build_needs_its_own_databases(complete_install):
    annovar, humandb = complete_install

    report = check_annovar_setup(annovar, humandb, genome_build="hg19")

    assert not report.ready
    assert len(report.missing_databases) == 3


def test_missing_directories(tmp_path):
    report = check_annovar_setup(tmp_path / "annovar", tmp_path / "humandb")

    assert not report.ready
    assert not report.annovar_dir_found
    assert not report.database_dir_found
    assert len(report.missing_scripts) == 3
