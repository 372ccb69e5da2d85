"""
Tests for the once-per-batch prerequisite checks.
"""
from unittest.mock import patch

from kraken_batch.utils import db_validation
from kraken_batch.utils.db_validation import (
    DatabaseType,
    bracken_kmer_distrib_path,
    check_executable,
    validate_bracken_db,
    validate_kraken_db,
)


def test_kraken_db_missing_directory(tmp_path):
    result = validate_kraken_db(str(tmp_path / "oral_microbiome_db"))
    assert not result
    assert result.db_type == DatabaseType.KRAKEN
    assert any("kraken2-build --build --db oral_microbiome_db" in r for r in result.recommendations)


def test_kraken_db_missing_index_files_is_only_a_warning(tmp_path):
    result = validate_kraken_db(str(tmp_path))
    assert result.success
    assert any("hash.k2d" in r for r in result.recommendations)


def test_kraken_db_lists_bracken_files(workspace):
    result = validate_kraken_db(str(workspace / "kraken_db"))
    assert result.success
    assert result.recommendations == []
    assert result.db_info["bracken_files"] == ["database151mers.kmer_distrib"]


def test_bracken_db_for_read_length(workspace):
    db = str(workspace / "kraken_db")
    assert validate_bracken_db(db, 151).success

    result = validate_bracken_db(db, 100, threads=4)
    assert not result.success
    assert "100bp" in result.error_message
    assert f'bracken-build -d "{db}" -t 4 -k 35 -l 100' in result.recommendations
    assert any("database151mers.kmer_distrib" in r for r in result.recommendations)


def test_bracken_db_explicit_kmer_file(workspace, tmp_path):
    db = str(workspace / "kraken_db")
    elsewhere = tmp_path / "custom.kmer_distrib"

    result = validate_bracken_db(db, 151, kmer_file=str(elsewhere))
    assert not result.success
    assert result.files_checked == [str(elsewhere)]

    elsewhere.write_text("x")
    assert validate_bracken_db(db, 151, kmer_file=str(elsewhere)).success


def test_kmer_distrib_path():
    assert bracken_kmer_distrib_path("/db", 151).endswith("database151mers.kmer_distrib")


def test_check_executable_not_on_path():
    with patch.object(db_validation.shutil, "which", return_value=None):
        result = check_executable("kraken2")
    assert not result.success
    assert "not found in PATH" in result.error_message


def test_check_executable_reads_version(tmp_path):
    completed = db_validation.subprocess.CompletedProcess(
        args=[], returncode=0, stdout="Kraken version 2.1.3\nCopyright 2013-2023\n", stderr="")
    with patch.object(db_validation.shutil, "which", return_value="/usr/bin/kraken2"), \
            patch.object(db_validation.subprocess, "run", return_value=completed):
        result = check_executable("kraken2")
    assert result.success
    assert result.db_info == {"path": "/usr/bin/kraken2", "version": "2.1.3"}


def test_check_executable_tolerates_version_failure():
    with patch.object(db_validation.shutil, "which", return_value="/usr/bin/bracken"), \
            patch.object(db_validation.subprocess, "run", side_effect=OSError("exec format error")):
        result = check_executable("bracken")
    assert result.success
    assert result.db_info["version"] == "unknown"
