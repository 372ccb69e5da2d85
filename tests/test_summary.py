"""
Tests for the keyed per-sample tables.
"""
import pytest

from kraken_batch.preprocessing.summary import (
    SUMMARY_COLUMNS,
    open_status_table,
    open_summary_table,
)


def read_lines(path):
    return path.read_text().splitlines()


def test_write_creates_header_only_table(tmp_path):
    path = tmp_path / "classification_summary.tsv"
    open_summary_table(str(path), ["S1"]).write()
    assert read_lines(path) == ["\t".join(SUMMARY_COLUMNS)]


def test_upsert_replaces_instead_of_duplicating(tmp_path):
    path = tmp_path / "summary.tsv"
    table = open_summary_table(str(path), ["S1", "S2"])
    table.upsert(["S1", 10, 5, "50.00", "A"])
    table.upsert(["S1", 10, 6, "60.00", "B"])

    lines = read_lines(path)
    assert len(lines) == 2
    assert lines[1] == "S1\t10\t6\t60.00\tB"


def test_rows_follow_roster_order(tmp_path):
    path = tmp_path / "summary.tsv"
    table = open_summary_table(str(path), ["S1", "S2", "S3"])
    table.upsert(["S3", 1, 1, "100.00", "C"])
    table.upsert(["S1", 1, 0, "0.00", "N/A"])
    assert [line.split("\t")[0] for line in read_lines(path)[1:]] == ["S1", "S3"]


def test_existing_rows_survive_reopen(tmp_path):
    path = tmp_path / "summary.tsv"
    open_summary_table(str(path), ["OLD"]).upsert(["OLD", 1, 1, "100.00", "X"])

    table = open_summary_table(str(path), ["S1"])
    assert "OLD" in table
    table.upsert(["S1", 2, 1, "50.00", "Y"])

    # Rows outside the current roster are kept after roster rows
    assert [line.split("\t")[0] for line in read_lines(path)[1:]] == ["S1", "OLD"]
    assert not (tmp_path / "summary.tsv.tmp").exists()


def test_upsert_rejects_wrong_width(tmp_path):
    table = open_status_table(str(tmp_path / "status.tsv"), [])
    with pytest.raises(ValueError):
        table.upsert(["S1", "completed"])
