"""
Tests for Kraken2 log scraping and command construction.
"""
from unittest.mock import patch

import pytest

from kraken_batch.preprocessing import kraken_run
from kraken_batch.preprocessing.kraken_run import (
    build_kraken_command,
    calculate_percent_classified,
    parse_kraken_log,
    read_kraken_stats,
)
from kraken_batch.utils.cmd_utils import CommandResult, CommandErrorType

from conftest import KRAKEN_LOG


def test_parse_plain_patterns():
    text = "1000000 sequences processed\n950000 sequences classified\n"
    assert parse_kraken_log(text) == {'total_reads': 1000000, 'classified_reads': 950000}


def test_parse_real_kraken2_stderr():
    stats = parse_kraken_log(KRAKEN_LOG)
    assert stats['total_reads'] == 1000000
    assert stats['classified_reads'] == 950000


def test_unclassified_line_is_not_mistaken_for_classified():
    stats = parse_kraken_log("10 sequences processed\n7 sequences unclassified\n")
    assert stats == {'total_reads': 10, 'classified_reads': None}


def test_missing_patterns_give_none():
    assert parse_kraken_log("Loading database information... failed") == {
        'total_reads': None, 'classified_reads': None,
    }
    assert parse_kraken_log("") == {'total_reads': None, 'classified_reads': None}
    assert parse_kraken_log(None) == {'total_reads': None, 'classified_reads': None}


def test_first_match_wins():
    text = "5 sequences processed\n9 sequences processed\n3 sequences classified\n"
    assert parse_kraken_log(text) == {'total_reads': 5, 'classified_reads': 3}


def test_read_kraken_stats_defaults_to_zero(tmp_path):
    assert read_kraken_stats(str(tmp_path / "missing.log")) == {'total_reads': 0, 'classified_reads': 0}
    log = tmp_path / "s.log"
    log.write_text("42 sequences processed\n")
    assert read_kraken_stats(str(log)) == {'total_reads': 42, 'classified_reads': 0}


@pytest.mark.parametrize("classified, total, expected", [
    (950000, 1000000, "95.00"),
    (0, 0, "0.00"),
    (5, 0, "0.00"),
    (0, 10, "0.00"),
    (10, 10, "100.00"),
    (1, 3, "33.33"),
    (2, 3, "66.66"),
])
def test_percent_classified(classified, total, expected):
    assert calculate_percent_classified(classified, total) == expected


def test_build_kraken_command():
    cmd = build_kraken_command("a_1.fq.gz", "a_2.fq.gz", "a.kreport", "a.kraken", "/db", threads=8)
    assert cmd == [
        "kraken2", "--db", "/db", "--threads", "8", "--paired", "--gzip-compressed",
        "--report", "a.kreport", "--output", "a.kraken", "a_1.fq.gz", "a_2.fq.gz",
    ]


def test_process_sample_truncates_log_and_requires_report(tmp_path):
    report = tmp_path / "a.kreport"
    calls = []

    def fake_run_cmd(cmd, **kwargs):
        calls.append(kwargs)
        return CommandResult(success=True, error_type=CommandErrorType.SUCCESS, returncode=0, cmd=cmd)

    with patch.object(kraken_run, "run_cmd", side_effect=fake_run_cmd):
        result = kraken_run.process_single_sample_kraken(
            "a", "r1", "r2", str(report), str(tmp_path / "a.kraken"),
            str(tmp_path / "a.log"), "/db", timeout=30,
        )

    assert calls[0]['append_log'] is False
    assert calls[0]['timeout'] == 30
    assert not result.success
    assert result.error_type == CommandErrorType.OUTPUT_ERROR
