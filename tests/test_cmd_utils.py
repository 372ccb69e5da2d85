"""
Tests for running external commands.
"""
import sys

import pytest

from kraken_batch.utils.cmd_utils import CommandErrorType, classify_error, run_cmd


def python_cmd(code):
    return [sys.executable, "-c", code]


def test_success_captures_stdout():
    result = run_cmd(python_cmd("print('hello')"), exit_on_error=False)
    assert result
    assert result.returncode == 0
    assert result.stdout.strip() == "hello"


def test_stderr_goes_to_log_file(tmp_path):
    log = tmp_path / "s.log"
    log.write_text("stale\n")

    run_cmd(python_cmd("import sys; sys.stderr.write('first\\n')"), exit_on_error=False, log_file=str(log))
    run_cmd(python_cmd("import sys; sys.stderr.write('second\\n')"), exit_on_error=False,
            log_file=str(log), append_log=True)

    assert log.read_text() == "first\nsecond\n"


def test_failure_is_classified_from_log(tmp_path):
    log = tmp_path / "s.log"
    code = "import sys; sys.stderr.write('ERROR: No such file or directory\\n'); sys.exit(2)"
    result = run_cmd(python_cmd(code), exit_on_error=False, log_file=str(log))
    assert not result
    assert result.returncode == 2
    assert result.error_type == CommandErrorType.INPUT_ERROR
    assert "No such file" in result.stderr


def test_timeout():
    result = run_cmd(python_cmd("import time; time.sleep(5)"), exit_on_error=False, timeout=0.5)
    assert not result
    assert result.error_type == CommandErrorType.TIMEOUT_ERROR


def test_missing_executable():
    result = run_cmd(["definitely-not-a-real-kraken-binary"], exit_on_error=False)
    assert result.error_type == CommandErrorType.NOT_FOUND


def test_exit_on_error():
    with pytest.raises(SystemExit):
        run_cmd(python_cmd("import sys; sys.exit(1)"), exit_on_error=True)


@pytest.mark.parametrize("stderr, returncode, expected", [
    ("", 127, CommandErrorType.NOT_FOUND),
    ("kraken2: database (\"/db\") does not exist", 1, CommandErrorType.DATABASE_ERROR),
    ("std::bad_alloc", 134, CommandErrorType.MEMORY_ERROR),
    ("write error: No space left on device", 1, CommandErrorType.DISK_ERROR),
    ("Usage: kraken2 [options] <filename(s)>", 64, CommandErrorType.CONFIG_ERROR),
    ("something odd", 3, CommandErrorType.UNKNOWN_ERROR),
])
def test_classify_error(stderr, returncode, expected):
    assert classify_error(stderr, returncode)[0] == expected
