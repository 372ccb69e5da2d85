# kraken_batch/preprocessing/kraken_run.py
import os
import re
import logging
from decimal import Decimal, ROUND_DOWN

from kraken_batch.utils.cmd_utils import run_cmd, CommandErrorType
from kraken_batch.utils.db_validation import check_executable

# Kraken2 prints e.g. "1000000 sequences (302.00 Mbp) processed in 12.3s";
# the parenthesised size is optional so the bare form also matches.
PROCESSED_PATTERN = re.compile(r'\b(\d+) sequences(?: \([^)]*\))? processed')
CLASSIFIED_PATTERN = re.compile(r'\b(\d+) sequences classified')


def check_kraken_installation(executable="kraken2"):
    """Check if Kraken2 is installed and available."""
    result = check_executable(executable)
    if not result.success:
        return False, result.error_message
    return True, f"Kraken2 version {result.db_info['version']} found at {result.db_info['path']}"


def parse_kraken_log(text):
    """
    Pull read counts out of Kraken2's diagnostic output.

    Returns a dict with 'total_reads' and 'classified_reads'; a count is
    None when its line is not present. Only the first match of each is used.
    """
    processed = PROCESSED_PATTERN.search(text or "")
    classified = CLASSIFIED_PATTERN.search(text or "")
    return {
        'total_reads': int(processed.group(1)) if processed else None,
        'classified_reads': int(classified.group(1)) if classified else None,
    }


def read_kraken_stats(log_file):
    """Parse a per-sample log file, treating missing counts as zero."""
    text = ""
    if os.path.isfile(log_file):
        with open(log_file, "r", errors="replace") as fh:
            text = fh.read()
    stats = parse_kraken_log(text)
    return {key: value or 0 for key, value in stats.items()}


def calculate_percent_classified(classified_reads, total_reads):
    """
    Percent of reads classified, as a string with two decimals.

    The value is truncated rather than rounded (bc scale=2 semantics);
    zero total reads gives "0.00".
    """
    if not total_reads or total_reads <= 0:
        return "0.00"
    percent = Decimal(classified_reads) * 100 / Decimal(total_reads)
    return str(percent.quantize(Decimal("0.01"), rounding=ROUND_DOWN))


def build_kraken_command(r1_file, r2_file, report_file, output_file, kraken_db,
                         threads=1, executable="kraken2"):
    """Kraken2 command line for one gzip-compressed paired-end sample."""
    return [
        executable,
        "--db", kraken_db,
        "--threads", str(threads),
        "--paired",
        "--gzip-compressed",
        "--report", report_file,
        "--output", output_file,
        r1_file, r2_file,
    ]


def process_single_sample_kraken(sample_id, r1_file, r2_file, report_file, output_file,
                                 log_file, kraken_db, threads=1, executable="kraken2",
                                 timeout=None, logger=None):
    """
    Run Kraken2 for one sample, writing its stderr to log_file (truncated).

    Returns:
        CommandResult; success also requires a report file to have been written
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    cmd = build_kraken_command(r1_file, r2_file, report_file, output_file,
                               kraken_db, threads=threads, executable=executable)

    logger.info(f"Running Kraken2 for sample {sample_id}")
    result = run_cmd(cmd, exit_on_error=False, timeout=timeout, log_file=log_file, append_log=False)

    if not result.success:
        if result.error_type == CommandErrorType.DATABASE_ERROR:
            logger.error(
                f"Database error while running Kraken2 for sample {sample_id}. "
                f"Please verify your database is correctly built and accessible."
            )
        elif result.error_type == CommandErrorType.MEMORY_ERROR:
            logger.error(
                f"Out of memory while running Kraken2 for sample {sample_id}. "
                f"Try using fewer threads, a smaller database, or a machine with more RAM."
            )
        elif result.error_type == CommandErrorType.INPUT_ERROR:
            logger.error(
                f"Input file error while running Kraken2 for sample {sample_id}. "
                f"Check that the input files are readable: {r1_file}, {r2_file}"
            )
        else:
            logger.error(f"Kraken2 run failed for sample {sample_id}: {result.error_message}")
        return result

    if not os.path.isfile(report_file):
        logger.error(f"Kraken2 did not produce a report file for sample {sample_id}")
        result.success = False
        result.error_type = CommandErrorType.OUTPUT_ERROR
        result.error_message = f"Kraken2 report missing: {report_file}"
        return result

    logger.info(f"Kraken2 completed for sample {sample_id}")
    return result
