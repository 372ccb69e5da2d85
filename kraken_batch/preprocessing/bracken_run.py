# kraken_batch/preprocessing/bracken_run.py
import os
import logging

from kraken_batch.utils.cmd_utils import run_cmd
from kraken_batch.utils.db_validation import check_executable
from kraken_batch.utils.file_utils import is_nonempty_file

NOT_AVAILABLE = "N/A"


def check_bracken_installation(executable="bracken"):
    """Check if Bracken is installed and available."""
    result = check_executable(executable, version_args=("-v",))
    if not result.success:
        return False, result.error_message
    return True, f"Bracken found at {result.db_info['path']}"


def build_bracken_command(kreport_file, output_file, report_file, kraken_db,
                          read_length=151, taxonomic_level="S", threshold=10,
                          executable="bracken"):
    """Bracken command line re-estimating abundance from a Kraken2 report."""
    return [
        executable,
        "-d", kraken_db,
        "-i", kreport_file,
        "-o", output_file,
        "-w", report_file,
        "-r", str(read_length),
        "-l", taxonomic_level,
        "-t", str(threshold),
    ]


def process_single_sample_bracken(sample_id, kreport_file, output_file, report_file,
                                  log_file, kraken_db, read_length=151,
                                  taxonomic_level="S", threshold=10,
                                  executable="bracken", timeout=None, logger=None):
    """
    Run Bracken for one sample, appending its stderr to log_file.

    Returns:
        CommandResult
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    cmd = build_bracken_command(kreport_file, output_file, report_file, kraken_db,
                                read_length=read_length, taxonomic_level=taxonomic_level,
                                threshold=threshold, executable=executable)

    logger.info(f"Running Bracken for sample {sample_id} at {taxonomic_level} level")
    result = run_cmd(cmd, exit_on_error=False, timeout=timeout, log_file=log_file, append_log=True)

    if not result.success:
        logger.error(f"Bracken run failed for sample {sample_id}")
        return result

    logger.info(f"Bracken completed for sample {sample_id}")
    return result


def read_top_species(bracken_file):
    """
    Name of the dominant taxon in a Bracken abundance file.

    This is the first column of the first non-blank data row (the header is
    skipped). Returns NOT_AVAILABLE for a missing, empty or header-only file.
    """
    if not is_nonempty_file(bracken_file):
        return NOT_AVAILABLE

    with open(bracken_file, "r", errors="replace") as fh:
        next(fh, None)
        for line in fh:
            if not line.strip():
                continue
            name = line.rstrip('\n').split('\t')[0].strip()
            return name or NOT_AVAILABLE
    return NOT_AVAILABLE


def bracken_output_ready(bracken_file):
    """True when a previous run left a Bracken estimate for this sample."""
    return os.path.isfile(bracken_file)


def discard_partial_outputs(*paths):
    """Remove what a failed Bracken run left behind, so only finished estimates count as done."""
    logger = logging.getLogger('kraken_batch')
    for path in paths:
        if os.path.isfile(path):
            os.remove(path)
            logger.debug(f"Removed partial Bracken output {path}")
