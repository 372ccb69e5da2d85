# kraken_batch/main.py
"""
Main module for kraken_batch package.

Runs the two stages in order: the Kraken2/Bracken batch over every roster
sample, then the species abundance aggregation over their Bracken output.
"""
import logging
import time
from datetime import datetime

from kraken_batch.logger import log_print
from kraken_batch.preprocessing.batch import run_batch
from kraken_batch.analysis.abundance import aggregate_abundance
from kraken_batch.utils.file_utils import check_file_exists
from kraken_batch.utils.sample_utils import read_sample_list


def print_final_summary(config, logger=None):
    log_print("")
    log_print("=== TAXONOMIC CLASSIFICATION COMPLETED ===")
    log_print("")
    log_print("Results:")
    log_print(f"  - Kraken2 reports: {config.kraken_output_dir}/")
    log_print(f"  - Bracken reports: {config.bracken_output_dir}/")
    log_print(f"  - Species abundance table: {config.abundance_file}")
    log_print(f"  - Classification summary: {config.summary_file}")
    log_print(f"  - Sample status: {config.status_file}")
    log_print("")
    log_print("Next steps:")
    log_print("  1. Review species abundance table")
    log_print("  2. Run statistical analysis with R (02_statistical_analysis.Rmd)")


def run_taxonomic_classification(config, skip_classification=False, skip_aggregation=False, logger=None):
    """
    Run the Kraken2/Bracken batch followed by the abundance aggregation.

    Args:
        config: PipelineConfig
        skip_classification: Only aggregate existing Bracken output
        skip_aggregation: Only run the batch
        logger: Logger instance

    Returns:
        Dict with 'records' (list of SampleRecord), 'abundance_file' and
        'success' (False only when a prerequisite check failed)
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    log_print("=== TAXONOMIC CLASSIFICATION WITH KRAKEN2/BRACKEN ===")
    log_print(f"Date: {datetime.now():%Y-%m-%d %H:%M:%S}")
    log_print("")
    start_time = time.time()

    outcome = {'records': [], 'abundance_file': None, 'success': True}

    if not check_file_exists(config.sample_list, "Sample list"):
        outcome['success'] = False
        return outcome
    samples = read_sample_list(config.sample_list, logger)

    if skip_classification:
        log_print("Skipping Kraken2/Bracken classification stage")
    else:
        records, ok = run_batch(config, logger)
        outcome['records'] = records
        if not ok:
            outcome['success'] = False
            return outcome

    if skip_aggregation:
        log_print("Skipping abundance aggregation stage")
    else:
        log_print("")
        abundance_file, _ = aggregate_abundance(config, samples=samples, logger=logger)
        outcome['abundance_file'] = abundance_file

    print_final_summary(config, logger)

    elapsed = time.time() - start_time
    hh, rr = divmod(elapsed, 3600)
    mm, ss = divmod(rr, 60)
    logger.info(f"Pipeline finished in {int(hh)}h {int(mm)}m {int(ss)}s")
    return outcome
