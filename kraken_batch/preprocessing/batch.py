# kraken_batch/preprocessing/batch.py
"""
Sequential Kraken2 -> Bracken driver over a sample roster.

Each sample is classified with Kraken2, its read counts are scraped from the
Kraken2 log, and Bracken re-estimates species abundance from the report.
A sample whose Bracken estimate already exists is treated as done, so the
batch can be re-run after an interruption and only pending samples run.
"""
import os
import logging
from collections import Counter
from enum import Enum

from kraken_batch.logger import log_print
from kraken_batch.preprocessing.kraken_run import (
    check_kraken_installation,
    process_single_sample_kraken,
    read_kraken_stats,
    calculate_percent_classified,
)
from kraken_batch.preprocessing.bracken_run import (
    NOT_AVAILABLE,
    check_bracken_installation,
    process_single_sample_bracken,
    read_top_species,
    bracken_output_ready,
    discard_partial_outputs,
)
from kraken_batch.preprocessing.summary import open_summary_table, open_status_table
from kraken_batch.utils.db_validation import (
    DatabaseType,
    DatabaseValidationResult,
    validate_kraken_db,
    validate_bracken_db,
    check_architecture,
    print_database_validation_result,
)
from kraken_batch.utils.file_utils import append_to_log, is_nonempty_file
from kraken_batch.utils.resource_utils import track_peak_memory, log_resource_usage
from kraken_batch.utils.sample_utils import read_sample_list, paired_input_files


class SampleStatus(Enum):
    PENDING = "pending"
    SKIPPED_MISSING_INPUT = "skipped-missing-input"
    SKIPPED_ALREADY_DONE = "skipped-already-done"
    COMPLETED = "completed"
    COMPLETED_NO_ABUNDANCE = "completed-no-abundance"
    FAILED = "failed"


class SampleRecord:
    """Input and output locations plus the outcome for one roster sample."""

    def __init__(self, sample_id, config):
        self.sample_id = sample_id
        self.r1_file, self.r2_file = paired_input_files(
            sample_id, config.input_dir, config.r1_suffix, config.r2_suffix
        )
        self.kraken_report = os.path.join(config.kraken_output_dir, f"{sample_id}.kreport")
        self.kraken_output = os.path.join(config.kraken_output_dir, f"{sample_id}.kraken")
        self.bracken_output = os.path.join(config.bracken_output_dir, f"{sample_id}.bracken")
        self.bracken_report = os.path.join(config.bracken_output_dir, f"{sample_id}.breport")
        self.log_file = os.path.join(config.sample_log_dir, f"{sample_id}.log")
        self.status = SampleStatus.PENDING
        self.detail = ""
        self.summary_row = None

    def mark(self, status, detail=""):
        self.status = status
        self.detail = detail

    def __repr__(self):
        return f"SampleRecord({self.sample_id!r}, status={self.status.value!r})"


def check_prerequisites(config, logger=None):
    """
    Run the once-per-batch checks.

    Returns a list of DatabaseValidationResult; the batch may only start when
    every result is successful.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    check_architecture(logger)

    results = []
    for label, executable, check in (
        ("kraken2", config.kraken_executable, check_kraken_installation),
        ("bracken", config.bracken_executable, check_bracken_installation),
    ):
        ok, message = check(executable)
        results.append(DatabaseValidationResult(
            success=ok,
            db_type=DatabaseType.EXECUTABLE,
            error_message=None if ok else message,
            recommendations=[] if ok else [f"Install {label} or pass its path with --{label}-executable"],
            db_info={"executable": message} if ok else None,
        ))

    kraken_result = validate_kraken_db(config.kraken_db, logger)
    results.append(kraken_result)
    # The k-mer distribution lives inside the Kraken2 database directory
    if kraken_result.success:
        results.append(validate_bracken_db(config.kraken_db, config.read_length,
                                           threads=config.threads, kmer_file=config.bracken_kmer_distrib,
                                           logger=logger))

    for result in results:
        print_database_validation_result(result, logger)
    return results


class BatchRunner:
    """Classify every roster sample with Kraken2 and Bracken, one at a time."""

    def __init__(self, config, logger=None):
        self.config = config
        self.logger = logger or logging.getLogger('kraken_batch')
        self.samples = []
        self.summary = None
        self.status_table = None

    def _note(self, record, message, level='warning'):
        log_print(f"  {message}", level=level)
        append_to_log(record.log_file, f"{level.upper()}: {message}")

    def _record_status(self, record):
        self.status_table.upsert([record.sample_id, record.status.value, record.detail])

    def _summary_row(self, record, top_species):
        stats = read_kraken_stats(record.log_file)
        total = stats['total_reads']
        classified = stats['classified_reads']
        return [
            record.sample_id,
            total,
            classified,
            calculate_percent_classified(classified, total),
            top_species,
        ]

    def process_sample(self, sample_id):
        """Run one sample through both tools and return its SampleRecord."""
        config = self.config
        record = SampleRecord(sample_id, config)

        if not os.path.isfile(record.r1_file) or not os.path.isfile(record.r2_file):
            missing = [f for f in (record.r1_file, record.r2_file) if not os.path.isfile(f)]
            record.mark(SampleStatus.SKIPPED_MISSING_INPUT, f"missing input: {', '.join(missing)}")
            self._note(record, "Warning: Input files not found, skipping")
            return record

        if bracken_output_ready(record.bracken_output):
            record.mark(SampleStatus.SKIPPED_ALREADY_DONE, "Bracken output already present")
            log_print("  Already processed, skipping...")
            if record.sample_id not in self.summary:
                # Finished in an earlier run that died before its row was saved
                record.summary_row = self._summary_row(record, read_top_species(record.bracken_output))
                self.summary.upsert(record.summary_row)
                self.logger.info(f"Recovered missing summary row for sample {sample_id}")
            return record

        log_print("  Running Kraken2...")
        kraken_result = process_single_sample_kraken(
            sample_id, record.r1_file, record.r2_file,
            record.kraken_report, record.kraken_output, record.log_file,
            config.kraken_db, threads=config.threads,
            executable=config.kraken_executable, timeout=config.timeout,
            logger=self.logger,
        )
        if not kraken_result.success:
            record.mark(SampleStatus.FAILED, f"kraken2: {kraken_result.error_message}")
            self._note(record, f"Warning: Kraken2 failed for {sample_id}")
            return record

        log_print("  Running Bracken...")
        bracken_result = process_single_sample_bracken(
            sample_id, record.kraken_report, record.bracken_output,
            record.bracken_report, record.log_file, config.kraken_db,
            read_length=config.read_length, taxonomic_level=config.taxonomic_level,
            threshold=config.threshold, executable=config.bracken_executable,
            timeout=config.timeout, logger=self.logger,
        )
        if not bracken_result.success:
            discard_partial_outputs(record.bracken_output, record.bracken_report)
            record.mark(SampleStatus.FAILED, f"bracken: {bracken_result.error_message}")
            self._note(record, f"Warning: Bracken failed for {sample_id}")
            return record

        if is_nonempty_file(record.bracken_output):
            record.summary_row = self._summary_row(record, read_top_species(record.bracken_output))
            record.mark(SampleStatus.COMPLETED)
            self.summary.upsert(record.summary_row)
            log_print("  Completed")
        else:
            record.summary_row = self._summary_row(record, NOT_AVAILABLE)
            record.mark(SampleStatus.COMPLETED_NO_ABUNDANCE, "Bracken produced no abundance estimates")
            self.summary.upsert(record.summary_row)
            self._note(record, "Completed but no Bracken output")

        return record

    @track_peak_memory
    def run(self, samples=None):
        """
        Process every sample in roster order.

        Returns the list of SampleRecords. Per-sample problems are recorded on
        the records and never stop the batch.
        """
        config = self.config
        self.samples = samples if samples is not None else read_sample_list(config.sample_list, self.logger)
        config.make_output_dirs()

        self.summary = open_summary_table(config.summary_file, self.samples, self.logger)
        self.summary.write()
        self.status_table = open_status_table(config.status_file, self.samples, self.logger)

        total = len(self.samples)
        log_print(f"Processing {total} samples")
        log_print(f"Database: {os.path.basename(os.path.normpath(config.kraken_db))}")
        log_print(f"Read length: {config.read_length}bp")
        log_print("Taxonomic level: Species")

        records = []
        for index, sample_id in enumerate(self.samples, 1):
            log_print(f"[{index}/{total}] Processing: {sample_id}")
            record = self.process_sample(sample_id)
            self._record_status(record)
            log_resource_usage(self.logger, sample_id)
            records.append(record)

        counts = Counter(record.status for record in records)
        tally = ", ".join(f"{status.value}={counts[status]}" for status in SampleStatus if counts[status])
        log_print(f"Batch finished: {tally or 'no samples'}")
        return records


def run_batch(config, logger=None):
    """
    Check prerequisites, then run the whole batch.

    Returns (records, ok). ok is False, and no sample is touched, when a
    prerequisite check fails.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    results = check_prerequisites(config, logger)
    if not all(results):
        log_print("ERROR: prerequisite checks failed; no samples were processed", level='error')
        return [], False

    log_print("Kraken2 and Bracken databases found")
    runner = BatchRunner(config, logger)
    return runner.run(), True
