# kraken_batch/cli.py
import sys
import argparse
import logging

from kraken_batch.config import (
    PipelineConfig,
    DEFAULT_READ_LENGTH,
    DEFAULT_THRESHOLD,
    DEFAULT_R1_SUFFIX,
    DEFAULT_R2_SUFFIX,
)
from kraken_batch.logger import setup_logger, log_print
from kraken_batch.main import run_taxonomic_classification
from kraken_batch.utils.file_utils import check_file_exists
from kraken_batch.utils.resource_utils import limit_memory_usage
from kraken_batch.utils.sample_utils import read_sample_list, describe_samples


def build_parser():
    parser = argparse.ArgumentParser(
        prog="kraken-batch",
        description="Kraken Batch: run Kraken2/Bracken over a sample list and build a species abundance table",
    )

    # --- 1. Global Options ---
    global_group = parser.add_argument_group("Global Options")
    global_group.add_argument("--log-file", default=None, help="Path to combined log file")
    global_group.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default=INFO)",
    )
    global_group.add_argument(
        "--max-memory", type=int, default=None, help="Maximum memory usage in MB (default: unlimited)"
    )
    global_group.add_argument(
        "--list-samples", action="store_true",
        help="List roster samples with input/output availability, then exit",
    )
    global_group.add_argument(
        "--no-progress", action="store_true", help="Disable progress bars"
    )

    # --- 2. Input/Output Options ---
    io_group = parser.add_argument_group("Input/Output Options")
    io_group.add_argument("--sample-list", required=True, help="Text file with one sample id per line")
    io_group.add_argument(
        "--input-dir", required=True,
        help="Directory holding the host-removed paired FASTQ files",
    )
    io_group.add_argument(
        "--output-dir", default="./taxonomic", help="Directory for Kraken2/Bracken output and tables"
    )
    io_group.add_argument(
        "--logs-dir", default=None, help="Directory for per-sample logs (default: {output-dir}/logs)"
    )
    io_group.add_argument(
        "--r1-suffix", default=DEFAULT_R1_SUFFIX, help=f"Forward read file suffix (default: {DEFAULT_R1_SUFFIX})"
    )
    io_group.add_argument(
        "--r2-suffix", default=DEFAULT_R2_SUFFIX, help=f"Reverse read file suffix (default: {DEFAULT_R2_SUFFIX})"
    )

    # --- 3. Kraken/Bracken Options ---
    kraken_group = parser.add_argument_group("Kraken/Bracken Options")
    kraken_group.add_argument("--kraken-db", help="Path to Kraken2 database (also holds the Bracken k-mer files)")
    kraken_group.add_argument("--threads", type=int, default=1, help="Threads passed to Kraken2")
    kraken_group.add_argument(
        "--read-length", type=int, default=DEFAULT_READ_LENGTH,
        help=f"Read length after trimming, selects the Bracken database (default: {DEFAULT_READ_LENGTH})",
    )
    kraken_group.add_argument(
        "--threshold", type=int, default=DEFAULT_THRESHOLD,
        help=f"Minimum reads for Bracken abundance estimation (default: {DEFAULT_THRESHOLD})",
    )
    kraken_group.add_argument(
        "--timeout", type=float, default=None,
        help="Timeout in seconds for each Kraken2/Bracken invocation (default: none)",
    )
    kraken_group.add_argument("--kraken2-executable", dest="kraken_executable", default="kraken2")
    kraken_group.add_argument("--bracken-executable", dest="bracken_executable", default="bracken")

    # --- 4. Stage Options ---
    stage_group = parser.add_argument_group("Stage Options")
    stage_group.add_argument(
        "--skip-classification", action="store_true",
        help="Skip Kraken2/Bracken and only aggregate existing Bracken output",
    )
    stage_group.add_argument(
        "--skip-aggregation", action="store_true", help="Skip building the species abundance table"
    )

    return parser


def list_samples(config):
    samples = read_sample_list(config.sample_list)
    log_print(f"{len(samples)} samples in {config.sample_list}")
    for sample, r1_ok, r2_ok, done in describe_samples(samples, config):
        inputs = "inputs ok" if r1_ok and r2_ok else "inputs MISSING"
        state = "done" if done else "pending"
        log_print(f"  {sample}\t{inputs}\t{state}")


def main(argv=None):
    """Main entry point for the kraken-batch CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logger(log_file=args.log_file, log_level=getattr(logging, args.log_level))

    try:
        config = PipelineConfig.from_args(args)
    except ValueError as e:
        log_print(f"ERROR: {e}", level="error")
        sys.exit(1)

    if args.max_memory:
        if limit_memory_usage(args.max_memory):
            log_print(f"Set memory limit to {args.max_memory} MB", level="info")
        else:
            log_print("Failed to set memory limit, proceeding with unlimited memory", level="warning")

    if not check_file_exists(config.sample_list, "Sample list"):
        sys.exit(1)

    if args.list_samples:
        list_samples(config)
        sys.exit(0)

    if not args.skip_classification and not args.kraken_db:
        log_print("ERROR: --kraken-db is required unless using --skip-classification", level="error")
        sys.exit(1)

    outcome = run_taxonomic_classification(
        config,
        skip_classification=args.skip_classification,
        skip_aggregation=args.skip_aggregation,
    )
    if not outcome['success']:
        sys.exit(1)
    return 0


if __name__ == "__main__":
    main()
