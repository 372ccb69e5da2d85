# kraken_batch/__init__.py
"""
Kraken Batch - run Kraken2/Bracken over a sample list and collect the results.

This package provides functions for:
1. Running Kraken2 for taxonomic classification, one sample at a time
2. Running Bracken for species-level abundance estimation
3. Keeping a resumable per-sample classification summary
4. Merging per-sample Bracken output into one species abundance table
"""

__version__ = "0.1.0"

import logging

from kraken_batch.logger import LOGGER_NAME

# Library use without setup_logger: keep log_print output off logging.lastResort
logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

from kraken_batch.main import run_taxonomic_classification

from kraken_batch.config import PipelineConfig

from kraken_batch.logger import setup_logger, log_print

from kraken_batch.preprocessing.batch import (
    BatchRunner,
    SampleRecord,
    SampleStatus,
    run_batch,
)

from kraken_batch.preprocessing.kraken_run import parse_kraken_log, calculate_percent_classified

from kraken_batch.analysis.abundance import (
    aggregate_abundance,
    build_abundance_matrix,
    top_species,
)
