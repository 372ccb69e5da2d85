# kraken_batch/analysis/abundance.py
"""
Combine per-sample Bracken estimates into one species-by-sample table.

Rows are species (in the order they are first seen), columns are the roster
samples that have Bracken data, in roster order, and every cell holds the
fraction of total reads, 0 where a species was not observed in a sample.
The table is written for the R statistics notebook (read.delim(row.names = 1)).
"""
import os
import logging

import pandas as pd
from tqdm import tqdm

from kraken_batch.logger import log_print
from kraken_batch.utils.sample_utils import read_sample_list

NAME_COLUMN = "name"
FRACTION_COLUMN = "fraction_total_reads"
TOP_N = 10
INDEX_LABEL = "Species"


def load_bracken_abundance(filepath, logger=None):
    """
    Read one Bracken output file into a {species: fraction} dict.

    Returns None when the file cannot be used (empty, unparsable or missing
    the name / fraction_total_reads columns).
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    try:
        df = pd.read_csv(filepath, sep='\t', header=0)
    except pd.errors.EmptyDataError:
        logger.warning(f"Bracken file is empty: {filepath}")
        return None
    except pd.errors.ParserError as e:
        logger.warning(f"Could not parse Bracken file {filepath}: {e}")
        return None

    missing = [col for col in (NAME_COLUMN, FRACTION_COLUMN) if col not in df.columns]
    if missing:
        logger.warning(f"Bracken file {filepath} lacks column(s): {', '.join(missing)}")
        return None

    fractions = pd.to_numeric(df[FRACTION_COLUMN], errors='coerce')
    abundances = {}
    for species, fraction in zip(df[NAME_COLUMN], fractions):
        if pd.isna(species) or pd.isna(fraction):
            continue
        abundances[str(species)] = float(fraction)
    return abundances


def build_abundance_matrix(samples, bracken_dir, show_progress=True, logger=None):
    """
    Pivot the Bracken files of the given samples into a dense DataFrame.

    Samples without a usable file are left out entirely rather than shown
    as all-zero columns.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    species_dict = {}
    for sample in tqdm(samples, desc="Reading Bracken files", unit="sample", disable=not show_progress):
        bracken_file = os.path.join(bracken_dir, f"{sample}.bracken")
        if not os.path.isfile(bracken_file):
            log_print(f"Warning: No Bracken output for {sample}", level='warning')
            continue

        abundances = load_bracken_abundance(bracken_file, logger)
        if abundances is None:
            log_print(f"Warning: Unusable Bracken output for {sample}", level='warning')
            continue
        if not abundances:
            logger.info(f"Bracken output for {sample} lists no species; leaving it out")

        for species, fraction in abundances.items():
            species_dict.setdefault(species, {})[sample] = fraction

    abundance_df = pd.DataFrame.from_dict(species_dict, orient='index')
    available_samples = [s for s in samples if s in abundance_df.columns]
    abundance_df = abundance_df.reindex(index=list(species_dict), columns=available_samples)
    abundance_df = abundance_df.fillna(0.0).astype(float)
    return abundance_df


def top_species(abundance_df, n=TOP_N):
    """Species with the largest summed fraction, descending; ties keep row order."""
    totals = abundance_df.sum(axis=1)
    return totals.sort_values(ascending=False, kind='mergesort').head(n)


def write_abundance_matrix(abundance_df, output_file):
    os.makedirs(os.path.dirname(output_file) or ".", exist_ok=True)
    abundance_df.to_csv(output_file, sep='\t', index_label=INDEX_LABEL)
    return output_file


def aggregate_abundance(config, samples=None, logger=None):
    """
    Build, write and report the species abundance table.

    Returns:
        Tuple of (output_file, abundance DataFrame)
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    if samples is None:
        samples = read_sample_list(config.sample_list, logger)

    log_print("Creating combined abundance table...")
    abundance_df = build_abundance_matrix(samples, config.bracken_output_dir,
                                          show_progress=config.show_progress, logger=logger)
    output_file = write_abundance_matrix(abundance_df, config.abundance_file)

    log_print(f"Species abundance table saved to: {output_file}")
    log_print(f"Total species detected: {len(abundance_df)}")
    log_print(f"Samples included: {len(abundance_df.columns)}")
    log_print(f"\nTop {TOP_N} most abundant species:")
    for species, total in top_species(abundance_df).items():
        log_print(f"  {species}\t{total:.6f}")

    return output_file, abundance_df
