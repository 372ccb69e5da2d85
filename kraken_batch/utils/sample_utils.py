# kraken_batch/utils/sample_utils.py
import os
import logging


def read_sample_list(sample_list_file, logger=None):
    """
    Read the sample roster.

    One sample id per line. Blank lines and lines starting with '#' are
    ignored, surrounding whitespace is stripped and order is kept. A sample
    listed twice is kept at its first position.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    samples = []
    seen = set()
    with open(sample_list_file, "r", encoding="utf-8-sig") as fh:
        for line in fh:
            sample = line.strip()
            if not sample or sample.startswith('#'):
                continue
            if sample in seen:
                logger.warning(f"Sample {sample} listed more than once in {sample_list_file}; keeping the first entry")
                continue
            seen.add(sample)
            samples.append(sample)
    return samples


def paired_input_files(sample, input_dir, r1_suffix, r2_suffix):
    """Return the (R1, R2) paths for a sample."""
    return (
        os.path.join(input_dir, f"{sample}{r1_suffix}"),
        os.path.join(input_dir, f"{sample}{r2_suffix}"),
    )


def describe_samples(samples, config):
    """
    Yield (sample, r1_ok, r2_ok, done) for each roster sample.

    Used by --list-samples to show which samples are ready and which have
    already been processed.
    """
    for sample in samples:
        r1, r2 = paired_input_files(sample, config.input_dir, config.r1_suffix, config.r2_suffix)
        done = os.path.isfile(os.path.join(config.bracken_output_dir, f"{sample}.bracken"))
        yield sample, os.path.isfile(r1), os.path.isfile(r2), done
