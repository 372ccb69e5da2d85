import logging
import pathlib

import pytest

from kraken_batch.config import PipelineConfig
from kraken_batch.logger import LOGGER_NAME

KRAKEN_LOG = """Loading database information... done.
1000000 sequences (302.00 Mbp) processed in 12.345s (4860.1 Kseq/m, 1467.75 Mbp/m).
  950000 sequences classified (95.00%)
  50000 sequences unclassified (5.00%)
"""

BRACKEN_HEADER = "name\ttaxonomy_id\ttaxonomy_lvl\tkraken_assigned_reads\tadded_reads\tnew_est_reads\tfraction_total_reads\n"


def bracken_table(rows):
    """Bracken output text for [(name, fraction), ...]."""
    lines = [BRACKEN_HEADER]
    for i, (name, fraction) in enumerate(rows, 1):
        lines.append(f"{name}\t{1000 + i}\tS\t100\t10\t110\t{fraction}\n")
    return "".join(lines)


@pytest.fixture(autouse=True)
def reset_logger():
    """Drop handlers setup_logger attached, so no test writes to a stale stream."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = [logging.NullHandler()]


@pytest.fixture
def workspace(tmp_path: pathlib.Path):
    """Input, output and database directories under tmp_path."""
    input_dir = tmp_path / "host_removal"
    output_dir = tmp_path / "taxonomic"
    kraken_db = tmp_path / "kraken_db"
    for d in (input_dir, output_dir, kraken_db):
        d.mkdir()
    for name in ("hash.k2d", "opts.k2d", "taxo.k2d", "database151mers.kmer_distrib"):
        (kraken_db / name).write_text("x")
    return tmp_path


def write_roster(path: pathlib.Path, samples):
    path.write_text("\n".join(samples) + "\n")
    return path


def make_inputs(input_dir: pathlib.Path, sample: str, both=True):
    (input_dir / f"{sample}_nonhost_1.fastq.gz").write_bytes(b"r1")
    if both:
        (input_dir / f"{sample}_nonhost_2.fastq.gz").write_bytes(b"r2")


@pytest.fixture
def make_config(workspace: pathlib.Path):
    """Factory building a PipelineConfig for a roster of sample ids."""
    def _make(samples, **kwargs):
        roster = write_roster(workspace / "samples.txt", samples)
        return PipelineConfig(
            sample_list=str(roster),
            input_dir=str(workspace / "host_removal"),
            output_dir=str(workspace / "taxonomic"),
            kraken_db=str(workspace / "kraken_db"),
            show_progress=False,
            **kwargs,
        )
    return _make
