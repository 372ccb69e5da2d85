# kraken_batch/config.py
"""
Run configuration shared by the batch runner and the abundance aggregator.

A PipelineConfig is built once (normally from the command line) and handed
to each stage; nothing reads configuration from module globals.
"""
import os

from kraken_batch.utils.db_validation import bracken_kmer_distrib_path

DEFAULT_READ_LENGTH = 151
DEFAULT_THRESHOLD = 10
TAXONOMIC_LEVEL = "S"
DEFAULT_R1_SUFFIX = "_nonhost_1.fastq.gz"
DEFAULT_R2_SUFFIX = "_nonhost_2.fastq.gz"


class PipelineConfig:
    """Paths, tool settings and tunables for one taxonomic classification run."""

    def __init__(self, sample_list, input_dir, output_dir, kraken_db=None,
                 logs_dir=None, threads=1, read_length=DEFAULT_READ_LENGTH,
                 threshold=DEFAULT_THRESHOLD, timeout=None,
                 kraken_executable="kraken2", bracken_executable="bracken",
                 r1_suffix=DEFAULT_R1_SUFFIX, r2_suffix=DEFAULT_R2_SUFFIX,
                 show_progress=True):
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")
        if read_length < 1:
            raise ValueError(f"read_length must be positive, got {read_length}")
        if threshold < 0:
            raise ValueError(f"threshold cannot be negative, got {threshold}")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.sample_list = sample_list
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.kraken_db = kraken_db
        self.logs_dir = logs_dir or os.path.join(output_dir, "logs")
        self.threads = threads
        self.read_length = read_length
        self.taxonomic_level = TAXONOMIC_LEVEL
        self.threshold = threshold
        self.timeout = timeout
        self.kraken_executable = kraken_executable
        self.bracken_executable = bracken_executable
        self.r1_suffix = r1_suffix
        self.r2_suffix = r2_suffix
        self.show_progress = show_progress

    @classmethod
    def from_args(cls, args):
        """Build a config from parsed command-line arguments."""
        return cls(
            sample_list=args.sample_list,
            input_dir=args.input_dir,
            output_dir=args.output_dir,
            kraken_db=args.kraken_db,
            logs_dir=args.logs_dir,
            threads=args.threads,
            read_length=args.read_length,
            threshold=args.threshold,
            timeout=args.timeout,
            kraken_executable=args.kraken_executable,
            bracken_executable=args.bracken_executable,
            r1_suffix=args.r1_suffix,
            r2_suffix=args.r2_suffix,
            show_progress=not args.no_progress,
        )

    @property
    def kraken_output_dir(self):
        return os.path.join(self.output_dir, "kraken2_output")

    @property
    def bracken_output_dir(self):
        return os.path.join(self.output_dir, "bracken_output")

    @property
    def abundance_dir(self):
        return os.path.join(self.output_dir, "abundance_tables")

    @property
    def abundance_file(self):
        return os.path.join(self.abundance_dir, "species_abundance.tsv")

    @property
    def summary_file(self):
        return os.path.join(self.output_dir, "classification_summary.tsv")

    @property
    def status_file(self):
        return os.path.join(self.output_dir, "sample_status.tsv")

    @property
    def sample_log_dir(self):
        return os.path.join(self.logs_dir, "taxonomic")

    @property
    def bracken_kmer_distrib(self):
        return bracken_kmer_distrib_path(self.kraken_db, self.read_length)

    def make_output_dirs(self):
        for path in (self.output_dir, self.kraken_output_dir, self.bracken_output_dir,
                     self.abundance_dir, self.sample_log_dir):
            os.makedirs(path, exist_ok=True)

    def __repr__(self):
        return (f"PipelineConfig(sample_list={self.sample_list!r}, input_dir={self.input_dir!r}, "
                f"output_dir={self.output_dir!r}, kraken_db={self.kraken_db!r}, "
                f"read_length={self.read_length}, threads={self.threads})")
