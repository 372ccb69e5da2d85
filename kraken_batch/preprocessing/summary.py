# kraken_batch/preprocessing/summary.py
"""
Per-sample result tables keyed by sample id.

Rows are upserted, never appended, so re-running a batch cannot duplicate a
sample. Every change rewrites the whole file through a temporary file and an
atomic rename, which keeps the table readable if the run is killed mid-way.
"""
import os
import csv
import logging

SUMMARY_COLUMNS = ["Sample", "Total_Reads", "Classified_Reads", "Percent_Classified", "Top_Species"]
STATUS_COLUMNS = ["Sample", "Status", "Detail"]


class SampleTable:
    """Tab-delimited table with one row per sample, first column is the key."""

    def __init__(self, path, columns, sample_order=None, logger=None):
        self.path = path
        self.columns = list(columns)
        self.sample_order = list(sample_order or [])
        self.logger = logger or logging.getLogger('kraken_batch')
        self.rows = {}
        self._load()

    def _load(self):
        if not os.path.isfile(self.path) or os.path.getsize(self.path) == 0:
            return
        with open(self.path, "r", newline="") as fh:
            reader = csv.reader(fh, delimiter='\t')
            header = next(reader, None)
            if header != self.columns:
                self.logger.warning(
                    f"Existing table {self.path} has header {header}; expected {self.columns}. "
                    "Its rows will be rewritten with the expected columns."
                )
            for row in reader:
                if not row or not row[0]:
                    continue
                row = (row + [""] * len(self.columns))[:len(self.columns)]
                self.rows[row[0]] = row

    def __contains__(self, sample):
        return sample in self.rows

    def ordered_rows(self):
        """Rows in roster order, then rows for samples outside the roster."""
        ordered = [self.rows[s] for s in self.sample_order if s in self.rows]
        in_roster = set(self.sample_order)
        ordered.extend(row for sample, row in self.rows.items() if sample not in in_roster)
        return ordered

    def upsert(self, values):
        """Insert or replace the row for values[0] and persist immediately."""
        if len(values) != len(self.columns):
            raise ValueError(f"Expected {len(self.columns)} values, got {len(values)}")
        row = [str(v) for v in values]
        self.rows[row[0]] = row
        self.write()

    def write(self):
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", newline="") as fh:
            writer = csv.writer(fh, delimiter='\t', lineterminator='\n')
            writer.writerow(self.columns)
            writer.writerows(self.ordered_rows())
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, self.path)


def open_summary_table(path, sample_order=None, logger=None):
    """Classification summary: Sample, Total_Reads, Classified_Reads, Percent_Classified, Top_Species."""
    return SampleTable(path, SUMMARY_COLUMNS, sample_order=sample_order, logger=logger)


def open_status_table(path, sample_order=None, logger=None):
    """Audit table recording the latest status of every roster sample."""
    return SampleTable(path, STATUS_COLUMNS, sample_order=sample_order, logger=logger)
