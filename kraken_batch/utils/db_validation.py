# kraken_batch/utils/db_validation.py
import os
import re
import glob
import shutil
import logging
import platform
import subprocess
from enum import Enum


class DatabaseType(Enum):
    """What a validation result refers to."""
    KRAKEN = "kraken"
    BRACKEN = "bracken"
    EXECUTABLE = "executable"


class DatabaseValidationResult:
    """Object to store the result of database validation."""
    def __init__(self, success=False, db_type=None,
                 error_message=None, recommendations=None,
                 files_checked=None, db_info=None):
        self.success = success
        self.db_type = db_type
        self.error_message = error_message
        self.recommendations = recommendations or []
        self.files_checked = files_checked or []
        self.db_info = db_info or {}

    def __bool__(self):
        return self.success


KRAKEN_REQUIRED_FILES = ["hash.k2d", "opts.k2d", "taxo.k2d"]


def format_size(size_bytes):
    """Format size in bytes to human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} PB"


def bracken_kmer_distrib_path(kraken_db, read_length):
    """Path of the Bracken k-mer distribution built for read_length."""
    return os.path.join(kraken_db, f"database{read_length}mers.kmer_distrib")


def check_executable(executable, version_args=("--version",)):
    """
    Check that an external program is resolvable on PATH.

    The version string is looked up on a best-effort basis; failing to read
    it does not fail the check.
    """
    path = shutil.which(executable)
    if path is None:
        return DatabaseValidationResult(
            success=False,
            db_type=DatabaseType.EXECUTABLE,
            error_message=f"{executable} not found in PATH",
            recommendations=[
                f"Install {executable} (e.g. 'conda install -c bioconda {os.path.basename(executable)}')",
                "Activate the environment that provides it before running",
            ]
        )

    version = "unknown"
    try:
        proc = subprocess.run([path, *version_args], capture_output=True, text=True, check=False, timeout=30)
        match = re.search(r'version\s+v?(\d+(?:\.\d+)+)', proc.stdout + proc.stderr, re.IGNORECASE)
        if match:
            version = match.group(1)
    except (OSError, subprocess.TimeoutExpired):
        pass

    return DatabaseValidationResult(
        success=True,
        db_type=DatabaseType.EXECUTABLE,
        files_checked=[path],
        db_info={"path": path, "version": version}
    )


def validate_kraken_db(db_path, logger=None):
    """
    Validate a Kraken2 database directory.

    Only a missing directory is fatal; missing index files are reported as
    recommendations since some installs keep them elsewhere.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    if not db_path or not os.path.isdir(db_path):
        name = os.path.basename(os.path.normpath(db_path)) if db_path else "kraken_db"
        return DatabaseValidationResult(
            success=False,
            db_type=DatabaseType.KRAKEN,
            error_message=f"Kraken2 database not found at {db_path}",
            recommendations=[
                "To build an oral microbiome database:",
                f"kraken2-build --download-taxonomy --db {name}",
                f"kraken2-build --download-library bacteria --db {name}",
                f"kraken2-build --build --db {name} --threads 8",
            ]
        )

    recommendations = []
    found_files = []
    missing_files = []
    for req_file in KRAKEN_REQUIRED_FILES:
        file_path = os.path.join(db_path, req_file)
        if os.path.exists(file_path):
            found_files.append(file_path)
        else:
            missing_files.append(req_file)

    if missing_files:
        recommendations.append(
            f"Kraken2 index files not found: {', '.join(missing_files)}. "
            "The database may be incomplete."
        )

    db_info = {"path": db_path}
    bracken_files = glob.glob(os.path.join(db_path, "database*mers.kmer_distrib"))
    if bracken_files:
        db_info["bracken_files"] = sorted(os.path.basename(f) for f in bracken_files)

    return DatabaseValidationResult(
        success=True,
        db_type=DatabaseType.KRAKEN,
        recommendations=recommendations,
        files_checked=found_files,
        db_info=db_info
    )


def validate_bracken_db(kraken_db, read_length, threads=1, kmer_file=None, logger=None):
    """
    Check that Bracken was built for this read length inside the Kraken2 database.

    kmer_file overrides the default database{read_length}mers.kmer_distrib location.
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    if kmer_file is None:
        kmer_file = bracken_kmer_distrib_path(kraken_db, read_length)

    if not os.path.isfile(kmer_file):
        available = sorted(
            os.path.basename(f) for f in glob.glob(os.path.join(kraken_db, "database*mers.kmer_distrib"))
        )
        recommendations = [
            "Build Bracken database:",
            f"bracken-build -d \"{kraken_db}\" -t {threads} -k 35 -l {read_length}",
        ]
        if available:
            recommendations.append(f"Distributions built so far: {', '.join(available)}")
        return DatabaseValidationResult(
            success=False,
            db_type=DatabaseType.BRACKEN,
            error_message=f"Bracken database not found for {read_length}bp reads",
            recommendations=recommendations,
            files_checked=[kmer_file]
        )

    return DatabaseValidationResult(
        success=True,
        db_type=DatabaseType.BRACKEN,
        files_checked=[kmer_file],
        db_info={
            "path": kmer_file,
            "read_length": read_length,
            "size": format_size(os.path.getsize(kmer_file)),
        }
    )


def check_architecture(logger=None):
    """Warn on ARM hosts, where Kraken2 usually has to run under emulation."""
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    arch = platform.machine().lower()
    if arch in ("arm64", "aarch64"):
        logger.warning(f"Detected {arch} architecture.")
        logger.warning("Note: Kraken2 builds are often x86_64 only. Run under Rosetta or emulation if needed.")
        return False
    return True


def print_database_validation_result(result, logger=None):
    """
    Print a detailed database validation result to logs.

    Args:
        result: DatabaseValidationResult object
        logger: Logger instance
    """
    if logger is None:
        logger = logging.getLogger('kraken_batch')

    db_type_name = result.db_type.value.capitalize() if result.db_type else "Unknown"

    if result.success:
        logger.info(f"{db_type_name} check successful")
        for key, value in result.db_info.items():
            logger.info(f"  - {key}: {value}")
        for rec in result.recommendations:
            logger.warning(f"  {rec}")
    else:
        logger.error(f"Error: {result.error_message}")
        for rec in result.recommendations:
            logger.error(f"  {rec}")

    for f in result.files_checked:
        logger.debug(f"  checked: {f}")
