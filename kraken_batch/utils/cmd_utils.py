# kraken_batch/utils/cmd_utils.py
import sys
import subprocess
import logging
from enum import Enum

from kraken_batch.utils.file_utils import read_tail


class CommandErrorType(Enum):
    """Categorize different types of command errors for better handling."""
    SUCCESS = 0
    NOT_FOUND = 1           # Command not found (installation issue)
    PERMISSION_ERROR = 2    # Permission denied
    DATABASE_ERROR = 3      # Database issues
    MEMORY_ERROR = 4        # Out of memory
    DISK_ERROR = 5          # Out of disk space
    TIMEOUT_ERROR = 7       # Command timed out
    INPUT_ERROR = 8         # Issues with input files
    OUTPUT_ERROR = 9        # Issues with output files/directories
    CONFIG_ERROR = 10       # Configuration problems
    UNKNOWN_ERROR = 99      # Unclassified error


class CommandResult:
    """Object to store detailed information about command execution results."""
    def __init__(self, success=False, error_type=None, returncode=None,
                 stdout=None, stderr=None, error_message=None, cmd=None):
        self.success = success
        self.error_type = error_type or CommandErrorType.UNKNOWN_ERROR
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error_message = error_message
        self.cmd = cmd

    def __bool__(self):
        return self.success


def classify_error(stderr, returncode):
    """
    Classify the error based on stderr content and return code.

    Args:
        stderr: Standard error output as string
        returncode: Process return code

    Returns:
        Tuple of (CommandErrorType, error_message)
    """
    stderr_lower = stderr.lower() if stderr else ""

    if returncode == 127 or "command not found" in stderr_lower:
        return CommandErrorType.NOT_FOUND, "Command not found (check installation)"

    if "permission denied" in stderr_lower:
        return CommandErrorType.PERMISSION_ERROR, "Permission denied (check file permissions)"

    if any(x in stderr_lower for x in ["database", "kmer_distrib", "k2d"]) and any(
            x in stderr_lower for x in ["not found", "cannot open", "does not exist", "failed to load", "unable to"]):
        return CommandErrorType.DATABASE_ERROR, "Database error (check database path and structure)"

    if any(x in stderr_lower for x in ["out of memory", "cannot allocate", "bad_alloc", "memoryerror"]):
        return CommandErrorType.MEMORY_ERROR, "Out of memory (try fewer threads or a smaller database)"

    if any(x in stderr_lower for x in ["no space", "disk quota", "cannot write"]):
        return CommandErrorType.DISK_ERROR, "Disk error (check available disk space)"

    if any(x in stderr_lower for x in ["no such file", "input file", "corrupt", "unexpected end of file"]):
        return CommandErrorType.INPUT_ERROR, "Input file error (check input files)"

    if any(x in stderr_lower for x in ["cannot create", "output file", "is a directory"]):
        return CommandErrorType.OUTPUT_ERROR, "Output error (check output directory permissions)"

    if any(x in stderr_lower for x in ["usage:", "unrecognized option", "invalid option", "must specify"]):
        return CommandErrorType.CONFIG_ERROR, "Configuration error (check command options)"

    return CommandErrorType.UNKNOWN_ERROR, f"Unknown error (return code: {returncode})"


def _failure(cmd, error_type, error_message, exit_on_error, returncode=None, stdout=None, stderr=None):
    result = CommandResult(
        success=False,
        error_type=error_type,
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        error_message=error_message,
        cmd=cmd
    )
    if exit_on_error:
        sys.exit(1)
    return result


def run_cmd(cmd, exit_on_error=True, verbose=True, timeout=None, log_file=None, append_log=False):
    """
    Run an external command with detailed error handling.

    Args:
        cmd: Command to run as a list of strings
        exit_on_error: Whether to exit the program if the command fails
        verbose: Whether to log the command being run
        timeout: Command timeout in seconds (None = wait forever)
        log_file: If given, the command's stderr is written to this file
            instead of being captured
        append_log: Append to log_file rather than truncating it

    Returns:
        CommandResult object containing detailed execution information
    """
    logger = logging.getLogger('kraken_batch')

    if verbose:
        logger.info(f"Running: {' '.join(cmd)}")

    try:
        if log_file:
            with open(log_file, "a" if append_log else "w") as log_fh:
                process = subprocess.run(
                    cmd,
                    check=False,
                    stdout=subprocess.PIPE,
                    stderr=log_fh,
                    timeout=timeout
                )
            stderr = read_tail(log_file, max_lines=20)
        else:
            process = subprocess.run(
                cmd,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout
            )
            stderr = process.stderr.decode('utf-8', errors='replace')

        stdout = process.stdout.decode('utf-8', errors='replace')

        if stdout.strip() and verbose:
            logger.debug(f"Command stdout: {stdout}")

        if process.returncode == 0:
            return CommandResult(
                success=True,
                error_type=CommandErrorType.SUCCESS,
                returncode=0,
                stdout=stdout,
                stderr=stderr,
                cmd=cmd
            )

        error_type, error_msg = classify_error(stderr, process.returncode)

        detailed_error = f"Command failed: {error_msg}"
        if stderr.strip():
            # The last few lines usually carry the useful part
            stderr_lines = stderr.strip().split('\n')
            detailed_error += "\nError details (last 5 lines):\n" + '\n'.join(stderr_lines[-5:])

        logger.error(detailed_error)
        logger.error(f"Failed command: {' '.join(cmd)}")

        return _failure(cmd, error_type, error_msg, exit_on_error,
                        returncode=process.returncode, stdout=stdout, stderr=stderr)

    except subprocess.TimeoutExpired:
        error_msg = f"Command timed out after {timeout} seconds"
        logger.error(f"ERROR: {error_msg}")
        logger.error(f"Timed out command: {' '.join(cmd)}")
        return _failure(cmd, CommandErrorType.TIMEOUT_ERROR, error_msg, exit_on_error, stderr=error_msg)

    except FileNotFoundError as e:
        error_msg = f"Executable not found: {cmd[0]}"
        logger.error(f"ERROR: {error_msg}")
        return _failure(cmd, CommandErrorType.NOT_FOUND, error_msg, exit_on_error, stderr=str(e))

    except OSError as e:
        error_msg = f"Error executing command: {str(e)}"
        logger.error(f"ERROR: {error_msg}")
        logger.error(f"Failed command: {' '.join(cmd)}")
        return _failure(cmd, CommandErrorType.UNKNOWN_ERROR, error_msg, exit_on_error, stderr=str(e))
