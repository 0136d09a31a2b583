"""Runtime support for the railway export tool: logging, timing and environment checks."""
import os
import sys
import time
import functools
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import numpy
import shapely
from loguru import logger

DEFAULT_LOG_FILE = "railway_export.log"


class PerformanceMonitor:
    """Monitor execution time of export stages."""

    @staticmethod
    def measure_time(func):
        """Decorator to measure execution time."""
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                duration = time.perf_counter() - start_time
                logger.debug(f"Performance: {func.__name__} took {duration:.4f}s")
                return result
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(f"Performance: {func.__name__} failed after {duration:.4f}s: {str(e)}")
                raise
        return wrapper


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as ISO-8601 UTC with millisecond precision, e.g. ``2024-05-01T12:00:00.000Z``."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def rotate_logs_on_startup(log_file: Path) -> None:
    """Move the previous run's log aside as ``<log>.bak``."""
    backup_file = log_file.with_name(log_file.name + ".bak")

    if log_file.exists():
        try:
            if backup_file.exists():
                backup_file.unlink()
            log_file.rename(backup_file)
        except (OSError, PermissionError) as e:
            # File in use: truncate instead of rotating
            try:
                with open(log_file, 'w') as f:
                    f.write(f"# Log rotated/truncated due to error: {str(e)}\n")
            except OSError as truncate_e:
                logger.warning(f"Could not rotate or truncate log file: {str(e)}, {str(truncate_e)}")


def configure_logging(log_file: Optional[str] = DEFAULT_LOG_FILE, level: str = "INFO") -> None:
    """Install the file and console sinks used by the command line tool.

    Library modules only emit through ``loguru.logger``; sinks are added here,
    once, by the entry point.

    Args:
        log_file: Path of the rotating log file, or None for console only
        level: Minimum level for both sinks
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        log_path = Path(log_file)
        rotate_logs_on_startup(log_path)
        logger.add(str(log_path), rotation="10 MB", retention="7 days", level=level)
        logger.info(f"Logging to {log_path}")


def validate_system_configuration(output_dir: str = "exports") -> dict:
    """Validate the output directory and report dependency versions."""
    status = {'valid': True, 'checks': []}

    p = Path(output_dir)
    if not p.exists():
        try:
            p.mkdir(parents=True, exist_ok=True)
            status['checks'].append(f"✓ Created {output_dir} directory")
        except OSError as e:
            status['valid'] = False
            status['checks'].append(f"✗ Failed to create {output_dir}: {e}")
    elif not os.access(p, os.W_OK):
        status['valid'] = False
        status['checks'].append(f"✗ {output_dir} directory is not writable")
    else:
        status['checks'].append(f"✓ {output_dir} directory is ready")

    status['checks'].append(f"✓ numpy {numpy.__version__} available")
    status['checks'].append(f"✓ shapely {shapely.__version__} available")

    return status
