"""
monitoring.py — Logging setup and run reporting for the Job Radar pipeline.

Log lines go to the log file and to stderr; stdout is reserved for the
CLI's JSON output.
"""

import logging
import sys
from typing import Optional

from config import LOG_DIR, LOG_FILE, LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Optional[int] = None, log_to_file: bool = True) -> logging.Logger:
    """
    Set up logging to the log file and stderr.
    Calling it again only changes the level. Returns the application's root logger.
    """
    if level is None:
        level = logging.getLevelName(LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("job_radar")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(LOG_FILE), mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module."""
    return logging.getLogger(f"job_radar.{name}")


def log_unit_success(logger: logging.Logger, zone_name: str, source: str, count: int):
    """Log a zone × source unit that parsed successfully."""
    logger.info(f"[{zone_name} / {source}] Parsed {count} postings")


def log_unit_failure(logger: logging.Logger, zone_name: str, source: str, error: Exception):
    """Log a zone × source unit that failed and was skipped."""
    logger.error(f"[{zone_name} / {source}] Unit failed: {type(error).__name__}: {error}")


def log_pipeline_step(logger: logging.Logger, step: str, input_count: int, output_count: int):
    """Log a pipeline step with input/output counts."""
    filtered = input_count - output_count
    logger.info(f"[{step}] {input_count} in → {output_count} out ({filtered} filtered)")


def log_sweep_summary(
    logger: logging.Logger,
    processed: int,
    new: int,
    duplicates: int,
    zones_skipped: int,
    units_failed: int,
    errors: list[str],
    duration: float
):
    """Log a complete sweep summary."""
    logger.info("=" * 60)
    logger.info("SWEEP SUMMARY")
    logger.info(f"  Postings processed: {processed}")
    logger.info(f"  New leads:          {new}")
    logger.info(f"  Duplicates:         {duplicates}")
    logger.info(f"  Zones skipped:      {zones_skipped}")
    logger.info(f"  Units failed:       {units_failed}")
    logger.info(f"  Duration:           {duration:.1f}s")

    if errors:
        logger.warning("ERRORS:")
        for err in errors:
            logger.warning(f"  - {err}")

    logger.info("=" * 60)
