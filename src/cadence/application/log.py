"""Logging setup for command-line runs."""

import logging
import sys
import time
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"
MAX_LOG_BYTES = 1_000_000
LOG_BACKUPS = 3


def _level_for(verbose: int) -> int:
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(log_dir: Path, verbose: int = 1) -> tuple[logging.Logger, Path, str]:
    """
    Configure the `cadence` logger with a stderr handler and a rotating run log.

    Returns:
        (logger, log_path, run_id)
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "cadence.log"
    run_id = f"{time.strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"

    logger = logging.getLogger("cadence")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level_for(verbose))
    console.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))
    logger.addHandler(console)

    file_handler = RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(f"[{run_id}] {LOG_FORMAT}"))
    logger.addHandler(file_handler)

    return logger, log_path, run_id
