"""
utils.py
--------
Logging and timing helpers shared by every module.
"""

import os
import logging
import time
import functools
from datetime import datetime
from pathlib import Path
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_logger(name: str, level: str = "INFO",
               log_dir: Optional[str] = None) -> logging.Logger:
    """
    Return a named logger writing to stdout and, optionally, a daily file.

    Parameters
    ----------
    name    : Logger name (typically the module __name__).
    level   : Logging level string ("DEBUG", "INFO", "WARNING", "ERROR").
    log_dir : Directory for log files. No file handler when None.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)

    if logger.handlers:          # avoid duplicate handlers on re-import
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # Console handler
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # File handler
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file = os.path.join(
            log_dir, f"mcintegration_{datetime.now().strftime('%Y%m%d')}.log"
        )
        fh = logging.FileHandler(log_file)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def add_file_handler(log_dir: str, name: str = "mcintegration") -> logging.FileHandler:
    """
    Attach a daily log file to a logger, by default the package root.

    Module loggers propagate to the package root, so every engine and
    integrator record reaches the file. Adding the same file twice is a no-op.
    """
    logger = logging.getLogger(name)
    Path(log_dir).mkdir(parents=True, exist_ok=True)
    log_file = os.path.abspath(os.path.join(
        log_dir, f"mcintegration_{datetime.now().strftime('%Y%m%d')}.log"))
    for h in logger.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == log_file:
            return h
    fh = logging.FileHandler(log_file)
    fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(fh)
    return fh


def set_level(level: str) -> None:
    """Apply a level to every logger created under the package namespace."""
    lvl = getattr(logging, level.upper(), logging.INFO)
    for name in list(logging.root.manager.loggerDict):
        if name == "mcintegration" or name.startswith("mcintegration."):
            logging.getLogger(name).setLevel(lvl)


def timeit(func):
    """Decorator that logs the execution time of any function."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(func.__module__)
        t0 = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - t0
        logger.debug("%s completed in %.3f s", func.__qualname__, elapsed)
        return result
    return wrapper
