"""
logger.py
==========
Logging setup for the pigsty compiler.

get_logger() returns the "Pigsty" logger writing DEBUG and up to a daily
file (<log_dir>/pigsty_YYYYMMDD.log) and INFO and up to stdout. The
compiler passes log through module loggers; the engine owns this one.
"""

import logging
import os
import sys
from datetime import datetime
from typing import Optional

LOG_DIR = os.path.join(os.getcwd(), "logs")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def log_file_path(log_dir: Optional[str] = None) -> str:
    return os.path.join(log_dir or LOG_DIR, f"pigsty_{datetime.now().strftime('%Y%m%d')}.log")


def get_logger(name: str = "Pigsty", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Create or return the compiler logger.

    :param name: logger name
    :param log_dir: directory of the log file, created on first use; ./logs by default
    :return: the configured logger; a second call returns it unchanged
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        return logger

    log_file = log_file_path(log_dir)
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    # signature names may carry undecodable bytes
    file_handler = logging.FileHandler(log_file, encoding="utf-8", errors="backslashreplace")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    console_handler.setLevel(logging.INFO)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger
