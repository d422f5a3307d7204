"""Logger for the supervisor, writing to standard output and a log file."""

from __future__ import annotations

import logging
import sys
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from .params import GlobalConfig

LOG_FILE_NAME = "Supervisor.log"
_FORMAT = "Supervisor: %(asctime)s %(filename)s:%(lineno)d: %(message)s"
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def new_supervisor_logger(
    log_dir: Optional[Union[str, PathLike]] = None,
) -> logging.Logger:
    """Return a logger that writes to stdout and to ``Supervisor.log`` in log_dir.

    The directory is created if needed. Asking again for the same directory
    returns the same logger with fresh handlers.
    """
    directory = Path(log_dir if log_dir is not None else GlobalConfig().log_write_path)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / LOG_FILE_NAME

    logger = logging.getLogger(f"{__name__}[{path.resolve()}]")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    for handler in (
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(path, mode="w", encoding="utf-8"),
    ):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger