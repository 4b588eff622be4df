# ecom_insights/config/logging_config.py

"""Per-run logging for ecom_insights.

Every process run writes one ``logs/run_YYYYmmdd_HHMMSS.log`` file that
collects all ``ecom_insights.*`` records at DEBUG, including rejected
CSV rows and storage faults with their tracebacks.  Only warnings and
errors reach stderr unless ``verbose`` is requested.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from ecom_insights.config.settings import Settings

ROOT_LOGGER_NAME = "ecom_insights"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_dir: Path | None = None,
    verbose: bool = False,
) -> Path:
    """Attach the per-run file and console handlers.

    Returns the path of the log file receiving this run's records.
    Calling it again in the same process keeps the existing handlers
    and returns the file already in use.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    directory = log_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = directory / f"run_{stamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.debug("Logging initialised — log file: %s", log_file)
    return log_file
