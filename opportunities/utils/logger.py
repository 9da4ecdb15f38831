"""
File + console logging for the API process.
Call setup_debug_logging() once from main on startup; every module logs through
logging.getLogger(__name__) and ends up in debug_logs/opportunities.log.
"""
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Project root: opportunities/utils/logger.py -> opportunities -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEBUG_LOGS_DIR = Path(os.getenv("DEBUG_LOGS_DIR", str(_PROJECT_ROOT / "debug_logs")))
DEBUG_LOG_FILE = DEBUG_LOGS_DIR / "opportunities.log"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_file_handler: Optional[logging.Handler] = None


def setup_debug_logging(level: str = None) -> None:
    """
    Attach a rotating file handler (10MB x 5) and a console handler to the root logger.
    Safe to call more than once; handlers are only added the first time.
    """
    global _file_handler
    root_logger = logging.getLogger()
    root_logger.setLevel((level or os.getenv("LOG_LEVEL", "DEBUG")).upper())

    if _file_handler is not None:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)
    try:
        DEBUG_LOGS_DIR.mkdir(parents=True, exist_ok=True)
        _file_handler = RotatingFileHandler(
            DEBUG_LOG_FILE,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        _file_handler.setFormatter(formatter)
        root_logger.addHandler(_file_handler)
    except OSError as e:
        logging.getLogger(__name__).warning(f"Could not setup debug file logging: {e}")
        _file_handler = logging.NullHandler()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    root_logger.info("=" * 80)
    root_logger.info(f"Debug logging initialized, log file: {DEBUG_LOG_FILE}")
    root_logger.info("=" * 80)
