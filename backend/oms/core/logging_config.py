"""
Logging configuration

Console plus daily files, every record tagged with the principal that
issued the request (``-`` outside a request).
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(principal)s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# quiet unless something goes wrong
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "aiosqlite")

current_principal: ContextVar[str] = ContextVar("current_principal", default="-")


class PrincipalFilter(logging.Filter):
    """Stamp the request principal onto the record"""

    def filter(self, record):
        record.principal = current_principal.get()
        return True


class ColoredFormatter(logging.Formatter):
    """Level names in color, console only"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # the file handlers see the same record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{self.COLORS.get(record.levelname, self.RESET)}{record.levelname}{self.RESET}"
        return super().format(record)


def _daily_file(log_dir: Path, prefix: str, level: int) -> logging.Handler:
    stamp = datetime.now().strftime("%Y-%m-%d")
    handler = logging.FileHandler(log_dir / f"{prefix}_{stamp}.log", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure the root logger

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_dir: created if missing; receives oms_<date>.log and error_<date>.log
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))

    principal_filter = PrincipalFilter()
    for handler in (console, _daily_file(path, "oms", logging.INFO), _daily_file(path, "error", logging.ERROR)):
        handler.addFilter(principal_filter)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info("Logging initialised at %s, files under %s", log_level.upper(), path.resolve())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
