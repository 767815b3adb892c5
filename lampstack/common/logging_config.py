# lampstack/common/logging_config.py
# -*- coding: utf-8 -*-
"""
Logging configuration for the stack installer.

Console output carries a level symbol; the append-only log file gets a plain,
detailed format so it can be grepped after a failed run.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

from lampstack.setup.config_models import SYMBOLS_DEFAULT

DETAILED_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
CONSOLE_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(symbol)s %(message)s"


class SymbolFormatter(logging.Formatter):
    """
    A custom formatter that adds symbols to log messages based on the log level.
    """

    LEVEL_KEYS = {
        logging.DEBUG: ("debug", "🐛"),
        logging.INFO: ("info", "ℹ️"),
        logging.WARNING: ("warning", "⚠️"),
        logging.ERROR: ("error", "❌"),
        logging.CRITICAL: ("critical", "🔥"),
    }

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        symbols: Optional[Dict[str, str]] = None,
    ):
        super().__init__(fmt, datefmt)
        self.symbols = symbols or SYMBOLS_DEFAULT

    def format(self, record: logging.LogRecord) -> str:
        key, fallback = self.LEVEL_KEYS.get(record.levelno, ("", ""))
        record.symbol = self.symbols.get(key, fallback) if key else ""
        return super().format(record)


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    numeric_level = getattr(logging, str(log_level).upper(), None)
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
    symbols: Optional[Dict[str, str]] = None,
) -> logging.Logger:
    """
    Configures the root logger for an installer run.

    Parameters:
        log_level: Console level, as a logging constant or a level name.
        log_file: Append-only log file. The file handler always records DEBUG.
            If it cannot be opened a warning is printed to stderr and the run
            continues with console logging only.
        log_to_console: Whether to log to stdout.
        symbols: Level symbols for the console formatter.

    Returns:
        The "lampstack" logger.
    """
    level = _resolve_level(log_level)
    handlers: List[logging.Handler] = []

    if log_file:
        try:
            log_file_path = Path(log_file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file_path, mode="a", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(DETAILED_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
            handlers.append(file_handler)
        except OSError as e:
            print(
                f"Warning: Could not create file handler for log file {log_file}: {e}",
                file=sys.stderr,
            )

    if log_to_console or not handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            SymbolFormatter(
                fmt=CONSOLE_LOG_FORMAT,
                datefmt="%Y-%m-%d %H:%M:%S",
                symbols=symbols,
            )
        )
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    logger = logging.getLogger("lampstack")
    logger.debug(
        f"Logging configured. Console level: {logging.getLevelName(level)}. Log file: {log_file or 'none'}"
    )
    return logger
