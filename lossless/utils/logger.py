"""
Centralized logging configuration for the auction house.

All loggers hang off the ``lossless`` root: ``get_logger("auction")`` returns
``lossless.auction``. Console output is coloured with colorlog; a plain
``lossless.log`` file can be added next to it.

``setup_logging`` may be called more than once (the CLI does so per
invocation). Each call replaces the handlers installed by the previous one
and leaves foreign handlers, such as pytest's capture handler, alone.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import colorlog

ROOT_LOGGER = "lossless"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class LosslessLogger:
    """Owns the handlers attached to the ``lossless`` root logger"""

    _handlers: List[logging.Handler] = []
    _configured = False

    @classmethod
    def setup(
        cls,
        level: int = logging.INFO,
        log_dir: Optional[str] = None,
        log_to_file: bool = False,
    ):
        """
        (Re)configure logging.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR)
            log_dir: Directory for ``lossless.log``. Defaults to ./logs
            log_to_file: Whether to write logs to file as well
        """
        root = logging.getLogger(ROOT_LOGGER)
        cls._remove_handlers(root)
        root.setLevel(level)

        console = colorlog.StreamHandler(sys.stdout)
        console.setFormatter(
            colorlog.ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS)
        )
        cls._attach(root, console, level)

        if log_to_file:
            directory = Path(log_dir) if log_dir else Path("logs")
            directory.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(directory / "lossless.log")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            cls._attach(root, file_handler, level)

        cls._configured = True

    @classmethod
    def _attach(cls, root: logging.Logger, handler: logging.Handler, level: int):
        handler.setLevel(level)
        root.addHandler(handler)
        cls._handlers.append(handler)

    @classmethod
    def _remove_handlers(cls, root: logging.Logger):
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Logger for a subsystem ('auction', 'token', 'storage.sqlite', ...)"""
        if not cls._configured:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_logger(name: str) -> logging.Logger:
    return LosslessLogger.get_logger(name)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_to_file: bool = False,
):
    """Setup logging configuration"""
    LosslessLogger.setup(level=level, log_dir=log_dir, log_to_file=log_to_file)
