"""
Pairdex Logging
===============

One logging setup for the whole package: a `pairdex` logger with a rich console
handler and an optional rotating file, configured once on first import.

Usage:
    >>> from pairdex.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Pair created")
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    LOG_FILE_OUTPUT,
)


LOG_FILE_PATH = Path(__file__).parent.parent / "logs" / "pairdex.log"

PAIRDEX_THEME = Theme(
    {
        "pairdex.address":        "cyan",
        "pairdex.amount":         "bold blue",
        "pairdex.event":          "bold magenta",
        "pairdex.level_debug":    "bold dim",
        "pairdex.level_error":    "bold red",
        "pairdex.level_info":     "bold green",
        "pairdex.level_warning":  "bold yellow",
        "pairdex.logger_name":    "magenta",
        "pairdex.reason":         "bold red",
    }
)


def _numeric_level(level: Optional[str]) -> int:
    return getattr(logging, str(level or LOG_LEVEL.default()).upper(), logging.INFO)


class LogManager:
    """
    Singleton owning the handlers of the `pairdex` logger.

    Host applications keep their root logger untouched; only the package
    logger receives handlers.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()


    def __new__(cls) -> "LogManager":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._configured = False
        return cls._instance


    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
        file_output: Optional[bool] = None,
    ) -> None:
        """
        Attach handlers to the package logger. Later calls are no-ops.

        Args:
            log_level (Optional[str]): DEBUG, INFO, ... Defaults to LOG_LEVEL from .env.
            log_file (Optional[Path]): Target of the rotating file handler.
            console_output (bool): Log to stderr.
            file_output (Optional[bool]): Log to *log_file*. Defaults to LOG_FILE_OUTPUT.
        """
        with self._lock:
            if self._configured:
                return

            numeric_level = _numeric_level(log_level or LOG_LEVEL)
            package_logger = logging.getLogger("pairdex")
            package_logger.setLevel(numeric_level)
            package_logger.handlers.clear()

            # Timestamps are always UTC
            formatter = TerminalSafeFormatter(fmt=str(LOG_FORMAT), datefmt=f"{LOG_DATE_FORMAT} UTC")
            formatter.converter = time.gmtime

            handlers = []
            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    handlers.append(RichHandler(
                        console=Console(theme=PAIRDEX_THEME, highlight=False, stderr=True),
                        highlighter=PairdexLogHighlighter(),
                        keywords=[],
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    ))
                else:
                    handlers.append(logging.StreamHandler(sys.stderr))

            if file_output is None:
                file_output = bool(LOG_FILE_OUTPUT)
            if file_output:
                path = log_file or LOG_FILE_PATH
                path.parent.mkdir(parents=True, exist_ok=True)
                handlers.append(logging.handlers.RotatingFileHandler(
                    filename=str(path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                ))

            for handler in handlers:
                handler.setLevel(numeric_level)
                handler.setFormatter(formatter)
                package_logger.addHandler(handler)

            self._configured = True


    def set_level(self, log_level: str) -> None:
        """Change the level of the package logger and its handlers at runtime."""
        numeric_level = _numeric_level(log_level)
        package_logger = logging.getLogger("pairdex")
        package_logger.setLevel(numeric_level)
        for handler in package_logger.handlers:
            handler.setLevel(numeric_level)


    def get_logger(self, name: str) -> logging.Logger:
        if not self._configured:
            self.configure()
        return logging.getLogger(name)


    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    Strips ANSI escapes and control characters from formatted records.

    Token names and symbols are chosen by whoever deploys them and end up in
    log lines verbatim.
    """

    _ansi_escape_re = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
    # Tab and newline survive
    _control_chars_re = re.compile(r"[\x00-\x08\x0B-\x1F\x7F]")


    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        return cls._control_chars_re.sub("", cls._ansi_escape_re.sub("", text))


    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class PairdexLogHighlighter(RegexHighlighter):
    """Colors addresses, integer amounts, event names and reason codes."""

    base_style = "pairdex."
    highlights = [
        r"(?P<address>\b0x[0-9a-fA-F]{40}\b)",
        r"(?P<amount>(?<![\w.])\d+(?![\w.]))",
        r"(?P<event>\b(Sync|Mint|Burn|Swap|Skim|PairCreated|FeeToChanged|FeeToSetterChanged)\b)",
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_error>\b(ERROR|CRITICAL)\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<reason>\b(K|LOCKED|OVERFLOW|FORBIDDEN|PAIR_EXISTS|EXPIRED|INVALID_SIGNATURE|"
        r"INSUFFICIENT_[A-Z_]+|IDENTICAL_ADDRESSES|ZERO_ADDRESS|INVALID_TO)\b)",
    ]


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """Logger for *name*, configuring the package on first use."""
    return _manager.get_logger(name)


def set_log_level(log_level: str) -> None:
    """Adjust the package log level (used when configuration is loaded from TOML)."""
    _manager.set_level(log_level)


_manager.configure()
