"""Logging configuration for Secure Vault.

Console output goes through Rich on stderr so it never mixes with command
output. An optional log file receives everything at DEBUG.

Vault modules never log passwords, key material, plaintext or ciphertext.
Every handler also carries a SecretRedactionFilter that masks long hex
runs (salts, IVs, tags, ciphertext, key dumps) in case one slips through.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


# Global console for rich output
console = Console(stderr=True)

PACKAGE_LOGGER = "secure_vault"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
REDACTED = "<redacted>"

# 32 hex digits = 128 bits, the size of the smallest secret-bearing field
_HEX_RUN = re.compile(r"[0-9a-fA-F]{32,}")


class SecretRedactionFilter(logging.Filter):
    """Masks hex-encoded byte strings of 128 bits or more in log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _HEX_RUN.sub(REDACTED, message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that receives all messages

    Returns:
        Configured package logger
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if log_file else log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(log_level)
    console_handler.addFilter(SecretRedactionFilter())
    logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(SecretRedactionFilter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (e.g. ``get_logger(__name__)``)."""
    return logging.getLogger(name)
