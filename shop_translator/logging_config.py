"""
Logging for the translator: one ``shop_translator`` logger with a log file and
a console handler that shares the terminal with the chunk progress bars.
"""
import logging
import os
import sys
from typing import Dict, Iterable, Optional, TypeVar

from tqdm import tqdm

LOGGER_NAME = "shop_translator"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

T = TypeVar('T')


class TqdmLoggingHandler(logging.Handler):
    """Console handler that prints above an active chunk progress bar instead of through it."""

    def emit(self, record):
        try:
            tqdm.write(self.format(record), file=sys.stderr)
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception:
            self.handleError(record)


def chunk_progress(chunks: Iterable[T], total: int, language_code: str, enabled: bool = True) -> tqdm:
    """
    Wrap the chunks of one translation run in a progress bar.

    A run of a single chunk gets no bar; the per-chunk log lines say enough.
    """
    return tqdm(
        chunks,
        total=total,
        desc=f"Translating to {language_code}",
        unit="chunk",
        leave=False,
        disable=not enabled or total < 2
    )


def _qualified_name(name: str) -> str:
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return name
    return f"{LOGGER_NAME}.{name}"


def setup_logger(
        log_level_str: str,
        log_file_path: str,
        log_to_console: bool,
        module_levels: Optional[Dict[str, str]] = None
) -> logging.Logger:
    """
    Set up the package logger.

    All modules log through children of the ``shop_translator`` logger
    (``logging.getLogger(__name__)``), so configuring it here is enough.

    Args:
        log_level_str: The logging level as a string (e.g., 'INFO', 'DEBUG').
        log_file_path: The path to the log file.
        log_to_console: A boolean indicating whether to log to the console.
        module_levels: Optional per-module levels, e.g.
            ``{'translation_client': 'WARNING'}``. Names without the package
            prefix are resolved below ``shop_translator``.

    Returns:
        The configured logger instance.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level_str.upper(), logging.INFO))

    # Reconfiguring must not duplicate output.
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if log_to_console:
        console_handler = TqdmLoggingHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    for module_name, level_name in (module_levels or {}).items():
        level = getattr(logging, str(level_name).upper(), None)
        if not isinstance(level, int):
            logger.warning("Ignoring unknown log level '%s' for '%s'.", level_name, module_name)
            continue
        logging.getLogger(_qualified_name(module_name)).setLevel(level)

    return logger
