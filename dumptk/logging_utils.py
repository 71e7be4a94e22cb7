# dumptk/logging_utils.py
"""
Logging utilities for dump scripts.

Creates timestamped log files like ``nightly_dump_YYYYMMDD_HHMMSS.log`` and,
on the first error, a matching ``_error.log``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

# Module-level state for error tracking
_error_handler: Optional['ErrorCountHandler'] = None
_main_log_path: Optional[str] = None
_error_log_path: Optional[str] = None


class ErrorCountHandler(logging.Handler):
    """Handler that counts ERROR and CRITICAL messages and lazily creates the error log."""

    def __init__(self, error_log_path: Optional[str] = None, formatter: Optional[logging.Formatter] = None):
        super().__init__(level=logging.ERROR)
        self.error_count = 0
        self.error_log_path = error_log_path
        self.formatter = formatter
        self._error_file_handler = None

    def emit(self, record):
        if record.levelno < logging.ERROR:
            return
        self.error_count += 1

        if self.error_log_path and self._error_file_handler is None:
            try:
                self._error_file_handler = logging.FileHandler(self.error_log_path, encoding='utf-8')
            except OSError as e:
                logger.warning(f"Failed to create error log file: {e}")
                self.error_log_path = None
                return
            self._error_file_handler.setLevel(logging.ERROR)
            if self.formatter:
                self._error_file_handler.setFormatter(self.formatter)

        if self._error_file_handler is not None:
            self._error_file_handler.handle(record)

    def close(self):
        if self._error_file_handler is not None:
            self._error_file_handler.close()
            self._error_file_handler = None
        super().close()


def setup_logging(
    script_name: Optional[str] = None,
    log_dir: Optional[str] = None,
    level: Optional[str] = None,
    split_errors: Optional[bool] = None,
    console: Optional[bool] = None
) -> Tuple[str, Optional[str]]:
    """
    Configure logging for dump scripts.

    Args:
        script_name: Base name for log files (defaults to script filename without extension)
        log_dir: Directory for log files (defaults to config setting or './logs')
        level: Logging level string - DEBUG, INFO, WARNING, ERROR (defaults to config or 'INFO')
        split_errors: Create separate error log file (defaults to config or True)
        console: Also log to stdout (defaults to config or True)

    Returns:
        Tuple of (log_file_path, error_log_path or None)

    Example
    -------
    ::
        import dumptk

        dumptk.setup_logging('nightly_dump', level='DEBUG')
    """
    from .config import get_setting

    if script_name is None:
        script_name = Path(sys.argv[0]).stem or 'dumptk'

    logging_config = get_setting('logging', {})

    log_dir = log_dir or logging_config.get('directory', './logs')
    level = (level or logging_config.get('level', 'INFO')).upper()
    split_errors = split_errors if split_errors is not None else logging_config.get('split_errors', True)
    console = console if console is not None else logging_config.get('console', True)

    log_format = logging_config.get('format', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    timestamp_format = logging_config.get('timestamp_format', '%Y-%m-%d %H:%M:%S')
    filename_format = logging_config.get('filename_format', '%Y%m%d_%H%M%S')

    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Invalid logging level: {level}")

    log_dir_path = Path(log_dir)
    log_dir_path.mkdir(parents=True, exist_ok=True)

    stem = f"{script_name}_{datetime.now().strftime(filename_format)}" if filename_format else script_name
    log_file = log_dir_path / f"{stem}.log"
    error_file = log_dir_path / f"{stem}_error.log" if split_errors else None

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format, datefmt=timestamp_format)

    global _error_handler, _main_log_path, _error_log_path
    _error_handler = ErrorCountHandler(
        error_log_path=str(error_file) if error_file else None,
        formatter=formatter
    )
    root_logger.addHandler(_error_handler)

    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.info(f"Logging initialized: {log_file}")

    _main_log_path = str(log_file)
    _error_log_path = str(error_file) if error_file else None

    return _main_log_path, _error_log_path


def errors_logged() -> Optional[str]:
    """
    Check if any ERROR or CRITICAL messages were logged during this run.

    Returns
    -------
    str or None
        Path to the error log (or the main log when errors are not split) if
        errors were logged, None otherwise or when setup_logging() was not called.

    Example
    -------
    ::

        dumptk.setup_logging('nightly_dump')
        for source in sources:
            try:
                writer.write_table_data(source)
            except OSError:
                logging.exception(f"Dump of {source.table_name} failed")

        error_log = dumptk.errors_logged()
        if error_log:
            print(f"Errors detected! See: {error_log}")
    """
    if _error_handler is None:
        logger.warning("errors_logged() called but setup_logging() was not called")
        return None

    if _error_handler.error_count == 0:
        return None

    return _error_log_path or _main_log_path
