"""
Unified logging configuration for the stormwater analysis package
Provides named loggers with console and optional rotating file output
"""
import logging
import logging.handlers
import sys
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Optional, Dict
from stormwater.core.config import get_settings

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class StormwaterLogFormatter(logging.Formatter):
    """
    Pipe-separated formatter, optionally coloured by level for terminals
    """

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = False):
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_colors = use_colors

    def format(self, record):
        formatted = super().format(record)
        if self.use_colors and record.levelname in self.COLORS:
            return f"{self.COLORS[record.levelname]}{formatted}{self.RESET}"
        return formatted


class StormwaterLogger:
    """
    Creates and caches loggers configured from Settings
    """

    def __init__(self):
        self.loggers: Dict[str, logging.Logger] = {}

    def get_logger(self,
                   name: str,
                   log_level: Optional[str] = None,
                   log_to_file: Optional[bool] = None,
                   log_to_console: Optional[bool] = None) -> logging.Logger:
        """
        Get or create a logger

        Args:
            name: Logger name (usually module name), nested under "stormwater"
            log_level: Overrides STORMWATER_LOG_LEVEL
            log_to_file: Overrides STORMWATER_LOG_TO_FILE
            log_to_console: Overrides STORMWATER_LOG_TO_CONSOLE

        Returns:
            Configured logger instance
        """
        settings = get_settings()
        log_level = (log_level or settings.LOG_LEVEL).upper()
        log_to_file = settings.LOG_TO_FILE if log_to_file is None else log_to_file
        log_to_console = settings.LOG_TO_CONSOLE if log_to_console is None else log_to_console

        logger_key = f"{name}_{log_level}_{log_to_file}_{log_to_console}"
        if logger_key in self.loggers:
            return self.loggers[logger_key]

        qualified_name = name if name.startswith("stormwater") else f"stormwater.{name}"
        logger = logging.getLogger(qualified_name)
        logger.setLevel(getattr(logging, log_level, logging.INFO))

        # Avoid duplicate handlers when the same name is requested with new options
        logger.handlers.clear()
        logger.propagate = False

        if log_to_file:
            file_handler = self._create_file_handler(name, Path(settings.LOG_DIR))
            file_handler.setFormatter(StormwaterLogFormatter())
            logger.addHandler(file_handler)

        if log_to_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(StormwaterLogFormatter(use_colors=sys.stdout.isatty()))
            logger.addHandler(console_handler)

        if not logger.handlers:
            logger.addHandler(logging.NullHandler())

        self.loggers[logger_key] = logger
        return logger

    def _create_file_handler(self, name: str, logs_dir: Path) -> logging.Handler:
        """Create rotating file handler (10MB max, keep 5 backups)"""
        logs_dir.mkdir(parents=True, exist_ok=True)
        filepath = logs_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
        return logging.handlers.RotatingFileHandler(
            filepath,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )


_logger_manager = None

def get_logger_manager() -> StormwaterLogger:
    """Get global logger manager instance"""
    global _logger_manager
    if _logger_manager is None:
        _logger_manager = StormwaterLogger()
    return _logger_manager

def get_stormwater_logger(name: str, **kwargs) -> logging.Logger:
    """Convenience wrapper around StormwaterLogger.get_logger"""
    return get_logger_manager().get_logger(name, **kwargs)

def log_function_call(logger: logging.Logger):
    """
    Decorator logging start, duration and failure of a function call

    Args:
        logger: Logger instance to use
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            func_name = func.__name__
            started = time.perf_counter()
            logger.debug(f"Starting {func_name}")
            try:
                result = func(*args, **kwargs)
            except Exception:
                elapsed = time.perf_counter() - started
                logger.exception(f"Failed {func_name} after {elapsed:.3f}s")
                raise
            elapsed = time.perf_counter() - started
            logger.debug(f"Completed {func_name} in {elapsed:.3f}s")
            return result

        return wrapper
    return decorator
