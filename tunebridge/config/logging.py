"""Loguru setup for Tunebridge.

Public API:
----------
setup_loguru_logger(verbose: bool = False, config: LoggingConfig | None = None)
    Install the console sink and the structured file sink

get_logger(name: str) -> Logger
    Logger bound with the module name
    Usage: logger = get_logger(__name__)

@resilient_operation(operation_name: str)
    Log failures of an async catalog call, then re-raise them
    Usage: @resilient_operation("catalog_search")
"""

import functools
from pathlib import Path
import sys
import time
from typing import Any

from loguru import logger

from .settings import LoggingConfig, settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan> - "
    "<level>{message}</level>"
)

# One JSON object per line; extra fields carry the structured context
FILE_ROTATION = "10 MB"
FILE_RETENTION = "1 week"


def _add_console_sink(level: str, verbose: bool) -> None:
    logger.add(
        sys.stdout,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )


def _add_file_sink(config: LoggingConfig) -> None:
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(log_path),
        level=config.file_level,
        rotation=FILE_ROTATION,
        retention=FILE_RETENTION,
        compression="zip",
        serialize=True,
        backtrace=True,
        diagnose=False,
        # A background queue delays writes; real-time debugging turns it off
        enqueue=not config.real_time_debug,
        catch=True,
    )


def setup_loguru_logger(verbose: bool = False, config: LoggingConfig | None = None) -> None:
    """Replace Loguru's default handler with Tunebridge's sinks.

    Args:
        verbose: Force DEBUG on the console and show full tracebacks
        config: Logging settings (defaults to ``settings.logging``)
    """
    config = config or settings.logging

    logger.remove()
    logger.configure(extra={"service": "tunebridge", "module": "root"})

    _add_console_sink("DEBUG" if verbose else config.console_level, verbose)
    _add_file_sink(config)


def get_logger(name: str) -> Any:  # Loguru does not export a public logger type
    """Logger bound with the calling module's name.

    Services bind a more specific ``service`` on top:

        logger = get_logger(__name__).bind(service="conversion")
    """
    return logger.bind(module=name, service="tunebridge")


def resilient_operation(operation_name: str | None = None):
    """Decorate an async call at a service boundary with failure logging.

    The failure is logged once with the operation name and how long the call
    ran before failing. The exception itself propagates untouched.
    """

    def decorator(func):
        op_name = operation_name or func.__name__
        op_logger = get_logger(func.__module__).bind(operation=op_name)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                op_logger.opt(exception=e).warning(
                    f"{op_name} failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
                )
                raise

        return wrapper

    return decorator
