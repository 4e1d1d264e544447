"""Centralized logging configuration for the bridge.

Everything goes to stderr: stdout is the MCP stdio transport and any stray
byte written there corrupts the protocol stream.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from functools import wraps
from typing import Awaitable, Callable, Generator, Optional, TypeVar

from config.defaults import DEFAULT_LOG_LEVEL, ENV_LOG_LEVEL

SIMPLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every message they handle at INFO
CHATTY_LOGGERS = ("mcp", "mcp.server.lowlevel.server")

T = TypeVar("T")


def setup_logging(level: Optional[str] = None) -> None:
    """Route all logging to stderr at the given level.

    Safe to call more than once; the CLI configures logging from its flags
    first and again once settings are loaded.

    Args:
        level: Level name. Falls back to the LOG_LEVEL environment variable,
            then INFO. Unknown names fall back to INFO.
    """
    level_name = (level or os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=DETAILED_FORMAT if log_level <= logging.DEBUG else SIMPLE_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.DEBUG
) -> Generator[None, None, None]:
    """Log how long the enclosed block took and whether it raised.

    Example:
        with log_timing(logger, "Tool hover"):
            text = await handler(params)

    logs "Tool hover completed in 12.3ms", or "Tool hover failed in 12.3ms"
    when an exception leaves the block (the exception still propagates).
    """
    start = time.perf_counter()
    outcome = "failed"
    try:
        yield
        outcome = "completed"
    finally:
        logger.log(level, "%s %s in %.1fms", operation, outcome, _elapsed_ms(start))


def timed(
    operation: Optional[str] = None, level: int = logging.DEBUG
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator form of log_timing for coroutines.

    The message is logged on the decorated function's module logger.

    Args:
        operation: Name to log. Defaults to the function name.
        level: Log level for the timing message.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        name = operation or func.__name__
        func_logger = logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            with log_timing(func_logger, name, level):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
