import os
import sys
from typing import TextIO

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)
DEFAULT_LOG_FILE = "logs/minerspy_{time:YYYY-MM-DD}.log"


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_file: str | None = DEFAULT_LOG_FILE,
    stream: TextIO = sys.stdout,
) -> None:
    """Configure loguru sinks.

    The API server logs to stdout plus a rotating DEBUG file, so slow
    snapshot builds (one geolocation call per miner) can be traced afterwards.
    The report script passes ``log_file=None, stream=sys.stderr`` to keep its
    stdout output clean. LOG_LEVEL env overrides ``level`` for the console.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        logger.add(stream, serialize=True, level=console_level)
    else:
        logger.add(stream, format=CONSOLE_FORMAT, level=console_level, colorize=stream.isatty())

    if log_file:
        logger.add(
            log_file,
            rotation="50 MB",
            retention="3 days",
            compression="gz",
            level="DEBUG",
            serialize=json_logs,
        )
