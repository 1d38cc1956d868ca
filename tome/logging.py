# refer - https://loguru.readthedocs.io/en/stable/api/logger.html
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan> - <level>{message}</level>"

logger.remove() # remove default stuff
logger.configure(extra={"name": "tome"})

_console_sink = logger.add(
    sys.stderr,
    format=CONSOLE_FORMAT,
    level="INFO",
    colorize=True,
)

log_dir = Path("logs")
log_dir.mkdir(exist_ok=True)


# store error log files
logger.add(
    log_dir / "errors_{time:YYYY-MM-DD}.log",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{function}:{line} - {message}",
    level="ERROR",
    rotation="5 MB",
    retention="90 days",
)

# Function to get logger with context
def get_logger(name: Optional[str] = None):
    if name:
        return logger.bind(name=name)
    return logger


def set_log_level(level: str):
    """Change the console level. The error log file is kept."""
    global _console_sink
    logger.remove(_console_sink)
    _console_sink = logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper(), colorize=True)


def add_log_file(filepath, level: str = "INFO", **kwargs) -> int:
    """Also write the log to `filepath`. Returns the sink id for `logger.remove`."""
    return logger.add(filepath, level=level, **kwargs)
