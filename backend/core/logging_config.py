"""
Loguru logging configuration.

- Colored console output in development
- JSON lines everywhere else
- Rotating file sink (skipped when ``log_dir`` is None, e.g. under tests)
- Correlation ID attached to every record
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """Attach the request correlation ID ('-' outside requests). Never drops."""
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(
    environment: str = "development", log_dir: str | None = "logs"
) -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for colored console output, anything
            else for JSON.
        log_dir: Directory for the rotating app.log file, or None for no file.
    """
    logger.remove()
    is_development = environment == "development"

    if is_development:
        logger.add(
            sys.stderr,
            format=LOG_FORMAT,
            level="DEBUG",
            filter=correlation_filter,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level="INFO",
            filter=correlation_filter,
            serialize=True,
        )

    if log_dir is None:
        return

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logger.add(
        str(Path(log_dir) / "app.log"),
        format=LOG_FORMAT if is_development else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not is_development,
    )
