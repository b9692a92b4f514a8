"""Logging setup for applications embedding dify-client.

The library itself only calls ``structlog.get_logger``; nothing is configured
on import. Applications that want the same output format as the rest of the
stack call :func:`setup_logging` once at startup.
"""

import logging
from pathlib import Path

import structlog

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "anyio")


def setup_logging(*, level: int = logging.INFO, log_file: Path | None = None) -> None:
    """Route stdlib and structlog output to stderr or a log file.

    Args:
        level: Root log level
        log_file: Optional file to write to instead of stderr
    """
    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
