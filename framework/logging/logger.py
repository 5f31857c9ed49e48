import sys
from pathlib import Path
from contextvars import ContextVar
from typing import Optional
from loguru import logger
from fastapi import Request
from framework.config import settings, Settings

# Store current request in contextvars for async context
_current_request: ContextVar[Optional[Request]] = ContextVar("current_request", default=None)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>Trace:{extra[trace_id]}</magenta> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | Trace:{extra[trace_id]} - {message}"


class LogConfig:
    """Global logging configuration using Loguru."""
    @classmethod
    def setup_logging(cls, config: Optional[Settings] = None):
        config = config or settings
        logger.remove()
        logger.configure(extra={"trace_id": "system"})

        logger.add(
            sys.stdout,
            enqueue=True,
            backtrace=True,
            # diagnose prints local variables, which may include credentials
            diagnose=not config.is_production,
            format=CONSOLE_FORMAT,
            level="DEBUG" if config.DEBUG else "INFO",
        )

        # Test runs log to stdout only
        if config.APP_ENV.lower() == "testing":
            return

        log_dir = Path(config.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "app_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            compression="zip",
            enqueue=True,
            format=FILE_FORMAT,
            level="DEBUG",
        )

        logger.add(
            log_dir / "error_{time:YYYY-MM-DD}.log",
            level="ERROR",
            rotation="100 MB",
            enqueue=True,
            format=FILE_FORMAT,
        )


def get_logger(name: str = None, request: Optional[Request] = None):
    """Get logger instance; optionally pass request for trace_id, else from context."""
    current_request = request or _current_request.get()

    if current_request is not None:
        trace_id = getattr(current_request.state, "trace_id", "unknown")
    else:
        trace_id = "unknown"

    if name:
        return logger.bind(name=name, trace_id=trace_id)
    else:
        return logger.bind(trace_id=trace_id)
