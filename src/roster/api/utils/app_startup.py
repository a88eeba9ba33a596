"""Loguru setup for the roster service.

Besides the console and the general log file, failed reads and writes of
the roster file can be sent to a dedicated JSON-lines sink so an operator
sees every change that never reached disk.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

from src.roster.runtime.config.config_data import ConfigData, LoggingConfig
from src.roster.runtime.context import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "[<cyan>{extra[request_id]}</cyan>] | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# uvicorn's own access and error logs duplicate the request middleware
_DROPPED_STDLIB = {"uvicorn.access"}


class InterceptHandler(logging.Handler):
    """Forward standard library log records into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        if record.name in _DROPPED_STDLIB:
            return
        if record.name == "uvicorn.error" and record.levelno >= logging.ERROR:
            return

        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=2, exception=record.exc_info).bind(
            logger_name=record.name
        ).log(level, record.getMessage())


def is_persistence_warning(record) -> bool:
    """True for the records the store logs when a load or save fails."""
    return "operation" in record["extra"]


def _add_log_file(cfg: LoggingConfig, verbose: bool) -> None:
    path = Path(cfg.file)
    path.parent.mkdir(parents=True, exist_ok=True)
    as_json = cfg.format == "json"
    logger.add(
        str(path),
        level=cfg.level,
        format="{message}" if as_json else CONSOLE_FORMAT,
        serialize=as_json,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
        compression="zip",
        enqueue=True,
        backtrace=verbose,
        diagnose=verbose,
    )


def _add_persistence_log(cfg: LoggingConfig) -> None:
    path = Path(cfg.persistence_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    # every failed save is kept, whatever the general level
    logger.add(
        str(path),
        level="WARNING",
        format="{message}",
        filter=is_persistence_warning,
        serialize=True,
        rotation=f"{cfg.max_size_mb} MB",
        retention=cfg.backup_count,
    )


def _route_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in list(logging.root.manager.loggerDict):
        stdlog = logging.getLogger(name)
        stdlog.handlers = []
        stdlog.propagate = True

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.CRITICAL)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def configure_logging(config: ConfigData | None = None) -> None:
    """(Re)configure every sink from ``config``, or the active configuration."""
    config = config or get_config()
    cfg = config.logging
    verbose = config.app.environment != "production"

    logger.remove()
    logger.configure(
        extra={"request_id": "-"},
        patcher=lambda record: record["extra"].setdefault("request_id", "-"),
    )

    logger.add(
        sys.stderr,
        level=cfg.level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )
    if cfg.file:
        _add_log_file(cfg, verbose)
    if cfg.persistence_file:
        _add_persistence_log(cfg)

    _route_stdlib_logging()

    logger.info(
        "Logging configured",
        app_level=cfg.level,
        app_format=cfg.format,
        app_file=cfg.file,
        persistence_file=cfg.persistence_file,
        storage=config.storage.path,
        environment=config.app.environment,
    )
