"""Logging configuration for the Enclave Deployer API.

structlog renders every event; the stdlib root logger only carries the
rendered line to stdout and, when ``log_file`` is set, to a rotating file.
"""

# Standard library imports
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Third-party imports
import structlog

# Local application imports
from .._version import __version__
from ..config import LoggingConfig, settings

SERVICE_NAME = "enclave-deployer"

# Libraries that log every request or connection at INFO
THIRD_PARTY_LOG_LEVELS: Dict[str, int] = {
    "docker": logging.WARNING,
    "urllib3": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def _level(config: LoggingConfig) -> int:
    return getattr(logging, config.level.upper(), logging.INFO)


def build_processors(config: LoggingConfig) -> List[structlog.types.Processor]:
    """Processor chain ending in the renderer selected by ``log_format``."""
    renderer = (
        structlog.processors.JSONRenderer()
        if config.format.lower() == "json"
        else structlog.dev.ConsoleRenderer(colors=config.file is None)
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
        renderer,
    ]


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structlog and the stdlib root logger from the logging group."""
    config = config or settings.logging

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_level(config))
    logging.getLogger().setLevel(_level(config))

    structlog.configure(
        processors=build_processors(config),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if config.file:
        setup_file_logging(config)

    configure_third_party_loggers(config)


def setup_file_logging(config: LoggingConfig) -> Optional[logging.Handler]:
    """Attach a size-rotated file handler to the root logger.

    Returns the handler, or None when no log file is configured or one for
    the same path is already attached.
    """
    if not config.file:
        return None

    log_file_path = Path(config.file).resolve()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler) and Path(handler.baseFilename) == log_file_path:
            return None

    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        filename=log_file_path,
        maxBytes=config.max_size_mb * 1024 * 1024,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    # Events arrive already rendered by structlog
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    file_handler.setLevel(_level(config))

    root_logger.addHandler(file_handler)
    return file_handler


def configure_third_party_loggers(config: LoggingConfig) -> None:
    """Quiet chatty libraries; uvicorn access lines follow ``enable_access_logs``."""
    for name, level in THIRD_PARTY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(
        logging.INFO if config.enable_access_logs else logging.WARNING
    )


def add_service_context(logger, method_name, event_dict):
    """Stamp every event with the service name and version."""
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = __version__
    return event_dict
