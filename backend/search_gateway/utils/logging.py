# /search_gateway/utils/logging.py

import logging
import sys
import structlog
from search_gateway.config.settings import settings

# Third-party loggers that are too chatty at INFO (httpx logs every catalog GET)
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_HANDLER_NAME = "search_gateway"


def add_service_context(logger, method_name, event_dict):
    """Stamps every record with the catalog account and deployment it came from."""
    event_dict.setdefault("service", "search-gateway")
    event_dict.setdefault("catalog_account", settings.catalog_account)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def setup_logging():
    """
    Routes structlog and standard-library records through one renderer.

    Safe to call more than once (each app lifespan calls it): the gateway's
    handler is replaced rather than stacked.
    """
    development = settings.environment == "development"
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer() if development else structlog.processors.JSONRenderer(),
        foreign_pre_chain=shared_processors,
    ))

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if development else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
