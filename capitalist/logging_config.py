"""structlog configuration shared by every module.

Events are upper-snake names with keyword context, e.g.
``logger.info("CACHED_CATALOG_HIT", count=250)``.
"""

import logging
import sys

import structlog

from capitalist.config import LOG_JSON, LOG_LEVEL


def configure_logging(*, log_json: bool = LOG_JSON, level: str = LOG_LEVEL) -> None:
    """Configure structlog processors and stdlib routing.

    Args:
        log_json: Render JSON lines instead of console output.
        level: Minimum level name for the ``capitalist`` logger.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("capitalist").setLevel(level)
    logging.getLogger("httpx").setLevel(logging.WARNING)


configure_logging()

logger = structlog.get_logger("capitalist")
