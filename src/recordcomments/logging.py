import logging

import structlog

# Loggers that are noisy at DEBUG without telling anything about comment sync
QUIET_LOGGERS = ("asyncio",)


def _processors(debug: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    # Console output while developing, one JSON object per event otherwise
    processors.append(structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer())
    return processors


def setup_logging(debug: bool, quiet: tuple[str, ...] = QUIET_LOGGERS) -> None:
    """Route structlog events through stdlib logging.

    Host applications that configure logging themselves can skip this; every module
    only calls `structlog.get_logger(__name__)`.
    """
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format="%(message)s")
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(debug),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
