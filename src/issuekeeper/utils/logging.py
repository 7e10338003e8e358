"""Logging setup for issuekeeper entry points."""

import logging

from issuekeeper.config.models import LoggingConfig


def configure_logging(
    config: LoggingConfig | None = None,
    verbose: bool = False,
    force: bool = False,
) -> None:
    """Initialise stdlib logging from a LoggingConfig.

    The root logger gets a stream handler (and a file handler when
    ``config.file`` is set). The ``issuekeeper`` logger is set to the
    configured level, or DEBUG when ``verbose`` is on.

    Args:
        config: Logging configuration (defaults apply when None)
        verbose: Force DEBUG for issuekeeper loggers
        force: Replace handlers installed by an earlier call
    """
    config = config or LoggingConfig()
    level = logging.DEBUG if verbose else getattr(logging, config.level.value)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    logging.basicConfig(
        level=logging.WARNING,
        format=config.format,
        handlers=handlers,
        force=force,
    )
    logging.getLogger("issuekeeper").setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
