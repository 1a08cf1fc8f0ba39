"""Logging setup for the keyset paginator."""

import logging
from typing import Optional

from .config import Settings, get_settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings.

    Applications embedding the paginator usually own logging themselves; this
    is a convenience for scripts and tests.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=settings.log_format
    )
    logging.getLogger().setLevel(getattr(logging, settings.log_level))

    # Keep driver chatter out of debug output
    logging.getLogger("asyncpg").setLevel(logging.WARNING)
