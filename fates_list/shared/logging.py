"""Logging setup shared by the widget service and scripts."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from fates_list.shared.config import Settings
from fates_list.shared.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings.

    Logs go to stdout, and additionally to ``settings.log_file`` when set.
    Pillow's plugin chatter is kept at WARNING unless debugging.
    """
    settings = settings or get_settings()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    if not settings.debug:
        logging.getLogger("PIL").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
