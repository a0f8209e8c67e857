from __future__ import annotations

import logging
import os

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).strip().upper()
    unknown = not isinstance(logging.getLevelName(level_name), int)
    if unknown:
        bad, level_name = level_name, "INFO"

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level_name, format=_FORMAT)
    else:
        root.setLevel(level_name)
    # requests/urllib3 are noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if unknown:
        logging.getLogger(__name__).warning("Unknown log level %r; using INFO", bad)
