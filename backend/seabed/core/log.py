"""Process-wide logging setup."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the service.

    Args:
        level: Logging level name such as "DEBUG" or "INFO". Unknown names
            fall back to INFO.
    """
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("seabed").setLevel(resolved)
