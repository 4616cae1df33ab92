"""Logging setup shared by the CLI and the API server.

Modules log through ``get_logger(__name__)``; the entry points call
:func:`setup_logging` once. Pillow and the multipart form parser emit a
line per PNG chunk or form part at DEBUG, so they are held at WARNING
unless ``verbose_libraries`` is set.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LIBRARY_LOGGERS = ("PIL", "python_multipart", "multipart")


def setup_logging(level: str = "INFO", verbose_libraries: bool = False) -> None:
    """Install a stdout handler on the root logger.

    Does nothing when the root logger already has a handler (pytest's
    capture handler, uvicorn's config, or an earlier call).

    Args:
        level: Level name, case-insensitive; unknown names fall back to INFO.
        verbose_libraries: Let image and form-parsing libraries log at
            ``level`` as well.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    if not verbose_libraries:
        for name in NOISY_LIBRARY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (normally the caller's ``__name__``)."""
    return logging.getLogger(name)
