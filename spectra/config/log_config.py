from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER = "spectra"

# handlers installed by configure_logging, replaced on the next call
_installed = []


def configure_logging(level: str = "INFO", log_file: str | None = None, to_console: bool = True) -> logging.Logger:
    """
    Attach handlers to the ``spectra`` logger.

    Args:
        level: Level name ('DEBUG', 'INFO', ...). Unknown names fall back to INFO.
        log_file: Optional file path; its directory is created if missing.
        to_console: Also write to stderr.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for h in _installed:
        logger.removeHandler(h)
        h.close()
    _installed.clear()

    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    fmt = logging.Formatter(LOG_FORMAT)

    if log_file:
        parent = os.path.dirname(log_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        _installed.append(fh)

    if to_console:
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(fmt)
        _installed.append(ch)

    for h in _installed:
        logger.addHandler(h)
    return logger
