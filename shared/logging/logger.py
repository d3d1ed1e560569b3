"""Logger lookup with a plain-text fallback.

Entry points call ``configure_logging`` for JSON output. Code reached without
it (scripts, a REPL) still gets readable lines: the first ``get_logger`` call
installs a basic handler unless the root logger already has one.
"""

from __future__ import annotations

import logging

FALLBACK_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def get_logger(name: str, auto_configure: bool = True) -> logging.Logger:
    """Return the stdlib logger ``name``, propagating to root.

    Args:
        name: Logger name, dotted by component.
        auto_configure: Install the fallback handler if nothing configured
            logging yet.
    """
    if auto_configure and not _configured:
        _install_fallback()

    logger = logging.getLogger(name)
    logger.propagate = True
    return logger


def _install_fallback():
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.INFO, format=FALLBACK_FORMAT)
    mark_configured()


def is_configured() -> bool:
    return _configured


def mark_configured():
    global _configured
    _configured = True
