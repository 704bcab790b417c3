"""
Logging setup for the kvdecoder package.

All modules log through ``logging.getLogger(__name__)`` below the ``kvdecoder``
logger, which carries a NullHandler so embedding applications decide where
records go. `set_debug` is a convenience toggle for interactive use.

Examples:
    >>> import logging
    >>> from kvdecoder.log import set_debug, PACKAGE_LOGGER
    >>> set_debug(True)
    >>> logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
    True
    >>> set_debug(False)
"""

from __future__ import annotations

import logging
import sys
from typing import Final

__all__ = [
    "PACKAGE_LOGGER",
    "set_debug",
    "is_debug",
]

PACKAGE_LOGGER: Final[str] = "kvdecoder"
_FORMAT: Final[str] = "%(asctime)s %(name)s %(levelname)s %(message)s"

_logger = logging.getLogger(PACKAGE_LOGGER)
_logger.addHandler(logging.NullHandler())

# Handler attached by set_debug() when nothing else is configured.
_debug_handler: logging.Handler | None = None


def set_debug(enabled: bool = True) -> None:
    """
    Toggle debug output for every kvdecoder logger.

    Args:
        enabled (bool): When True, set the package logger to DEBUG and, if no
            handler other than the NullHandler is attached (and the root logger has
            none either), attach a stdout handler. When False, restore NOTSET and
            remove that handler.
    """
    global _debug_handler
    if enabled:
        _logger.setLevel(logging.DEBUG)
        configured = [h for h in _logger.handlers if not isinstance(h, logging.NullHandler)]
        if not configured and not logging.getLogger().handlers and _debug_handler is None:
            _debug_handler = logging.StreamHandler(sys.stdout)
            _debug_handler.setFormatter(logging.Formatter(_FORMAT))
            _logger.addHandler(_debug_handler)
        return
    _logger.setLevel(logging.NOTSET)
    if _debug_handler is not None:
        _logger.removeHandler(_debug_handler)
        _debug_handler = None


def is_debug() -> bool:
    return _logger.isEnabledFor(logging.DEBUG)
