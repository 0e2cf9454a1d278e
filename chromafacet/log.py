# Copyright (c) 2026 Chromafacet
# SPDX-License-Identifier: MIT

"""
Logging setup.

Modules log through loguru's ``logger`` with bound context
(``variant_id``, ``family``...). The package is disabled on import so a
host application only sees these records after calling configure_logging.
"""

from __future__ import annotations

import sys
from typing import Any, Optional

from loguru import logger

PACKAGE = "chromafacet"

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message} | {extra}"

_handler_id: Optional[int] = None


def configure_logging(level: str = "INFO", sink: Any = None) -> int:
    """
    Enable chromafacet logging and attach a sink for its records.

    Calling again replaces the previously attached sink.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        sink: Any loguru sink (stream, path, callable). Defaults to stderr.

    Returns:
        The loguru handler id.
    """
    global _handler_id
    if _handler_id is not None:
        logger.remove(_handler_id)
    logger.enable(PACKAGE)
    _handler_id = logger.add(
        sink if sink is not None else sys.stderr,
        format=LOG_FORMAT,
        level=level.upper(),
        filter=PACKAGE,
    )
    return _handler_id


def reset_logging() -> None:
    """Detach the sink added by configure_logging and silence the package again."""
    global _handler_id
    if _handler_id is not None:
        logger.remove(_handler_id)
        _handler_id = None
    logger.disable(PACKAGE)
