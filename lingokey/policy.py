"""Recoverable failure policy shared by the translation operations."""

from __future__ import annotations

import logging
from typing import List, Optional

from .errors import ErrorCategory, ErrorRecord
from .logger import get_logger

logger = get_logger(__name__)

_LEVELS = {
    ErrorCategory.FONT: logging.WARNING,
    ErrorCategory.RESOLUTION: logging.DEBUG,
    ErrorCategory.APPLY: logging.ERROR,
}


class ErrorPolicy:
    """Collects contained failures for a single operation.

    Nothing recorded here stops the operation; the records travel back to
    the caller inside the operation's result so partial failures can be
    reported.
    """

    def __init__(self) -> None:
        self.records: List[ErrorRecord] = []

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        details: Optional[str] = None,
    ) -> ErrorRecord:
        """Record and log an error, then let the caller continue."""

        record = ErrorRecord(category=category, message=message, details=details)
        self.records.append(record)
        level = _LEVELS.get(category, logging.WARNING)
        if details:
            logger.log(level, "%s (%s)", message, details)
        else:
            logger.log(level, message)
        return record
