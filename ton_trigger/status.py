"""
Status reporting for the listener and dispatcher.

Status updates are short human-readable messages ("Status: Running",
"Error: Window Not Found") with a severity. Whoever runs the service decides
where they go; by default they are written to the log.
"""

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class StatusSeverity(Enum):
    """Severity of a status update."""
    INFO = "info"
    ERROR = "error"


StatusCallback = Callable[[str, StatusSeverity], None]


def log_status(message: str, severity: StatusSeverity) -> None:
    """Default status callback: route status updates to the log."""
    if severity is StatusSeverity.ERROR:
        logger.error(message)
    else:
        logger.info(message)
