"""
Audit Logger

DESIGN DECISION: Every change to the journal is logged as a structured
event. This gives us:
1. A trace of what happened before a save failed or a store was recreated
2. Debugging capability without attaching a debugger to the app
3. No dependency on the store itself (a broken store can still be logged)

The audit logger never raises: a logging failure must not break the
operation being logged.
"""

import logging
import sys
from typing import Optional

import structlog

from permission_journal.models.audit import JournalEvent, JournalSeverity


def configure_logging(level: str = "INFO", log_format: str = "json") -> None:
    """
    Configure structlog on top of stdlib logging.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
        force=True,
    )

    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    return structlog.get_logger(name)


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured local log only.
    """

    def __init__(self, logger=None):
        self._logger = logger or get_logger("permission_journal.audit")

    def log(self, event: JournalEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == JournalSeverity.ERROR:
                self._logger.error("journal_event", **log_dict)
            elif event.severity == JournalSeverity.WARNING:
                self._logger.warning("journal_event", **log_dict)
            elif event.severity == JournalSeverity.DEBUG:
                self._logger.debug("journal_event", **log_dict)
            else:
                self._logger.info("journal_event", **log_dict)
        except Exception as e:
            # Last resort: stdlib logging is always configured
            logging.getLogger(__name__).error(
                "Failed to write journal event %s: %s", event.event_id, e
            )
            return False
        return True
