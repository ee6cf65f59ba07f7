"""
Audit Logger

Every rejection, submission and import run goes through here. Events are
always written to the structured local log and, when an audit store is
configured, appended to it as well.

A failing audit store never fails the flow that produced the event.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_insight.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_insight.services.ledger import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

_LEVELS = {
    AuditSeverity.DEBUG: logging.DEBUG,
    AuditSeverity.INFO: logging.INFO,
    AuditSeverity.WARNING: logging.WARNING,
    AuditSeverity.ERROR: logging.ERROR,
}


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))


def create_correlation_id() -> UUID:
    """New id for one user action (a form submit, an upload, a dashboard load)."""
    return uuid4()


class AuditLogger:
    """
    Writes audit events locally and, optionally, to an audit store.

    Args:
        storage: Append-only audit store; None keeps events local only
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger("expense_insight.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when the store rejected or failed the write.
        """
        self._logger.log(_LEVELS[event.severity], "audit_event", **event.to_log_dict())

        if self._storage is None:
            return True
        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    # Manual entry and per-row events

    async def log_expense_rejected(
        self,
        reason: str,
        message: str,
        source: str,
        correlation_id: UUID,
        line_number: Optional[int] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_rejected(
            reason, message, source, correlation_id, line_number=line_number
        ))

    async def log_expense_submitted(
        self,
        description: str,
        amount: str,
        source: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_submitted(
            description, amount, source, correlation_id
        ))

    async def log_submit_failed(
        self,
        description: str,
        error_message: str,
        source: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_submit_failed(
            description, error_message, source, correlation_id
        ))

    # Bulk import

    async def log_upload_rejected(self, filename: str, reason: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.upload_rejected(filename, reason, correlation_id))

    async def log_import_started(
        self,
        row_count: int,
        skipped_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.import_started(row_count, skipped_count, correlation_id))

    async def log_import_completed(
        self,
        success_count: int,
        error_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.import_completed(
            success_count, error_count, correlation_id
        ))

    async def log_import_empty(self, skipped_count: int, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.import_empty(skipped_count, correlation_id))

    # Insights

    async def log_insights_computed(
        self,
        view: str,
        record_count: int,
        bucket_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.insights_computed(
            view, record_count, bucket_count, correlation_id
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.external_service_error(
            service, error_message, correlation_id
        ))
