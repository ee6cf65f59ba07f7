"""
Audit Models for Expense Insight

An expense that never shows up in the totals should always leave a trace:
the row was rejected, the ledger refused it, or the upload was unusable.
Events of one user action share a correlation id.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


# Column order of the audit worksheet
SHEET_COLUMNS = (
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
)


class AuditEventType(str, Enum):
    """What happened."""
    EXPENSE_REJECTED = "expense_rejected"
    EXPENSE_SUBMITTED = "expense_submitted"
    EXPENSE_SUBMIT_FAILED = "expense_submit_failed"

    UPLOAD_REJECTED = "upload_rejected"
    IMPORT_STARTED = "import_started"
    IMPORT_COMPLETED = "import_completed"
    IMPORT_EMPTY = "import_empty"

    INSIGHTS_COMPUTED = "insights_computed"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """One entry of the audit trail."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # "expense", "import" or "insight"
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Flat, JSON-safe view for structlog."""
        return self.model_dump(mode="json")

    def to_sheets_row(self) -> list[str]:
        """One worksheet row, in SHEET_COLUMNS order."""
        values = self.to_log_dict()
        values["details_json"] = json.dumps(self.details) if self.details else ""
        values["is_user_action"] = str(self.is_user_action)
        return [
            "" if values.get(column) is None else str(values[column])
            for column in SHEET_COLUMNS
        ]


def _import_event(
    event_type: AuditEventType,
    correlation_id: UUID,
    description: str,
    severity: AuditSeverity = AuditSeverity.INFO,
    **details: Any,
) -> AuditEvent:
    # An import run is identified by its correlation id
    return AuditEvent(
        event_type=event_type,
        severity=severity,
        entity_type="import",
        entity_id=str(correlation_id),
        correlation_id=correlation_id,
        description=description,
        details=details,
    )


class AuditEventBuilder:
    """
    Factory methods for the events the flows emit.

    Usage:
        event = AuditEventBuilder.expense_rejected("invalid_date", msg, "csv", cid, line_number=4)
        event = AuditEventBuilder.import_completed(4, 1, cid)
    """

    @staticmethod
    def expense_rejected(
        reason: str,
        message: str,
        source: str,
        correlation_id: UUID,
        line_number: Optional[int] = None,
    ) -> AuditEvent:
        details = {"reason": reason, "source": source}
        if line_number is not None:
            details["line_number"] = line_number
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense rejected: {message}",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def expense_submitted(
        description: str,
        amount: str,
        source: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SUBMITTED,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense submitted: {description[:200]}",
            details={"amount": amount, "source": source},
        )

    @staticmethod
    def expense_submit_failed(
        description: str,
        error_message: str,
        source: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_SUBMIT_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Ledger refused expense: {description[:200]}",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def upload_rejected(
        filename: str,
        reason: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UPLOAD_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="import",
            correlation_id=correlation_id,
            description=f"Upload rejected: {filename[:200]}",
            details={"filename": filename},
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def import_started(
        row_count: int,
        skipped_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        event = _import_event(
            AuditEventType.IMPORT_STARTED,
            correlation_id,
            f"CSV import started with {row_count} valid rows",
            row_count=row_count,
            skipped_count=skipped_count,
        )
        event.is_user_action = True
        return event

    @staticmethod
    def import_completed(
        success_count: int,
        error_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return _import_event(
            AuditEventType.IMPORT_COMPLETED,
            correlation_id,
            f"CSV import finished: {success_count} imported, {error_count} failed",
            severity=AuditSeverity.WARNING if error_count else AuditSeverity.INFO,
            success_count=success_count,
            error_count=error_count,
        )

    @staticmethod
    def import_empty(skipped_count: int, correlation_id: UUID) -> AuditEvent:
        return _import_event(
            AuditEventType.IMPORT_EMPTY,
            correlation_id,
            "No valid expenses found in CSV",
            severity=AuditSeverity.WARNING,
            skipped_count=skipped_count,
        )

    @staticmethod
    def insights_computed(
        view: str,
        record_count: int,
        bucket_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_COMPUTED,
            severity=AuditSeverity.DEBUG,
            entity_type="insight",
            correlation_id=correlation_id,
            description=f"Computed {view} over {record_count} expenses",
            details={
                "view": view,
                "record_count": record_count,
                "bucket_count": bucket_count,
            },
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"External service error: {service}",
            details={"service": service},
            error_message=error_message,
        )
