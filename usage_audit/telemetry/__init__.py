"""Telemetry: per-scope usage accumulator, field resolution, audit persistence. No FastAPI."""

from usage_audit.telemetry.accumulator import (
    UsageAccumulator,
    accumulator_scope,
    discard_accumulator,
    get_accumulator,
)
from usage_audit.telemetry.exceptions import AuditPersistenceError, TelemetryError
from usage_audit.telemetry.models import OBJECT_TYPE_PROCESS, AuditRecord, AuditRecordBuilder
from usage_audit.telemetry.resolver import FieldResolver
from usage_audit.telemetry.service import UsageAuditService
from usage_audit.telemetry.sink import AuditSink

__all__ = [
    "UsageAccumulator",
    "accumulator_scope",
    "discard_accumulator",
    "get_accumulator",
    "AuditPersistenceError",
    "TelemetryError",
    "OBJECT_TYPE_PROCESS",
    "AuditRecord",
    "AuditRecordBuilder",
    "FieldResolver",
    "UsageAuditService",
    "AuditSink",
]
