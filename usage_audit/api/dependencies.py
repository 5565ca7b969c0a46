"""FastAPI dependency injection: usage audit service and the request's accumulator."""

from usage_audit.config.settings import get_settings
from usage_audit.core.session_info import ContextVarSessionInfo
from usage_audit.infrastructure.database.session import get_engine
from usage_audit.infrastructure.database.timeouts import QueryTimeoutPolicy
from usage_audit.telemetry.accumulator import UsageAccumulator, get_accumulator
from usage_audit.telemetry.service import UsageAuditService
from usage_audit.telemetry.sink import AuditSink

_usage_audit_service: UsageAuditService | None = None


def get_usage_audit_service() -> UsageAuditService:
    """Return singleton UsageAuditService bound to the configured engine."""
    global _usage_audit_service
    if _usage_audit_service is None:
        session_info = ContextVarSessionInfo()
        sink = AuditSink(
            session_info,
            timeout_policy=QueryTimeoutPolicy.from_settings(get_settings()),
        )
        _usage_audit_service = UsageAuditService(
            connection_provider=get_engine(),
            session_info=session_info,
            sink=sink,
        )
    return _usage_audit_service


async def get_usage_accumulator() -> UsageAccumulator:
    """The accumulator opened by UsageAuditMiddleware for this request."""
    # async so it runs in the request's context rather than a worker thread's copy.
    return get_accumulator()
