"""API middleware: correlation ID, per-request session info and usage accumulator."""

import contextvars
import logging
import uuid
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from usage_audit.api.dependencies import get_usage_audit_service
from usage_audit.core.context import correlation_id_ctx
from usage_audit.core.session_info import bind_session_info
from usage_audit.telemetry.accumulator import UsageAccumulator, accumulator_scope
from usage_audit.telemetry.exceptions import AuditPersistenceError
from usage_audit.telemetry.service import UsageAuditService

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
SESSION_HEADER = "X-Session-ID"
USER_HEADER = "X-User-ID"
MODULE_HEADER = "X-Module-ID"
PROCESS_TYPE_HEADER = "X-Process-Type"
PROCESS_ID_HEADER = "X-Process-ID"
QUERY_PROFILE_HEADER = "X-Query-Profile"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class UsageAuditMiddleware(BaseHTTPMiddleware):
    """
    Opens one usage accumulator per request and discards it when the request ends.
    Endpoints record an event by setting `command` on the accumulator; the row is
    written after the response is produced. Audit failures never fail the request.
    """

    def __init__(
        self,
        app: ASGIApp,
        service_factory: Optional[Callable[[], UsageAuditService]] = None,
    ) -> None:
        super().__init__(app)
        self._service_factory = service_factory or get_usage_audit_service

    async def dispatch(self, request: Request, call_next) -> Response:
        headers = request.headers
        with bind_session_info(
            user_id=headers.get(USER_HEADER),
            module_id=headers.get(MODULE_HEADER),
            process_type=headers.get(PROCESS_TYPE_HEADER),
            process_id=headers.get(PROCESS_ID_HEADER),
            query_profile=headers.get(QUERY_PROFILE_HEADER),
        ):
            with accumulator_scope() as accumulator:
                accumulator.session_id = headers.get(SESSION_HEADER)
                response = await call_next(request)
                if accumulator.command:
                    await self._save(request, accumulator)
        return response

    async def _save(self, request: Request, accumulator: UsageAccumulator) -> None:
        # The insert blocks; run it off the event loop with this request's session info.
        context = contextvars.copy_context()
        try:
            await run_in_threadpool(context.run, self._service_factory().save, accumulator)
        except AuditPersistenceError as e:
            logger.error(
                "usage_audit_persist_failed",
                extra={
                    "path": request.url.path,
                    "command": accumulator.command,
                    "error_code": e.code,
                    "error": e.message,
                },
            )
