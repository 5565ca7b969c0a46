"""Usage audit service: resolve the scope's accumulator, build the record, persist it."""

import logging
from typing import Optional

from usage_audit.core.session_info import SessionInfo
from usage_audit.telemetry.accumulator import UsageAccumulator, get_accumulator
from usage_audit.telemetry.models import AuditRecordBuilder
from usage_audit.telemetry.resolver import FieldResolver
from usage_audit.telemetry.sink import AuditSink, ConnectionProvider


class UsageAuditService:
    """
    Synchronous, one event per call. An incomplete accumulator is skipped silently
    (logged, no row, no exception); insert failures propagate as AuditPersistenceError.
    """

    def __init__(
        self,
        connection_provider: ConnectionProvider,
        session_info: SessionInfo,
        sink: Optional[AuditSink] = None,
        resolver: Optional[FieldResolver] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._connection_provider = connection_provider
        self._logger = logger or logging.getLogger(__name__)
        self._resolver = resolver or FieldResolver(session_info, logger=self._logger)
        self._sink = sink or AuditSink(session_info, logger=self._logger)

    def save(self, accumulator: Optional[UsageAccumulator] = None) -> int:
        """Persist the given (or the current scope's) accumulator. Returns rows written."""
        if accumulator is None:
            accumulator = get_accumulator()

        if not self._resolver.resolve(accumulator):
            return 0

        record = AuditRecordBuilder.from_accumulator(accumulator).build()
        update_count = self._sink.persist(self._connection_provider, record)
        self._logger.debug("usage_audit_saved", extra={"audit": record.to_dict()})
        return update_count
