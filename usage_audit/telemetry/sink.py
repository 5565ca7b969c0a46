"""Writes one AuditRecord as one row of the session_usage_audit table."""

import json
import logging
from typing import Any, Optional, Protocol, Tuple

from sqlalchemy import BigInteger, Connection, String, cast, insert, literal
from sqlalchemy.exc import SQLAlchemyError

from usage_audit.core.session_info import SessionInfo
from usage_audit.infrastructure.database.models import SessionUsageAudit
from usage_audit.infrastructure.database.timeouts import QueryTimeoutPolicy
from usage_audit.telemetry.exceptions import AuditPersistenceError
from usage_audit.telemetry.models import AuditRecord

# Column order for bind_parameters(); id, client_id and org_id come from the table defaults.
INSERT_COLUMNS = (
    "created_by",
    "updated_by",
    "session_id",
    "object_id",
    "module_id",
    "command",
    "classname",
    "object_type",
    "process_time",
    "json_data",
)

# Driver exception attributes that carry a backend error code, in lookup order.
_ERROR_CODE_ATTRS = ("sqlstate", "pgcode", "errno", "sqlite_errorcode")


class ConnectionProvider(Protocol):
    """Anything that hands out a pooled SQLAlchemy connection (an Engine does)."""

    def connect(self) -> Connection:
        ...


def bind_parameters(record: AuditRecord) -> Tuple[Any, ...]:
    """Positional insert values for a record, in INSERT_COLUMNS order."""
    return (
        record.user_id,
        record.user_id,
        record.session_id,
        record.object_id,
        record.module_id,
        record.command,
        record.classname,
        record.object_type,
        str(record.timestamp) if record.timestamp is not None else None,
        json.dumps(record.metadata if record.metadata is not None else {}, indent=2),
    )


def backend_error_code(exc: SQLAlchemyError) -> Optional[str]:
    """Error code reported by the DBAPI driver behind a SQLAlchemy error, if any."""
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    for attr in _ERROR_CODE_ATTRS:
        value = getattr(orig, attr, None)
        if value is not None:
            return str(value)
    if orig.args and isinstance(orig.args[0], int):
        return str(orig.args[0])
    return None


def _backend_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class AuditSink:
    """
    Inserts usage audit rows. One connection per call, always released before returning.
    Insert failures raise AuditPersistenceError; release failures are only logged.
    """

    def __init__(
        self,
        session_info: SessionInfo,
        timeout_policy: Optional[QueryTimeoutPolicy] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._session_info = session_info
        self._timeout_policy = timeout_policy or QueryTimeoutPolicy()
        self._logger = logger or logging.getLogger(__name__)

    def _statement(self, record: AuditRecord):
        values = dict(zip(INSERT_COLUMNS, bind_parameters(record)))
        values["process_time"] = cast(literal(values["process_time"], String), BigInteger)
        return insert(SessionUsageAudit).values(**values)

    def persist(self, connection_provider: ConnectionProvider, record: AuditRecord) -> int:
        """Insert one row for the record. Returns the affected row count (1 on success)."""
        update_count = 0
        connection = None
        debug = self._logger.isEnabledFor(logging.DEBUG)
        try:
            connection = connection_provider.connect()
            self._timeout_policy.apply(connection, self._session_info.current_query_profile())
            result = connection.execute(self._statement(record))
            connection.commit()
            update_count = result.rowcount
        except SQLAlchemyError as e:
            code = backend_error_code(e)
            self._logger.error(
                "usage_audit_insert_failed",
                extra={
                    "table": SessionUsageAudit.__tablename__,
                    "error_code": code,
                    "error": str(e),
                },
                exc_info=debug,
            )
            raise AuditPersistenceError(_backend_message(e), code=code) from e
        except Exception as ex:
            self._logger.error(
                "usage_audit_insert_error",
                extra={"table": SessionUsageAudit.__tablename__, "error": str(ex)},
                exc_info=debug,
            )
            raise AuditPersistenceError(str(ex)) from ex
        finally:
            if connection is not None:
                try:
                    connection.close()
                except Exception:
                    self._logger.exception(
                        "usage_audit_release_failed",
                        extra={"table": SessionUsageAudit.__tablename__},
                    )
        return update_count
