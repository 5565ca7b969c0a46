"""Completes a usage accumulator from session info and decides whether it can be persisted."""

import logging
from typing import Optional

from usage_audit.core.session_info import SessionInfo
from usage_audit.telemetry.accumulator import UsageAccumulator, current_millis
from usage_audit.telemetry.models import OBJECT_TYPE_PROCESS


class FieldResolver:
    """
    Validation runs in three stages and stops at the first failure:
    basic parameters, then user/module, then object type/id.
    A failure is logged and reported as False; it never raises.
    """

    def __init__(self, session_info: SessionInfo, logger: Optional[logging.Logger] = None) -> None:
        self._session_info = session_info
        self._logger = logger or logging.getLogger(__name__)

    def resolve(self, accumulator: UsageAccumulator) -> bool:
        """Fill missing fields in place. Returns False when the event must be skipped."""
        if not (
            self._validate_basic_parameters(accumulator)
            and self._resolve_user_and_module(accumulator)
            and self._resolve_object(accumulator)
        ):
            return False
        if not accumulator.timestamp:
            accumulator.timestamp = current_millis()
        return True

    def _skip(self, missing_field: str) -> bool:
        self._logger.error(
            "usage_audit_skipped",
            extra={"missing_field": missing_field, "reason": f"{missing_field} is null or empty"},
        )
        return False

    def _validate_basic_parameters(self, accumulator: UsageAccumulator) -> bool:
        # No fallback: both are specific to the event being recorded.
        if not accumulator.session_id:
            return self._skip("session_id")
        if not accumulator.command:
            return self._skip("command")
        return True

    def _resolve_user_and_module(self, accumulator: UsageAccumulator) -> bool:
        if not accumulator.user_id:
            accumulator.user_id = self._session_info.current_user_id()
            if not accumulator.user_id:
                return self._skip("user_id")

        if not accumulator.module_id:
            accumulator.module_id = self._session_info.current_module_id()
            if not accumulator.module_id:
                return self._skip("module_id")
        return True

    def _resolve_object(self, accumulator: UsageAccumulator) -> bool:
        if not accumulator.object_type:
            accumulator.object_type = (
                self._session_info.current_process_type() or OBJECT_TYPE_PROCESS
            )

        if not accumulator.object_id:
            accumulator.object_id = self._session_info.current_process_id()
            if not accumulator.object_id:
                return self._skip("object_id")
        return True
