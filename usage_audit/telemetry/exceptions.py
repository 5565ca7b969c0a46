"""Telemetry-layer exceptions. Typed, no HTTP."""

from typing import Optional


class TelemetryError(Exception):
    """Base for all telemetry-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuditPersistenceError(TelemetryError):
    """
    Raised when an audit row could not be written.
    Message format is "@CODE=<code>@<detail>"; the code is empty when the
    failure did not come from the storage backend.
    """

    def __init__(self, detail: str, code: Optional[str] = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"@CODE={code or ''}@{detail}")
