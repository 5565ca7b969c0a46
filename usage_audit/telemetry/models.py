"""Immutable usage audit record and its builder. Domain-level immutability."""

import copy
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from usage_audit.telemetry.accumulator import UsageAccumulator

# Object type used when neither the caller nor the session info supplies one.
OBJECT_TYPE_PROCESS = "P"


@dataclass(frozen=True)
class AuditRecord:
    """
    One usage event: who, which session, which module, what command, on what, when.
    Fields are Optional because the builder does not validate; FieldResolver does.
    """

    user_id: Optional[str] = None
    session_id: Optional[str] = None
    object_id: Optional[str] = None
    module_id: Optional[str] = None
    command: Optional[str] = None
    classname: Optional[str] = None
    object_type: Optional[str] = None
    timestamp: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    @staticmethod
    def builder() -> "AuditRecordBuilder":
        return AuditRecordBuilder()

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "user_id": self.user_id,
            "session_id": self.session_id,
            "object_id": self.object_id,
            "module_id": self.module_id,
            "command": self.command,
            "classname": self.classname,
            "object_type": self.object_type,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }


class AuditRecordBuilder:
    """Fluent assembly of an AuditRecord. Every setter returns the builder."""

    def __init__(self) -> None:
        self._user_id: Optional[str] = None
        self._session_id: Optional[str] = None
        self._object_id: Optional[str] = None
        self._module_id: Optional[str] = None
        self._command: Optional[str] = None
        self._classname: Optional[str] = None
        self._object_type: Optional[str] = None
        self._timestamp: Optional[int] = None
        self._metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_accumulator(cls, accumulator: "UsageAccumulator") -> "AuditRecordBuilder":
        """Builder pre-filled with a snapshot of the accumulator's current values."""
        return (
            cls()
            .user_id(accumulator.user_id)
            .session_id(accumulator.session_id)
            .object_id(accumulator.object_id)
            .module_id(accumulator.module_id)
            .command(accumulator.command)
            .classname(accumulator.classname)
            .object_type(accumulator.object_type)
            .timestamp(accumulator.timestamp)
            .metadata(copy.deepcopy(accumulator.metadata))
        )

    def user_id(self, user_id: Optional[str]) -> "AuditRecordBuilder":
        self._user_id = user_id
        return self

    def session_id(self, session_id: Optional[str]) -> "AuditRecordBuilder":
        self._session_id = session_id
        return self

    def object_id(self, object_id: Optional[str]) -> "AuditRecordBuilder":
        self._object_id = object_id
        return self

    def module_id(self, module_id: Optional[str]) -> "AuditRecordBuilder":
        self._module_id = module_id
        return self

    def command(self, command: Optional[str]) -> "AuditRecordBuilder":
        self._command = command
        return self

    def classname(self, classname: Optional[str]) -> "AuditRecordBuilder":
        self._classname = classname
        return self

    def object_type(self, object_type: Optional[str]) -> "AuditRecordBuilder":
        self._object_type = object_type
        return self

    def timestamp(self, timestamp: Optional[int]) -> "AuditRecordBuilder":
        self._timestamp = timestamp
        return self

    def metadata(self, metadata: Optional[Dict[str, Any]]) -> "AuditRecordBuilder":
        self._metadata = metadata
        return self

    def build(self) -> AuditRecord:
        return AuditRecord(
            user_id=self._user_id,
            session_id=self._session_id,
            object_id=self._object_id,
            module_id=self._module_id,
            command=self._command,
            classname=self._classname,
            object_type=self._object_type,
            timestamp=self._timestamp,
            metadata=self._metadata,
        )
