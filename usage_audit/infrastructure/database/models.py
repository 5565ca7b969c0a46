# usage_audit/infrastructure/database/models.py

import uuid

from sqlalchemy import BigInteger, Column, DateTime, String, Text, Uuid
from sqlalchemy.sql import func

from usage_audit.infrastructure.database.session import Base

# Usage audit rows are system-level: they belong to no tenant or organization.
SYSTEM_CLIENT_ID = "0"
SYSTEM_ORG_ID = "0"


class BaseModel(Base):
    __abstract__ = True

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    client_id = Column(String(32), nullable=False, default=SYSTEM_CLIENT_ID)
    org_id = Column(String(32), nullable=False, default=SYSTEM_ORG_ID)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    created_by = Column(String(64), nullable=False)
    updated_by = Column(String(64), nullable=False)


class SessionUsageAudit(BaseModel):
    """ORM model for one usage audit row."""

    __tablename__ = "session_usage_audit"

    session_id = Column(String(64), nullable=False, index=True)
    object_id = Column(String(64), nullable=False)
    module_id = Column(String(64), nullable=False, index=True)
    command = Column(String(255), nullable=False)
    classname = Column(String(255), nullable=True)
    object_type = Column(String(60), nullable=False)
    process_time = Column(BigInteger, nullable=False)
    json_data = Column(Text, nullable=True)
