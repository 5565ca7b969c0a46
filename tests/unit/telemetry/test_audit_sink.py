"""AuditSink tests: row contents, error code formatting, unconditional release."""

import json
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError

from usage_audit.infrastructure.database.models import SessionUsageAudit
from usage_audit.telemetry.exceptions import AuditPersistenceError
from usage_audit.telemetry.models import AuditRecordBuilder
from usage_audit.telemetry.sink import AuditSink, backend_error_code, bind_parameters


class _DriverError(Exception):
    """Stand-in for a DBAPI exception that reports a vendor error code."""

    errno = 12345


def _record(**overrides):
    values = dict(
        user_id="user-1",
        session_id="session-1",
        object_id="object-1",
        module_id="module-1",
        command="LOGIN",
        classname="com.example.Login",
        object_type="P",
        timestamp=1700000000000,
        metadata={"key": "value", "nested": {"n": 1}},
    )
    values.update(overrides)
    builder = AuditRecordBuilder()
    for name, value in values.items():
        getattr(builder, name)(value)
    return builder.build()


@pytest.fixture
def session_info():
    info = MagicMock()
    info.current_query_profile.return_value = "manual"
    return info


@pytest.fixture
def provider():
    p = MagicMock()
    p.connect.return_value.execute.return_value.rowcount = 1
    return p


def test_bind_parameters_order():
    params = bind_parameters(_record())
    assert params[:8] == (
        "user-1",
        "user-1",
        "session-1",
        "object-1",
        "module-1",
        "LOGIN",
        "com.example.Login",
        "P",
    )
    assert params[8] == "1700000000000"
    assert json.loads(params[9]) == {"key": "value", "nested": {"n": 1}}
    assert len(params) == 10


def test_persist_writes_one_row(sqlite_engine, session_info):
    count = AuditSink(session_info).persist(sqlite_engine, _record())

    assert count == 1
    with sqlite_engine.connect() as conn:
        row = conn.execute(select(SessionUsageAudit.__table__)).mappings().one()
    assert row["id"] is not None
    assert row["client_id"] == "0"
    assert row["org_id"] == "0"
    assert row["created_by"] == "user-1"
    assert row["updated_by"] == "user-1"
    assert row["session_id"] == "session-1"
    assert row["object_id"] == "object-1"
    assert row["module_id"] == "module-1"
    assert row["command"] == "LOGIN"
    assert row["classname"] == "com.example.Login"
    assert row["object_type"] == "P"
    assert row["process_time"] == 1700000000000
    assert json.loads(row["json_data"]) == {"key": "value", "nested": {"n": 1}}


def test_persist_generates_distinct_ids(sqlite_engine, session_info):
    sink = AuditSink(session_info)
    sink.persist(sqlite_engine, _record())
    sink.persist(sqlite_engine, _record())
    with sqlite_engine.connect() as conn:
        ids = conn.execute(select(SessionUsageAudit.__table__.c.id)).scalars().all()
    assert len(set(ids)) == 2


def test_persist_constraint_violation_raises_with_backend_message(sqlite_engine, session_info):
    # created_by is NOT NULL
    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(sqlite_engine, _record(user_id=None))
    assert exc_info.value.message.startswith("@CODE=")
    assert "NOT NULL" in exc_info.value.message


def test_persist_applies_timeout_for_query_profile(provider, session_info):
    timeout_policy = MagicMock()
    AuditSink(session_info, timeout_policy=timeout_policy).persist(provider, _record())

    session_info.current_query_profile.assert_called_once()
    timeout_policy.apply.assert_called_once_with(provider.connect.return_value, "manual")


def test_persist_commits_and_releases(provider, session_info):
    connection = provider.connect.return_value
    assert AuditSink(session_info).persist(provider, _record()) == 1
    connection.commit.assert_called_once()
    connection.close.assert_called_once()


def test_sql_error_carries_backend_code(provider, session_info):
    connection = provider.connect.return_value
    connection.execute.side_effect = OperationalError(
        "INSERT INTO session_usage_audit", {}, _DriverError("Database error")
    )

    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(provider, _record())

    assert "@CODE=12345@" in exc_info.value.message
    assert "Database error" in exc_info.value.message
    assert exc_info.value.code == "12345"
    connection.close.assert_called_once()


def test_sql_error_without_code_has_empty_code_segment(provider, session_info):
    provider.connect.return_value.execute.side_effect = IntegrityError(
        "INSERT INTO session_usage_audit", {}, Exception("duplicate key")
    )
    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(provider, _record())
    assert exc_info.value.message == "@CODE=@duplicate key"
    assert exc_info.value.code is None


def test_generic_error_has_empty_code_segment(provider, session_info):
    connection = provider.connect.return_value
    connection.execute.side_effect = RuntimeError("General error")

    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(provider, _record())

    assert "@CODE=@" in exc_info.value.message
    assert "General error" in exc_info.value.message
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    connection.close.assert_called_once()


def test_connect_failure_raises_without_release(provider, session_info):
    provider.connect.side_effect = OperationalError("connect", {}, _DriverError("connection refused"))
    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(provider, _record())
    assert exc_info.value.message == "@CODE=12345@connection refused"


def test_release_failure_after_success_is_absorbed(provider, session_info):
    provider.connect.return_value.close.side_effect = RuntimeError("release failed")
    logger = MagicMock()
    logger.isEnabledFor.return_value = False

    count = AuditSink(session_info, logger=logger).persist(provider, _record())

    assert count == 1
    logger.exception.assert_called_once()


def test_release_failure_does_not_mask_insert_failure(provider, session_info):
    connection = provider.connect.return_value
    connection.execute.side_effect = RuntimeError("General error")
    connection.close.side_effect = RuntimeError("release failed")

    with pytest.raises(AuditPersistenceError) as exc_info:
        AuditSink(session_info).persist(provider, _record())
    assert "General error" in exc_info.value.message


def test_backend_error_code_lookup():
    class _PgError(Exception):
        sqlstate = "23505"

    assert backend_error_code(OperationalError("x", {}, _PgError("dup"))) == "23505"
    assert backend_error_code(OperationalError("x", {}, Exception(1062, "dup"))) == "1062"
    assert backend_error_code(OperationalError("x", {}, Exception("dup"))) is None


def test_bind_parameters_serializes_missing_metadata_as_empty_object():
    assert bind_parameters(_record(metadata=None))[9] == "{}"


def test_persist_without_metadata_stores_empty_object(sqlite_engine, session_info):
    AuditSink(session_info).persist(sqlite_engine, _record(metadata=None))
    with sqlite_engine.connect() as conn:
        row = conn.execute(select(SessionUsageAudit.__table__)).mappings().one()
    assert json.loads(row["json_data"]) == {}
