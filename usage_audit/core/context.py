# usage_audit/core/context.py

import contextvars

correlation_id_ctx = contextvars.ContextVar("correlation_id", default=None)

# Ambient session info, bound per request/job by the caller.
user_id_ctx = contextvars.ContextVar("user_id", default=None)
module_id_ctx = contextvars.ContextVar("module_id", default=None)
process_type_ctx = contextvars.ContextVar("process_type", default=None)
process_id_ctx = contextvars.ContextVar("process_id", default=None)
query_profile_ctx = contextvars.ContextVar("query_profile", default=None)
