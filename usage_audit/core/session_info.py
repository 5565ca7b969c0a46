"""Ambient session info: who is acting, in which module, on which process. No FastAPI."""

from contextlib import contextmanager
from typing import Iterator, Optional, Protocol

from usage_audit.core.context import (
    module_id_ctx,
    process_id_ctx,
    process_type_ctx,
    query_profile_ctx,
    user_id_ctx,
)


class SessionInfo(Protocol):
    """Read-only view of the current execution scope's identity."""

    def current_user_id(self) -> Optional[str]:
        ...

    def current_module_id(self) -> Optional[str]:
        ...

    def current_process_type(self) -> Optional[str]:
        ...

    def current_process_id(self) -> Optional[str]:
        ...

    def current_query_profile(self) -> Optional[str]:
        """Backend performance profile used to pick a statement timeout."""
        ...


class ContextVarSessionInfo:
    """SessionInfo backed by the context variables in usage_audit.core.context."""

    def current_user_id(self) -> Optional[str]:
        return user_id_ctx.get()

    def current_module_id(self) -> Optional[str]:
        return module_id_ctx.get()

    def current_process_type(self) -> Optional[str]:
        return process_type_ctx.get()

    def current_process_id(self) -> Optional[str]:
        return process_id_ctx.get()

    def current_query_profile(self) -> Optional[str]:
        return query_profile_ctx.get()


@contextmanager
def bind_session_info(
    *,
    user_id: Optional[str] = None,
    module_id: Optional[str] = None,
    process_type: Optional[str] = None,
    process_id: Optional[str] = None,
    query_profile: Optional[str] = None,
) -> Iterator[None]:
    """Set the ambient session info for the duration of the block, then restore it."""
    tokens = [
        (user_id_ctx, user_id_ctx.set(user_id)),
        (module_id_ctx, module_id_ctx.set(module_id)),
        (process_type_ctx, process_type_ctx.set(process_type)),
        (process_id_ctx, process_id_ctx.set(process_id)),
        (query_profile_ctx, query_profile_ctx.set(query_profile)),
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
