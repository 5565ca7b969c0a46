"""Per-scope working state for one usage event. One accumulator per request/thread."""

import contextvars
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional


def current_millis() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class UsageAccumulator:
    """
    Mutable event attributes collected during one logical operation.
    Assignments are not validated; FieldResolver completes and checks them.
    """

    session_id: Optional[str] = None
    command: Optional[str] = None
    user_id: Optional[str] = None
    module_id: Optional[str] = None
    object_type: Optional[str] = None
    object_id: Optional[str] = None
    classname: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=current_millis)


# Each thread (and each asyncio task's copied context) sees its own binding.
_accumulator_ctx: contextvars.ContextVar[Optional[UsageAccumulator]] = contextvars.ContextVar(
    "usage_accumulator", default=None
)


def get_accumulator() -> UsageAccumulator:
    """Return the accumulator bound to the calling scope, creating it on first access."""
    accumulator = _accumulator_ctx.get()
    if accumulator is None:
        accumulator = UsageAccumulator()
        _accumulator_ctx.set(accumulator)
    return accumulator


def discard_accumulator() -> None:
    """Detach the calling scope's accumulator. Call at scope end on pooled threads."""
    _accumulator_ctx.set(None)


@contextmanager
def accumulator_scope() -> Iterator[UsageAccumulator]:
    """Bind a fresh accumulator for the block; the previous binding is restored on exit."""
    accumulator = UsageAccumulator()
    token = _accumulator_ctx.set(accumulator)
    try:
        yield accumulator
    finally:
        _accumulator_ctx.reset(token)
