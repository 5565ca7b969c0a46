"""Statement timeouts keyed by the session's query profile."""

import logging
from typing import Mapping, Optional

from sqlalchemy import Connection, text

from usage_audit.config.settings import AppSettings

logger = logging.getLogger(__name__)


class QueryTimeoutPolicy:
    """Maps a query profile name to a timeout in seconds. 0 means no timeout."""

    def __init__(self, timeouts: Optional[Mapping[str, int]] = None, default_seconds: int = 0) -> None:
        self._timeouts = dict(timeouts or {})
        self._default_seconds = default_seconds

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "QueryTimeoutPolicy":
        return cls(settings.query_timeouts, settings.default_query_timeout)

    def seconds_for(self, profile: Optional[str]) -> int:
        if profile is not None and profile in self._timeouts:
            return self._timeouts[profile]
        return self._default_seconds

    def apply(self, connection: Connection, profile: Optional[str]) -> None:
        """Set the timeout for statements run on this connection's current transaction."""
        seconds = self.seconds_for(profile)
        if seconds <= 0:
            return
        dialect = connection.dialect.name
        if dialect == "postgresql":
            connection.execute(text(f"SET LOCAL statement_timeout = {int(seconds) * 1000}"))
        else:
            logger.debug(
                "query_timeout_unsupported",
                extra={"dialect": dialect, "profile": profile, "seconds": seconds},
            )
