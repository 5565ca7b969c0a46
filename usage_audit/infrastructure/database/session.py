# usage_audit/infrastructure/database/session.py

from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import declarative_base

from usage_audit.config.settings import get_settings

Base = declarative_base()


@lru_cache
def get_engine() -> Engine:
    """Process-wide engine built from settings. Connections are pooled by SQLAlchemy."""
    return create_engine(
        get_settings().database_url,
        echo=False,
        pool_pre_ping=True,
    )


def init_schema(engine: Engine) -> None:
    """Create the usage audit table if it does not exist."""
    # Register the mapped tables on Base.metadata before create_all.
    from usage_audit.infrastructure.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
