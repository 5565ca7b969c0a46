# usage_audit/main.py

from fastapi import FastAPI

from usage_audit.api.middleware import CorrelationIdMiddleware, UsageAuditMiddleware
from usage_audit.api.routers import health, usage
from usage_audit.config.logging import configure_logging
from usage_audit.config.settings import get_settings

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> UsageAudit.
app.add_middleware(UsageAuditMiddleware)
app.add_middleware(CorrelationIdMiddleware)

# Routers: /health, /usage
app.include_router(health.router)
app.include_router(usage.router, prefix="/usage")
