from __future__ import annotations

from fastapi import FastAPI

from app.api.endpoints import behaviors, health
from app.api.endpoints import metrics_export
from app.api.middleware.error_shaping import SafeErrorMiddleware
from app.api.middleware.request_context import RequestContextMiddleware

app = FastAPI(
    title="Repo SCM Behaviors API",
    version="0.1.0",
)

# Starlette reverses add_middleware order: the LAST call is the OUTERMOST.
#   SafeErrorMiddleware -> RequestContextMiddleware -> handler
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.include_router(health.router)
app.include_router(metrics_export.router)

# Versioned (authoritative)
app.include_router(behaviors.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
