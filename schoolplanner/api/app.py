"""FastAPI application for school planner access control.

Endpoints:
  GET    /health                - Health check
  GET    /me/access             - Resolved role, permissions, and accessible views
  GET    /me/permissions        - Catalog with granted/locked status
  GET    /me/views/{view}       - Check access to one view
  GET    /permissions           - Permission catalog
  GET    /admin/roles           - List and count role assignments
  PATCH  /admin/roles/{user_id} - Change a user's role
  GET    /admin/stats           - Role assignment counts
  GET    /admin/grants/{role}   - Permissions granted to a role
  PUT    /admin/grants/{role}/{permission} - Grant a permission
  DELETE /admin/grants/{role}/{permission} - Revoke a permission
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import schoolplanner
from schoolplanner.api.routes import access as access_routes
from schoolplanner.api.routes import admin as admin_routes
from schoolplanner.auth import require_session
from schoolplanner.config import settings
from schoolplanner.exceptions import PlannerError
from schoolplanner.logging_config import log_startup_info, setup_logging
from schoolplanner.storage.database import Database
from schoolplanner.storage.factory import create_store

logger = logging.getLogger("schoolplanner")

_STARTUP_TIME: float = 0.0

_store = create_store()


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _STARTUP_TIME
    _STARTUP_TIME = time.monotonic()
    setup_logging()
    await _store.connect()
    if isinstance(_store, Database) and settings.seed_reference_data:
        await _store.seed_reference_data()
    log_startup_info()
    yield
    logger.info("Closing reference store connection")
    await _store.close()
    logger.info("Shutdown complete")


_OPENAPI_TAGS = [
    {"name": "Health", "description": "Health checks and version info"},
    {"name": "Access", "description": "The caller's resolved role, permissions, and views"},
    {"name": "Admin", "description": "Role assignment management"},
]

app = FastAPI(
    title="School Planner Access Control",
    description="Role resolution and permission gating for the school planner.",
    version=schoolplanner.__version__,
    lifespan=lifespan,
    dependencies=[Depends(require_session)],
    openapi_tags=_OPENAPI_TAGS,
)
app.state.store = _store


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(PlannerError)
async def planner_error_handler(request: Request, exc: PlannerError) -> JSONResponse:
    """Centralized handler for custom planner exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_type,
            "message": exc.message,
            "request_id": request_id,
        },
    )


# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request logging middleware (also sets request_id on state for error handler)
# ---------------------------------------------------------------------------
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    request_id = str(uuid4())[:8]
    request.state.request_id = request_id
    start = time.monotonic()
    response: Response = await call_next(request)
    elapsed_ms = round((time.monotonic() - start) * 1000, 1)
    logger.info(
        "%s %s %s %.1fms [%s]",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "duration_ms": elapsed_ms,
        },
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"], summary="Health check")
async def health(request: Request):
    store = request.app.state.store
    uptime_s = time.monotonic() - _STARTUP_TIME if _STARTUP_TIME > 0 else 0
    try:
        permission_count = await store.get_permission_count()
        store_status = "ok"
    except Exception:
        logger.warning("Health check could not reach the reference store", exc_info=True)
        permission_count = None
        store_status = "error"
    return {
        "status": "ok" if store_status == "ok" else "degraded",
        "version": schoolplanner.__version__,
        "uptime_seconds": round(uptime_s, 1),
        "storage_backend": os.environ.get("SP_STORAGE", settings.storage),
        "store": store_status,
        "permission_count": permission_count,
    }


app.include_router(access_routes.router)
app.include_router(admin_routes.router)
