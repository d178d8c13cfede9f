# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
FastAPI application factory.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register CORS middleware and request logging.
* Translate ``core.errors.AppError`` into JSON error responses.
* Mount the three feature routers (blocks, fields, search).
* Expose /health: uptime, version and a timed database round trip.

Production note
---------------
CORS allow_origins is set to localhost only.  In a production deployment
this must be changed to the exact frontend origin.
"""

import time

from fastapi import Depends, FastAPI, Request, status
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from blocks.router import router as blocks_router
from fields.router import router as fields_router
from search.router import router as search_router
from core.config import settings
from core.errors import AppError
from core.health import UNHEALTHY, health_report
from core.logger import logger
from database import get_db

app = FastAPI(title="Block Vault", version="1.0.0")

# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
# In development we allow localhost:8000 only.
# Tighten to your production domain before deploying.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8000"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ---------------------------------------------------------------------------
# Request-logging middleware
# ---------------------------------------------------------------------------
# Logs every inbound request: method, path, client IP, status, latency.
# Bodies are NOT echoed – password field values travel in them.


class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "unknown"

        logger.info(
            "%s %s | client=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            client_ip,
            response.status_code,
            elapsed_ms,
        )
        return response


app.add_middleware(_RequestLogMiddleware)

# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------
# Storage failures carry a generic message; the cause is already logged by
# core.errors.storage_operation.


@app.exception_handler(AppError)
async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    error = {"code": exc.code, "message": exc.message}
    if exc.details:
        error["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(blocks_router)
app.include_router(fields_router)
app.include_router(search_router)

# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    logger.info("Block Vault service starting up")


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Block Vault service shutting down")


@app.get("/health")
def health(response: Response, db: Session = Depends(get_db)):
    """Liveness plus a timed database round trip.  503 when the database is unreachable."""
    report = health_report(db, app.version, settings.environment)
    if report["status"] == UNHEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report
