"""
FastAPI application factory for the disposition tracking service.

Usage:
    python -m api.app                    # Dev server on port 8000
    APP_DB_PATH=/data/colony.sqlite python -m api.app

OpenAPI docs available at http://localhost:8000/docs after starting.

Structured JSON logging when APP_LOG_FORMAT=json.
CORS middleware with configurable origins via APP_CORS_ORIGINS.
"""

import json
import logging
import sqlite3
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import dashboard, dispositions, reference, transfer
from dispositions.catalog import ReasonCatalog, load_catalog
from utils.cache import TTLCache
from utils.config import AppConfig
from utils.database import TABLE, connect, count_records, init_database, table_exists

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("disposition_api")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Make sure the store and its schema exist before serving requests."""
    _logger.info("Starting with config %s", app.state.config.to_dict())
    init_database(app.state.db_path)
    yield


def create_app(
    db_path: Path | None = None,
    catalog: ReasonCatalog | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: Override the database path (useful for testing).  The store
            is created immediately when given.
        catalog: Override the reason catalog; by default it is loaded from
            APP_REASON_CATALOG or the built-in one.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = AppConfig.from_env()
    if db_path is not None:
        init_database(db_path)

    app = FastAPI(
        title="Lab Colony Disposition API",
        summary="Record animal removals from a laboratory colony and summarize them.",
        description=(
            "## Lab Colony Disposition API\n\n"
            "Each record is one removal event: `count` animals of one species, "
            "strain and sex removed on `removalDate` for a catalogued reason.\n\n"
            "### Key concepts\n"
            "- **Dates** are `YYYY-MM-DD` strings; other shapes are normalized on entry.\n"
            "- **Reason codes** come from the reason catalog "
            "(`/api/v1/reference/reasons`), grouped into categories.\n"
            "- **Dashboard** counters are anchored on a reference date (`as_of`, "
            "default today); the project termination counter is all-time.\n"
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "dashboard", "description": "Headline counters and the monthly chart series."},
            {"name": "dispositions", "description": "List, filter, create and delete removal records."},
            {"name": "reference", "description": "Reason catalog and species/strain lists."},
            {"name": "transfer", "description": "Bulk JSON import and JSON/CSV/XLSX export."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    app.state.config = cfg
    app.state.db_path = db_path if db_path is not None else cfg.db_path
    app.state.catalog = catalog if catalog is not None else load_catalog(cfg.reason_catalog_path)
    app.state.stats_cache = TTLCache(maxsize=64, ttl_seconds=cfg.stats_cache_ttl)
    _logger.info(
        "catalog loaded: %d categories, %d codes",
        len(app.state.catalog.categories), len(app.state.catalog),
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a short request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, request.url.path, response.status_code,
                duration_ms, request_id,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the API is running and can read the store."""
        db_path = app.state.db_path
        if not db_path.exists():
            return JSONResponse(
                status_code=503,
                content={"status": "no_database", "database": str(db_path)},
            )
        try:
            conn = connect(db_path)
            try:
                if not table_exists(conn, TABLE):
                    return JSONResponse(
                        status_code=503,
                        content={"status": "no_schema", "database": str(db_path)},
                    )
                count = count_records(conn)
            finally:
                conn.close()
        except sqlite3.Error as e:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "error": str(e)},
            )
        return {
            "status": "ok",
            "database": str(db_path),
            "records": count,
            "stats_cache": app.state.stats_cache.stats(),
        }

    # ── Register routers ──────────────────────────────────────────────────────

    prefix = "/api/v1"
    app.include_router(dashboard.router,    prefix=prefix)
    app.include_router(dispositions.router, prefix=prefix)
    app.include_router(reference.router,    prefix=prefix)
    app.include_router(transfer.router,     prefix=prefix)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
