"""FastAPI application for the shift claims service."""
import os
import sys
import time as _startup_time_module
from dotenv import load_dotenv

_APP_START_TIME = _startup_time_module.time()

# Load .env file if present
load_dotenv(os.path.join(os.path.dirname(__file__), '..', '.env'))

# Add parent dir to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from fastapi.exceptions import RequestValidationError  # noqa: E402
from slowapi import _rate_limit_exceeded_handler  # noqa: E402
from slowapi.errors import RateLimitExceeded  # noqa: E402

from shiftlib.pagination import DEFAULT_SHARD_SIZE  # noqa: E402
from .dependencies import get_db, _logger, limiter  # noqa: E402

# ── Config ──────────────────────────────────────────────────────
DB_PATH = os.path.normpath(os.environ.get(
    'SHIFTS_DB_PATH',
    os.path.join(os.path.dirname(__file__), '..', 'data')
))
SHARD_SIZE = int(os.environ.get('SHIFTS_SHARD_SIZE', str(DEFAULT_SHARD_SIZE)))

# CORS origins from env
_raw_origins = os.environ.get('ALLOWED_ORIGINS', '')
ALLOWED_ORIGINS = (
    [o.strip() for o in _raw_origins.split(',') if o.strip()]
    or ['http://localhost:5173', 'http://localhost:8000']
)

_API_VERSION = "1.0.0"

_OPENAPI_TAGS = [
    {"name": "Health", "description": "Service health and version info"},
    {"name": "Shifts", "description": "Shifts: listing, claim and cancel"},
    {"name": "Workplaces", "description": "Workplaces: sharded listing"},
]

app = FastAPI(
    title="Shift Claims API",
    description=(
        "Workers claim and cancel shifts; workplaces and shifts are exposed through "
        "cursor-paginated listings (`page`, `limit`, and `shard` for workplaces).\n\n"
        "Every listing response is `{\"data\": [...], \"links\": {\"next\": url}}`; "
        "`next` is omitted on the last page."
    ),
    version=_API_VERSION,
    openapi_tags=_OPENAPI_TAGS,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Flatten Pydantic validation errors into a single readable detail string."""
    _TYPE_MSGS = {
        "missing": "field required",
        "int_parsing": "must be an integer",
        "int_type": "must be an integer",
        "greater_than_equal": "value too small",
        "less_than_equal": "value too large",
        "enum": "invalid value",
        "string_type": "must be a string",
        "value_error": "invalid value",
    }
    errors = []
    for e in exc.errors():
        field = ".".join(str(loc) for loc in e.get("loc", []) if loc not in ("body", "query", "path"))
        etype = e.get("type", "")
        msg = _TYPE_MSGS.get(etype, e.get("msg", "invalid value"))
        if field:
            errors.append(f"{field}: {msg}")
        else:
            errors.append(msg)
    detail = "; ".join(errors) if errors else "invalid input"
    return JSONResponse(status_code=422, content={"detail": detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions, log with details, return sanitized 500."""
    import traceback
    _logger.error(
        "Unhandled exception: %s %s | %s | %s",
        request.method, request.url.path,
        type(exc).__name__,
        traceback.format_exc().splitlines()[-1],
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. Please try again."},
    )


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every request as structured JSON with timing info and request-ID."""
    import time as _t
    import uuid as _uuid
    import json as _json_mod
    req_id = _uuid.uuid4().hex[:8]
    start = _t.time()
    response = await call_next(request)
    duration_ms = round((_t.time() - start) * 1000)
    entry = {
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "query": str(request.url.query),
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    _logger.info(_json_mod.dumps(entry, ensure_ascii=False))
    response.headers["X-Request-ID"] = req_id
    return response


# ── Include routers ─────────────────────────────────────────────
from .routers import shifts, workplaces  # noqa: E402

app.include_router(shifts.router)
app.include_router(workplaces.router)


# ── Routes ──────────────────────────────────────────────────────

@app.get(
    "/api/health",
    tags=["Health"],
    summary="Health check",
    description="Returns service status, API version, uptime in seconds, and store state.",
)
def health():
    import time as _t
    db_status = "connected"
    try:
        get_db().get_stats()
    except (OSError, ValueError) as e:
        _logger.warning("Health check: store unavailable: %s", e)
        db_status = "error"

    return {
        "status": "ok",
        "version": _API_VERSION,
        "uptime_seconds": round(_t.time() - _APP_START_TIME, 1),
        "db": {"status": db_status},
    }


@app.get("/api/version", tags=["Health"], summary="API version")
def version():
    return {"version": _API_VERSION, "service": "Shift Claims API"}


@app.get("/api/stats", tags=["Health"], summary="Store statistics")
def get_stats():
    return get_db().get_stats()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=int(os.environ.get('PORT', '8000')))
