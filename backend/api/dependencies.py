"""
Shared dependencies for the shift claims API.
Imported by main.py and the routers.
"""
import os
import traceback

from fastapi import HTTPException
from slowapi import Limiter
from slowapi.util import get_remote_address

from shiftlib.database import ShiftDatabase
from shiftlib.log import configure_logger
from shiftlib.shifts import ShiftLifecycle

# ── Structured JSON Logging setup ───────────────────────────────
_log_level = os.environ.get('SHIFTS_LOG_LEVEL', 'INFO')
_log_file = os.environ.get('SHIFTS_LOG_FILE') or None

_logger = configure_logger('shiftsapi', _log_level, _log_file)
configure_logger('shiftlib', _log_level, _log_file)

# ── Rate Limiter ─────────────────────────────────────────────────
RATE_LIMIT = os.environ.get('SHIFTS_RATE_LIMIT', '60/minute')
limiter = Limiter(key_func=get_remote_address)


def get_db() -> ShiftDatabase:
    """Get a store handle using the current DB_PATH / SHARD_SIZE from main module."""
    import api.main as _main
    return ShiftDatabase(_main.DB_PATH, shard_size=_main.SHARD_SIZE)


def get_lifecycle() -> ShiftLifecycle:
    return ShiftLifecycle(get_db())


def _sanitize_500(e: Exception, context: str = '') -> HTTPException:
    """Log full exception, return sanitized 500."""
    _logger.error(
        "500 error context=%s type=%s msg=%s trace=%s",
        context, type(e).__name__, str(e),
        traceback.format_exc().splitlines()[-1],
    )
    return HTTPException(
        status_code=500,
        detail="Internal server error. Please try again.",
    )
