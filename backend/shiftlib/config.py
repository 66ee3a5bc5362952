"""Reporter configuration, read from the environment (optionally a .env file)."""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError
from .pagination import MAX_PAGE_SIZE, PAGE_SIZE

DEFAULT_TOP_N = 3
DEFAULT_HTTP_TIMEOUT = 10.0


def _int_option(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class ReportConfig:
    """Options recognised by the top-workplaces report.

    base_url   root of the listing API, e.g. ``http://localhost:8000/api``
    page_size  page size agreed with the listing endpoints
    top_n      number of workplaces to report
    timeout    per-request HTTP timeout in seconds
    """
    base_url: str
    page_size: int = PAGE_SIZE
    top_n: int = DEFAULT_TOP_N
    timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        if not self.base_url:
            raise ConfigError("API_BASE_URL is not defined.")
        if not (1 <= self.page_size <= MAX_PAGE_SIZE):
            raise ConfigError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")
        if self.top_n < 0:
            raise ConfigError(f"top_n must not be negative, got {self.top_n}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'ReportConfig':
        """Build a config from environment variables; non-None overrides win."""
        env = os.environ if environ is None else environ
        raw_timeout = env.get('HTTP_TIMEOUT', '').strip()
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            raise ConfigError(f"HTTP_TIMEOUT must be a number, got {raw_timeout!r}")
        values = {
            'base_url': env.get('API_BASE_URL', '').strip(),
            'page_size': _int_option(env, 'PAGE_SIZE', PAGE_SIZE),
            'top_n': _int_option(env, 'TOP_N', DEFAULT_TOP_N),
            'timeout': timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values['base_url'] = values['base_url'].rstrip('/')
        return cls(**values)
