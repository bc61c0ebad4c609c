"""Shared utilities for the form template viewer.

Re-exports the helpers used across the web app and the CLI:
HTTP session pooling, configuration, the TTL cache, and display formatting.
"""

from .cache import TTLCache
from .config import AppConfig, ClientConfig, Config
from .formatting import (
    format_date,
    format_percent,
    parse_timestamp,
    submission_label,
)
from .http import RetryStrategy, SessionManager, build_url

__all__ = [
    # Cache
    "TTLCache",
    # Config
    "Config",
    "ClientConfig",
    "AppConfig",
    # Formatting
    "parse_timestamp",
    "format_date",
    "format_percent",
    "submission_label",
    # HTTP
    "RetryStrategy",
    "SessionManager",
    "build_url",
]
