"""Configuration management utilities for the form viewer.

Provides:
- A small ``Config`` base class that lists its settings as a dict
- ``ClientConfig`` for the upstream forms API connection
- ``AppConfig`` for the web process, populated from environment variables
- Constants shared between the client, controller, and templates
"""

from typing import Dict, Any
import os as _os


# ── Viewer constants ──────────────────────────────────────────────────────────

DEFAULT_API_BASE_URL = "http://127.0.0.1:8080/api/v1"

MIN_SCALE = 0.5
MAX_SCALE = 2.0
SCALE_STEP = 0.1

# Geometry and format applied to annotations created by clicking on a page.
NEW_FIELD_WIDTH = 160
NEW_FIELD_HEIGHT = 28
NEW_FIELD_FORMAT: Dict[str, Any] = {
    "font_family": "-apple-system, system-ui, sans-serif",
    "font_size": 12,
    "font_weight": "normal",
    "text_align": "left",
    "color": "#000000",
    "padding_top": 6,
    "padding_left": 8,
}


class Config:
    """Base configuration class for organizing application settings."""

    def __init__(self):
        """Initialize configuration with default values."""
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary.

        Returns:
            Dictionary of all config attributes
        """
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}


class ClientConfig(Config):
    """Connection settings for the upstream forms API."""

    def __init__(self):
        super().__init__()
        self.base_url = DEFAULT_API_BASE_URL
        self.timeout = 15.0
        self.max_retries = 3
        self.backoff_factor = 0.5


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the viewer starts without any
    configuration (it still needs a reachable forms API to show anything).

    Environment variables:
        FORMS_API_BASE_URL: Upstream forms API root (default: http://127.0.0.1:8080/api/v1)
        FORMS_API_TIMEOUT: Per-request timeout in seconds (default: 15)
        FORMS_API_RETRIES: GET retry attempts on 429/5xx (default: 3)
        APP_PORT: Web server port (default: 8000)
        APP_HOST: Web server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        TEMPLATE_CACHE_TTL: Seconds to cache the template list (default: 60)
    """

    def __init__(self) -> None:
        super().__init__()
        self.api_base_url = _os.getenv("FORMS_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")
        self.api_timeout = float(_os.getenv("FORMS_API_TIMEOUT", "15"))
        self.api_retries = int(_os.getenv("FORMS_API_RETRIES", "3"))
        self.app_port = int(_os.getenv("APP_PORT", "8000"))
        self.app_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.template_cache_ttl = float(_os.getenv("TEMPLATE_CACHE_TTL", "60"))

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()

    def client_config(self) -> ClientConfig:
        """Return the upstream connection settings as a ClientConfig."""
        cfg = ClientConfig()
        cfg.base_url = self.api_base_url
        cfg.timeout = self.api_timeout
        cfg.max_retries = self.api_retries
        return cfg
