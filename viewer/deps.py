"""
Forms API client wiring for the web routes.

Provides ``get_controller()``, a FastAPI dependency returning the process-wide
``FormViewerController``. The client is created lazily from ``AppConfig`` on
first use; ``create_app(client=...)`` installs a different one (tests pass an
in-memory fake).
"""

from __future__ import annotations

import threading

from utils.cache import TTLCache
from utils.config import AppConfig
from viewer.client import FormsApiClient
from viewer.controller import FormViewerController

_client: FormsApiClient | None = None
_controller: FormViewerController | None = None
_lock = threading.Lock()


def configure(client: FormsApiClient | None = None,
              config: AppConfig | None = None) -> FormViewerController:
    """Install the client used by every request and return its controller."""
    global _client, _controller
    cfg = config or AppConfig.from_env()
    with _lock:
        if _client is not None and _client is not client:
            _client.close()
        _client = client or FormsApiClient(cfg.client_config())
        _controller = FormViewerController(
            _client,
            template_cache=TTLCache(ttl_seconds=cfg.template_cache_ttl),
        )
        return _controller


def get_client() -> FormsApiClient:
    return get_controller().client


def get_controller() -> FormViewerController:
    """FastAPI dependency: the shared controller (created on first use)."""
    if _controller is None:
        return configure()
    return _controller


def shutdown() -> None:
    """Close the pooled HTTP session (called from the app lifespan)."""
    global _client, _controller
    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _controller = None
