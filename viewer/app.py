"""
FastAPI application factory for the form template viewer.

Usage:
    python -m viewer.app                                     # Dev server on port 8000
    FORMS_API_BASE_URL=http://forms:8080/api/v1 python -m viewer.app

The viewer owns no data. Every page is rendered from the upstream forms API
through ``viewer.client.FormsApiClient``; action endpoints write through the
same client and redirect back to the viewer URL so the next render refetches
whatever the write changed.

- Structured JSON logging when APP_LOG_FORMAT=json.
- CORS middleware with configurable origins via APP_CORS_ORIGINS.
- Upstream ApiError mapped to 502 (HTML page or JSON body).
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from utils.config import AppConfig
from utils.formatting import format_date, submission_label
from viewer import deps
from viewer.client import ApiError, FormsApiClient
from viewer.panels import format_number, type_color, type_icon
from viewer.routes import actions
from viewer.routes import frontend as frontend_routes

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

# ── Structured JSON logging ────────────────────────────────────────────────


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
        for key in ("method", "path", "status", "duration_ms", "request_id",
                    "upstream_status"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


_logger = logging.getLogger("form_viewer")
_handler = logging.StreamHandler()
if _cfg.log_format == "json":
    _handler.setFormatter(_JsonFormatter())
else:
    _handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
logging.basicConfig(handlers=[_handler], level=logging.INFO, force=True)

_here = Path(__file__).parent.parent  # project root
STATIC_DIR = _here / "static"
TEMPLATES_DIR = _here / "templates"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the pooled upstream session on shutdown."""
    yield
    deps.shutdown()


def _wants_json(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


def build_templates(directory: Path = TEMPLATES_DIR) -> Jinja2Templates:
    """Create the Jinja2 environment with the viewer's filters."""
    templates = Jinja2Templates(directory=str(directory))
    templates.env.filters["short_date"] = format_date
    templates.env.filters["type_icon"] = type_icon
    templates.env.filters["type_color"] = type_color
    templates.env.filters["number"] = format_number
    templates.env.globals["submission_label"] = submission_label
    templates.env.globals["action_url"] = actions.action_url
    return templates


def create_app(client: FormsApiClient | None = None,
               config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        client: Override the upstream client (useful for testing).
        config: Override the environment-derived configuration.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    deps.configure(client=client, config=cfg)
    _logger.info("app_configured %s",
                 json.dumps(cfg.to_dict(), default=str, sort_keys=True))

    app = FastAPI(
        title="Form Template Viewer",
        summary="Browser viewer/editor for tax-form templates and submissions.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
        openapi_tags=[
            {"name": "actions", "description": "Form posts from the viewer page."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    # ── CORS middleware ───────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with a short request id and its duration."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        path = request.url.path
        if path.startswith("/static"):
            return response
        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms,
                request_id,
            )
        return response

    # ── Security headers ──────────────────────────────────────────────────────

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        # HTMX is loaded from unpkg; inline style attributes position overlays.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' unpkg.com; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self';"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Error handlers ────────────────────────────────────────────────────────

    templates = build_templates()

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        _logger.error(
            "upstream_error method=%s path=%s status=%s message=%s",
            exc.method, exc.path, exc.status_code, exc.message,
        )
        if _wants_json(request):
            return JSONResponse(
                status_code=502,
                content={
                    "error": "Forms API error",
                    "detail": exc.message,
                    "upstream_status": exc.status_code,
                    "status_code": 502,
                },
            )
        return templates.TemplateResponse(
            request,
            "errors/error.html",
            {"status_code": 502, "title": "Forms API unavailable",
             "message": exc.message},
            status_code=502,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content={"error": "Bad request", "detail": str(exc), "status_code": 400},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of a traceback."""
        _logger.exception("unhandled_error path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc),
                "status_code": 500,
            },
        )

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health():
        """Return 200 OK if the forms API answers a template listing."""
        client = deps.get_client()
        try:
            count = len(client.get_forms())
        except ApiError as exc:
            return JSONResponse(
                status_code=503,
                content={"status": "degraded", "api": client.base_url,
                         "error": exc.message},
            )
        return {"status": "ok", "api": client.base_url, "templates": count}

    # ── Routers, static files, templates ──────────────────────────────────────

    app.include_router(actions.router)

    if STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    frontend_routes.set_templates(templates)
    app.include_router(frontend_routes.router)
    frontend_routes.register_error_handlers(app)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "viewer.app:app",
        host=_cfg.app_host,
        port=_cfg.app_port,
        reload=True,
        log_level="info",
    )
