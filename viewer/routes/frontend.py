"""
Frontend HTML routes.

Serves the Jinja2 viewer page and the side-panel partial. Both read the
viewer state from the query string, load through ``FormViewerController``
and render; upstream failures show up as a flash message on the page.

Routes:
    GET /                       → index.html (toolbar, field list, canvas, panel)
    GET /partials/inspector     → partials/inspector.html (HTMX swap target)
"""

from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from viewer.canvas import build_pages
from viewer.controller import FormViewerController, ViewerData
from viewer.deps import get_controller
from viewer.panels import (
    FIELD_TYPES,
    editor_values,
    group_annotations,
    inspector_sections,
)
from viewer.state import ViewerState

router = APIRouter(tags=["frontend"])

# Templates instance is set by create_app() after mounting.
_templates: Jinja2Templates | None = None

EDITOR_TABS = ("value", "properties")


def set_templates(t: Jinja2Templates) -> None:
    global _templates
    _templates = t


def _tmpl() -> Jinja2Templates:
    if _templates is None:
        raise RuntimeError("Templates not initialised, call set_templates() first")
    return _templates


def _tab_url(state: ViewerState, tab: str) -> str:
    params = {**state.to_params(), "tab": tab}
    return f"/partials/inspector?{urlencode(params)}"


def _panel_context(data: ViewerData, tab: str) -> dict[str, Any]:
    """Context for the inspector (view mode) or annotation editor (edit mode)."""
    annotation = data.selected_annotation
    resolved = data.selected_resolved
    ctx: dict[str, Any] = {
        "annotation": annotation,
        "resolved": resolved,
        "sections": [],
        "editor": None,
        "tab_urls": {},
        "tab": tab if tab in EDITOR_TABS else EDITOR_TABS[0],
        "field_types": FIELD_TYPES,
    }
    if annotation is None:
        return ctx
    if data.state.is_editing:
        ctx["editor"] = editor_values(annotation)
        ctx["tab_urls"] = {t: _tab_url(data.state, t) for t in EDITOR_TABS}
    else:
        ctx["sections"] = inspector_sections(annotation, resolved)
    return ctx


def _page_context(request: Request, data: ViewerData) -> dict[str, Any]:
    errors = list(data.errors)
    flash = request.query_params.get("error")
    if flash:
        errors.insert(0, flash)

    template = data.selected_template
    pages = []
    if template is not None:
        pages = build_pages(template, data.resolved or [], data.annotations, data.state)

    return {
        "data": data,
        "state": data.state,
        "template": template,
        "pages": pages,
        "groups": group_annotations(data.annotations, data.resolved or [],
                                    data.state.field_key),
        "errors": errors,
        **_panel_context(data, request.query_params.get("tab", "")),
    }


# ── Routes ────────────────────────────────────────────────────────────────────

@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request,
          controller: FormViewerController = Depends(get_controller)) -> HTMLResponse:
    """Main viewer page."""
    state = ViewerState.from_query(request.query_params)
    data = controller.load(state)
    return _tmpl().TemplateResponse(request, "index.html", _page_context(request, data))


@router.get("/partials/inspector", response_class=HTMLResponse, include_in_schema=False)
def inspector_partial(
    request: Request,
    controller: FormViewerController = Depends(get_controller),
) -> HTMLResponse:
    """HTMX partial: inspector or editor for the selected field."""
    state = ViewerState.from_query(request.query_params)
    data = controller.load(state)
    ctx = _page_context(request, data)
    return _tmpl().TemplateResponse(request, "partials/inspector.html", ctx)


# ── Error pages ───────────────────────────────────────────────────────────────

def register_error_handlers(app: FastAPI) -> None:
    """Render HTML error pages for browser requests to unknown routes."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_page(request: Request, exc: StarletteHTTPException):
        accept = request.headers.get("accept", "")
        if "text/html" not in accept:
            return await http_exception_handler(request, exc)
        title = "Page not found" if exc.status_code == 404 else "Request failed"
        return _tmpl().TemplateResponse(
            request,
            "errors/error.html",
            {"status_code": exc.status_code, "title": title,
             "message": str(exc.detail)},
            status_code=exc.status_code,
        )
