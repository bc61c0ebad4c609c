"""
Action endpoints posted by the viewer page.

Every action reads the current viewer state from its query string, performs
one write through ``FormViewerController`` and redirects back to the viewer
with the resulting state. The redirect itself is the refetch: the next
``GET /`` loads whatever the write changed.

Failures never leave the page: the error message travels back in the
``error`` query parameter and is shown as a flash message.

Routes (all POST, all take the viewer state as query params):
    /actions/annotations                     add a field at a page click
    /actions/annotations/{id}                save the Properties tab
    /actions/annotations/{id}/move           drag release
    /actions/annotations/{id}/delete         ask for delete confirmation
    /actions/delete/confirm                  delete the pending annotation
    /actions/delete/cancel                   dismiss the confirmation
    /actions/values                          write a value into the submission
    /actions/submissions                     start a new draft submission
"""

import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from viewer.canvas import click_to_points, drag_release_position
from viewer.client import ApiError
from viewer.controller import FormViewerController
from viewer.deps import get_controller
from viewer.models import AddFieldForm, MoveForm, PropertiesForm, ValueForm
from viewer.panels import build_annotation_changes
from viewer.state import ViewerState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/actions", tags=["actions"])


def action_url(path: str, state: ViewerState) -> str:
    """URL of an action endpoint carrying *state* (used by the templates)."""
    return state.url(f"/actions{path}")


def _state(request: Request) -> ViewerState:
    return ViewerState.from_query(request.query_params)


def _redirect(request: Request, state: ViewerState,
              error: str | None = None) -> Response:
    """Send the browser back to the viewer at *state*.

    Plain form posts get a 303; HTMX requests get ``HX-Redirect``; fetch
    callers asking for JSON (the canvas script) get ``{"location": ...}``.
    """
    params = state.to_params()
    if error:
        params["error"] = error
    location = f"/?{urlencode(params)}" if params else "/"

    if request.headers.get("hx-request") == "true":
        return Response(status_code=200, headers={"HX-Redirect": location})
    if "application/json" in request.headers.get("accept", ""):
        return JSONResponse({"location": location, "error": error})
    return RedirectResponse(location, status_code=303)


# ── Annotations ───────────────────────────────────────────────────────────────

@router.post("/annotations", summary="Add a field at a page click")
def add_annotation(
    request: Request,
    form: Annotated[AddFieldForm, Form()],
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    x, y = click_to_points(form.offset_x, form.offset_y, form.scale)
    try:
        state = controller.add_annotation(state, form.page_number, x, y)
    except ApiError as exc:
        logger.error("add_annotation_failed template=%s error=%s",
                     state.template_id, exc)
        return _redirect(request, state, f"Failed to add field: {exc.message}")
    return _redirect(request, state)


@router.post("/annotations/{annotation_id}", summary="Save annotation properties")
def save_properties(
    annotation_id: str,
    request: Request,
    form: Annotated[PropertiesForm, Form()],
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    try:
        changes = build_annotation_changes(form)
    except ValueError as exc:
        return _redirect(request, state, str(exc))
    try:
        controller.update_annotation(annotation_id, changes)
    except ApiError as exc:
        logger.error("save_properties_failed id=%s error=%s", annotation_id, exc)
        return _redirect(request, state, f"Failed to save field: {exc.message}")
    # The key itself may have been renamed.
    return _redirect(request, state.with_field(form.field_key))


@router.post("/annotations/{annotation_id}/move", summary="Drag release")
def move_annotation(
    annotation_id: str,
    request: Request,
    form: Annotated[MoveForm, Form()],
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    position = drag_release_position(form.orig_x, form.orig_y,
                                     form.delta_x, form.delta_y, form.scale)
    if position is None:
        return _redirect(request, state)
    try:
        controller.move_annotation(annotation_id, *position)
    except ApiError as exc:
        logger.error("move_annotation_failed id=%s error=%s", annotation_id, exc)
        return _redirect(request, state, f"Failed to move field: {exc.message}")
    return _redirect(request, state)


@router.post("/annotations/{annotation_id}/delete", summary="Request deletion")
def request_delete(annotation_id: str, request: Request) -> Response:
    return _redirect(request, _state(request).with_confirm_delete(annotation_id))


@router.post("/delete/confirm", summary="Delete the pending annotation")
def confirm_delete(
    request: Request,
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    try:
        state = controller.delete_annotation(state)
    except ApiError as exc:
        return _redirect(request, state.with_confirm_delete(None),
                         f"Failed to delete field: {exc.message}")
    return _redirect(request, state)


@router.post("/delete/cancel", summary="Dismiss the delete confirmation")
def cancel_delete(request: Request) -> Response:
    return _redirect(request, _state(request).with_confirm_delete(None))


# ── Submissions ───────────────────────────────────────────────────────────────

@router.post("/values", summary="Write a field value into the submission")
def save_value(
    request: Request,
    form: Annotated[ValueForm, Form()],
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    try:
        controller.update_value(state, form.field_key, form.value)
    except ApiError as exc:
        logger.error("save_value_failed submission=%s field=%s error=%s",
                     state.submission_id, form.field_key, exc)
        return _redirect(request, state, f"Failed to save value: {exc.message}")
    return _redirect(request, state)


@router.post("/submissions", summary="Start a new draft submission")
def create_submission(
    request: Request,
    controller: FormViewerController = Depends(get_controller),
) -> Response:
    state = _state(request)
    try:
        state = controller.create_submission(state)
    except ApiError as exc:
        logger.error("create_submission_failed template=%s error=%s",
                     state.template_id, exc)
        return _redirect(request, state, f"Failed to create submission: {exc.message}")
    return _redirect(request, state)
