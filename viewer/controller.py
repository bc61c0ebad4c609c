"""
Page-level controller for the form viewer.

Loads everything one viewer page needs from the forms API (templates,
submissions for the selected template, annotations, resolved values) and
performs the user's mutations. Every mutation is followed by a refetch of
what it can have changed: annotation edits invalidate both the annotation
list and the resolved values, while value edits only touch resolved values.

Resolution itself always happens upstream; the controller never computes a
display value.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable

from utils.cache import TTLCache
from utils.config import NEW_FIELD_FORMAT, NEW_FIELD_HEIGHT, NEW_FIELD_WIDTH
from viewer.client import ApiError, FormsApiClient
from viewer.models import (
    FieldAnnotation,
    FormSubmission,
    FormTemplate,
    ResolvedFieldValue,
)
from viewer.state import ViewerState

logger = logging.getLogger(__name__)

BINDING_ROOT = "$."
NEW_FIELD_GROUP = "Custom"
NEW_FIELD_LABEL = "New Field"

_TEMPLATES_KEY = "templates"

# ── Data-binding paths ────────────────────────────────────────────────────────

def binding_path(binding: str) -> list[str]:
    """Split a ``$.a.b`` style binding into its keys."""
    path = binding[len(BINDING_ROOT):] if binding.startswith(BINDING_ROOT) else binding
    return path.split(".")

def assign_path(data: dict[str, Any], path: list[str], value: Any) -> dict[str, Any]:
    """Set ``data[path[0]]...[path[-1]] = value`` in place and return *data*.

    Intermediates that are missing or not objects (including scalars such as
    an existing string) are replaced with empty objects so the leaf always
    lands.
    """
    current = data
    for key in path[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[path[-1]] = value
    return data


def new_field_key(now: Callable[[], float] = time.time) -> str:
    return f"field_{int(now() * 1000)}"


# ── View model ────────────────────────────────────────────────────────────────

@dataclass
class ViewerData:
    """Everything the viewer page renders for one state."""

    state: ViewerState
    templates: list[FormTemplate] = field(default_factory=list)
    submissions: list[FormSubmission] = field(default_factory=list)
    annotations: list[FieldAnnotation] = field(default_factory=list)
    resolved: list[ResolvedFieldValue] | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def selected_template(self) -> FormTemplate | None:
        return next((t for t in self.templates if t.id == self.state.template_id), None)

    @property
    def selected_annotation(self) -> FieldAnnotation | None:
        return next((a for a in self.annotations
                     if a.field_key == self.state.field_key), None)

    @property
    def selected_resolved(self) -> ResolvedFieldValue | None:
        return next((r for r in self.resolved or []
                     if r.field_key == self.state.field_key), None)

    @property
    def pending_delete(self) -> FieldAnnotation | None:
        return next((a for a in self.annotations
                     if a.id == self.state.confirm_delete_id), None)

class FormViewerController:
    """Reads and writes through a ``FormsApiClient`` on behalf of the viewer."""

    def __init__(self, client: FormsApiClient,
                 template_cache: TTLCache | None = None) -> None:
        self.client = client
        self._template_cache = template_cache

    # ── loading ───────────────────────────────────────────────────────────────

    def templates(self) -> list[FormTemplate]:
        if self._template_cache is None:
            return self.client.get_forms()
        return self._template_cache.get_or_load(_TEMPLATES_KEY, self.client.get_forms)

    def invalidate_templates(self) -> None:
        if self._template_cache is not None:
            self._template_cache.invalidate(_TEMPLATES_KEY)

    def load(self, state: ViewerState) -> ViewerData:
        """Fetch the data for *state*, auto-selecting the first template and
        the first submission when none is chosen.

        Upstream failures are logged and recorded in ``ViewerData.errors``;
        whatever loaded before the failure is still returned.
        """
        data = ViewerData(state=state)
        try:
            self._load_into(data)
        except ApiError as exc:
            logger.error("viewer_load_failed state=%s error=%s",
                         data.state.query_string(), exc)
            data.errors.append(exc.message)
        return data

    def _load_into(self, data: ViewerData) -> None:
        state = data.state
        data.templates = self.templates()
        if state.template_id and all(t.id != state.template_id for t in data.templates):
            # Possibly created since the list was cached.
            self.invalidate_templates()
            data.templates = self.templates()

        if not state.template_id and data.templates:
            state = data.state = replace(state, template_id=data.templates[0].id)
        if not state.template_id:
            return

        data.submissions = self.client.get_submissions(
            {"form_template_id": state.template_id}
        )
        if not state.submission_id and data.submissions:
            state = data.state = replace(state, submission_id=data.submissions[0].id)

        data.annotations = self.client.get_annotations(state.template_id)
        if state.submission_id:
            data.resolved = self.client.resolve_fields(state.submission_id)

    # ── annotation mutations ──────────────────────────────────────────────────

    def update_annotation(self, annotation_id: str,
                          changes: dict[str, Any]) -> FieldAnnotation:
        updated = self.client.update_annotation(annotation_id, changes)
        logger.info("annotation_updated id=%s keys=%s",
                    annotation_id, ",".join(sorted(changes)))
        return updated

    def move_annotation(self, annotation_id: str, x: int, y: int) -> FieldAnnotation:
        return self.update_annotation(annotation_id, {"x": x, "y": y})

    def delete_annotation(self, state: ViewerState) -> ViewerState:
        """Delete the annotation awaiting confirmation.

        Returns the state with field selection and the pending id cleared;
        on failure the pending id is cleared before the error propagates.
        """
        annotation_id = state.confirm_delete_id
        if not annotation_id:
            return state
        try:
            self.client.delete_annotation(annotation_id)
        except Exception:
            logger.exception("annotation_delete_failed id=%s", annotation_id)
            raise
        logger.info("annotation_deleted id=%s", annotation_id)
        return state.with_field(None).with_confirm_delete(None)

    def add_annotation(self, state: ViewerState, page_number: int,
                       x: int, y: int) -> ViewerState:
        """Create a default text field at ``(x, y)`` and select it."""
        if not state.template_id:
            return state
        existing = self.client.get_annotations(state.template_id)
        field_key = new_field_key()
        payload = {
            "field_key": field_key,
            "page_number": page_number,
            "x": x,
            "y": y,
            "width": NEW_FIELD_WIDTH,
            "height": NEW_FIELD_HEIGHT,
            "field_type": "text",
            "data_binding": "",
            "label": NEW_FIELD_LABEL,
            "group_name": NEW_FIELD_GROUP,
            "sort_order": len(existing) + 1,
            "format": dict(NEW_FIELD_FORMAT),
            "validation": {"required": False},
        }
        self.client.create_annotation(state.template_id, payload)
        logger.info("annotation_created template=%s key=%s page=%d",
                    state.template_id, field_key, page_number)
        return state.with_field(field_key).with_adding(False)

    # ── submission mutations ──────────────────────────────────────────────────

    def update_value(self, state: ViewerState, field_key: str,
                     value: str) -> FormSubmission | None:
        """Write *value* into the selected submission at the field's binding."""
        if not state.submission_id:
            return None
        binding = field_key
        if state.template_id:
            annotations = self.client.get_annotations(state.template_id)
            ann = next((a for a in annotations if a.field_key == field_key), None)
            if ann is not None and ann.data_binding:
                binding = ann.data_binding

        submission = self.client.get_submission(state.submission_id)
        data = assign_path(copy.deepcopy(submission.taxpayer_data or {}),
                           binding_path(binding), value)
        updated = self.client.update_submission(state.submission_id,
                                                {"taxpayer_data": data})
        logger.info("submission_value_updated submission=%s binding=%s",
                    state.submission_id, binding)
        return updated

    def create_submission(self, state: ViewerState) -> ViewerState:
        """Start an empty draft submission for the selected template."""
        if not state.template_id:
            return state
        created = self.client.create_submission({
            "form_template_id": state.template_id,
            "taxpayer_data": {},
            "status": "draft",
        })
        logger.info("submission_created id=%s template=%s",
                    created.id, state.template_id)
        return state.with_submission(created.id)
