"""
Viewer UI state carried in the URL query string.

Selection, mode, zoom, outline toggle, add-field mode and the pending delete
confirmation all live in the query string so every view can be bookmarked
and every action endpoint can redirect back to exactly where the user was.

    /?template=t1&submission=s1&field=line_1&mode=edit&scale=1.2&outlines=0
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping
from urllib.parse import urlencode

from utils.config import MAX_SCALE, MIN_SCALE, SCALE_STEP
from utils.formatting import format_percent

_FALSE_VALUES = {"0", "false", "no", "off", ""}


def clamp_scale(value: float) -> float:
    """Clamp *value* to the zoom range and round to one decimal."""
    return round(min(MAX_SCALE, max(MIN_SCALE, value)), 1)


def _parse_scale(raw: str | None) -> float:
    if raw is None:
        return 1.0
    try:
        return clamp_scale(float(raw))
    except ValueError:
        return 1.0


def _parse_flag(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_VALUES


@dataclass(frozen=True)
class ViewerState:
    template_id: str | None = None
    submission_id: str | None = None
    field_key: str | None = None
    mode: str = "view"
    scale: float = 1.0
    show_outlines: bool = True
    adding: bool = False
    confirm_delete_id: str | None = None

    # ── parsing / serialisation ───────────────────────────────────────────────

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "ViewerState":
        """Build a state from request query params (or any str mapping)."""
        mode = params.get("mode") or "view"
        if mode not in ("view", "edit"):
            mode = "view"
        adding = mode == "edit" and _parse_flag(params.get("adding"), False)
        return cls(
            template_id=params.get("template") or None,
            submission_id=params.get("submission") or None,
            field_key=params.get("field") or None,
            mode=mode,
            scale=_parse_scale(params.get("scale")),
            show_outlines=_parse_flag(params.get("outlines"), True),
            adding=adding,
            confirm_delete_id=params.get("confirm_delete") or None,
        )

    def to_params(self) -> dict[str, str]:
        """Return non-default members as query params."""
        params: dict[str, str] = {}
        if self.template_id:
            params["template"] = self.template_id
        if self.submission_id:
            params["submission"] = self.submission_id
        if self.field_key:
            params["field"] = self.field_key
        if self.mode != "view":
            params["mode"] = self.mode
        if self.scale != 1.0:
            params["scale"] = f"{self.scale:g}"
        if not self.show_outlines:
            params["outlines"] = "0"
        if self.adding:
            params["adding"] = "1"
        if self.confirm_delete_id:
            params["confirm_delete"] = self.confirm_delete_id
        return params

    def query_string(self) -> str:
        return urlencode(self.to_params())

    def url(self, path: str = "/") -> str:
        qs = self.query_string()
        return f"{path}?{qs}" if qs else path

    # ── transitions ───────────────────────────────────────────────────────────

    def with_template(self, template_id: str | None) -> "ViewerState":
        """Select a template; submission and field selection are cleared."""
        return replace(self, template_id=template_id or None,
                       submission_id=None, field_key=None,
                       confirm_delete_id=None)

    def with_submission(self, submission_id: str | None) -> "ViewerState":
        """Select a submission; field selection is cleared."""
        return replace(self, submission_id=submission_id or None, field_key=None)

    def with_field(self, field_key: str | None) -> "ViewerState":
        return replace(self, field_key=field_key or None)

    def with_mode(self, mode: str) -> "ViewerState":
        if mode == "view":
            return replace(self, mode="view", adding=False)
        return replace(self, mode="edit")

    def with_adding(self, adding: bool) -> "ViewerState":
        if adding and self.mode != "edit":
            return replace(self, mode="edit", adding=True)
        return replace(self, adding=adding)

    def with_outlines(self, show: bool) -> "ViewerState":
        return replace(self, show_outlines=show)

    def with_confirm_delete(self, annotation_id: str | None) -> "ViewerState":
        return replace(self, confirm_delete_id=annotation_id or None)

    def zoom_in(self) -> "ViewerState":
        return replace(self, scale=clamp_scale(self.scale + SCALE_STEP))

    def zoom_out(self) -> "ViewerState":
        return replace(self, scale=clamp_scale(self.scale - SCALE_STEP))

    # ── display helpers ───────────────────────────────────────────────────────

    @property
    def is_editing(self) -> bool:
        return self.mode == "edit"

    @property
    def zoom_label(self) -> str:
        return format_percent(self.scale)

    @property
    def can_zoom_in(self) -> bool:
        return self.scale < MAX_SCALE

    @property
    def can_zoom_out(self) -> bool:
        return self.scale > MIN_SCALE
