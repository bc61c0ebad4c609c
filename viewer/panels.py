"""
Side panels: the grouped field list, the read-only inspector, and the
annotation editor's form model.

The builders here return plain data (lists of rows, dicts of strings) so the
Jinja2 partials stay free of formatting logic.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any

from viewer.models import FieldAnnotation, PropertiesForm, ResolvedFieldValue

EMPTY = "—"
OTHER_GROUP = "Other"

TYPE_ICONS = {
    "text": "T",
    "number": "#",
    "currency": "$",
    "checkbox": "X",
    "date": "D",
    "ssn": "SS",
    "phone": "Ph",
    "percentage": "%",
}

TYPE_COLORS = {
    "text": "#3b82f6",
    "number": "#8b5cf6",
    "currency": "#10b981",
    "checkbox": "#f59e0b",
    "date": "#ec4899",
    "ssn": "#ef4444",
    "phone": "#06b6d4",
    "percentage": "#84cc16",
}
DEFAULT_TYPE_COLOR = "#6b7280"

FIELD_TYPES = tuple(TYPE_ICONS)


def type_icon(field_type: str) -> str:
    return TYPE_ICONS.get(field_type, "?")


def type_color(field_type: str) -> str:
    return TYPE_COLORS.get(field_type, DEFAULT_TYPE_COLOR)


def format_number(value: Any) -> str:
    """Render a number the way a browser stringifies it (``12`` not ``12.0``)."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ── Field list ────────────────────────────────────────────────────────────────

@dataclass
class FieldListItem:
    annotation: FieldAnnotation
    resolved: ResolvedFieldValue | None
    selected: bool

    @property
    def icon(self) -> str:
        return type_icon(self.annotation.field_type)

    @property
    def subtitle(self) -> str:
        """Value preview in view mode is rendered separately; this is the edit line."""
        return f"Page {self.annotation.page_number} • {self.annotation.field_type}"

    @property
    def display_value(self) -> str:
        return self.resolved.text if self.resolved else ""


@dataclass
class FieldGroup:
    name: str
    items: list[FieldListItem] = field(default_factory=list)

    @property
    def title(self) -> str:
        return self.name.replace("_", " ")

    @property
    def slug(self) -> str:
        return "".join(c if c.isalnum() else "-" for c in self.name.lower())


def group_annotations(annotations: list[FieldAnnotation],
                      resolved: list[ResolvedFieldValue],
                      selected_key: str | None) -> list[FieldGroup]:
    """Group annotations by ``group_name`` in first-seen order."""
    resolved_map = {r.field_key: r for r in resolved}
    groups: dict[str, FieldGroup] = {}
    for ann in annotations:
        name = ann.group_name or OTHER_GROUP
        group = groups.setdefault(name, FieldGroup(name))
        group.items.append(FieldListItem(
            annotation=ann,
            resolved=resolved_map.get(ann.field_key),
            selected=ann.field_key == selected_key,
        ))
    return list(groups.values())


# ── Inspector ─────────────────────────────────────────────────────────────────

@dataclass
class InspectorSection:
    title: str
    rows: list[tuple[str, str]] = field(default_factory=list)
    code: list[tuple[str, str]] = field(default_factory=list)


def inspector_sections(annotation: FieldAnnotation,
                       resolved: ResolvedFieldValue | None) -> list[InspectorSection]:
    fmt = annotation.format
    val = annotation.validation

    identity = InspectorSection("Identity", [
        ("Key", annotation.field_key),
        ("Label", annotation.label or EMPTY),
        ("Type", annotation.field_type),
        ("Group", annotation.group_name or EMPTY),
        ("Page", str(annotation.page_number)),
        ("Sort", str(annotation.sort_order)),
    ])

    position = InspectorSection("Position (points)", [
        ("x", format_number(annotation.x)),
        ("y", format_number(annotation.y)),
        ("width", format_number(annotation.width)),
        ("height", format_number(annotation.height)),
    ])

    binding = InspectorSection("Data Binding", code=[
        ("", annotation.data_binding or "(computed)"),
    ])
    if annotation.is_computed:
        binding.code.append(("Expression:", annotation.compute_expression or ""))

    fmt_rows = [
        ("Font", f"{fmt.font_family} {format_number(fmt.font_size)}pt {fmt.font_weight}"),
        ("Align", f"{fmt.text_align} / {fmt.vertical_align}"),
        ("Color", fmt.color),
        ("Transform", fmt.text_transform),
        ("Overflow", fmt.overflow),
    ]
    if fmt.decimal_places is not None:
        fmt_rows.append(("Decimals", str(fmt.decimal_places)))
    if fmt.prefix:
        fmt_rows.append(("Prefix", fmt.prefix))
    if fmt.letter_spacing is not None:
        fmt_rows.append(("Letter gap", f"{format_number(fmt.letter_spacing)}px"))
    sections = [identity, position, binding, InspectorSection("Format", fmt_rows)]

    if annotation.char_boxes:
        boxes = annotation.char_boxes
        sections.append(InspectorSection("Character Boxes", [
            ("Count", str(boxes.count)),
            ("Box width", f"{format_number(boxes.box_width)}pt"),
            ("Gap", f"{format_number(boxes.gap)}pt"),
        ]))

    val_rows = [("Required", "Yes" if val.required else "No")]
    if val.pattern:
        val_rows.append(("Pattern", val.pattern))
    if val.min_value is not None:
        val_rows.append(("Min", format_number(val.min_value)))
    if val.max_value is not None:
        val_rows.append(("Max", format_number(val.max_value)))
    sections.append(InspectorSection("Validation", val_rows))

    if resolved is not None:
        sections.append(InspectorSection("Resolved Value", [
            ("Raw", json.dumps(resolved.raw_value)),
            ("Display", resolved.display_value or "(empty)"),
        ]))
    return sections


# ── Editor ────────────────────────────────────────────────────────────────────

def editor_values(annotation: FieldAnnotation) -> dict[str, str]:
    """Initial string values for the Properties tab inputs."""
    fmt = annotation.format
    return {
        "field_key": annotation.field_key,
        "label": annotation.label or "",
        "field_type": annotation.field_type,
        "group_name": annotation.group_name or "",
        "page_number": str(annotation.page_number),
        "sort_order": str(annotation.sort_order),
        "x": format_number(annotation.x),
        "y": format_number(annotation.y),
        "width": format_number(annotation.width),
        "height": format_number(annotation.height),
        "data_binding": annotation.data_binding,
        "font_family": fmt.font_family,
        "font_size": format_number(fmt.font_size),
        "font_weight": fmt.font_weight,
        "text_align": fmt.text_align,
        "color": fmt.color,
        "compute_expression": annotation.compute_expression or "",
    }


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {raw!r}") from None


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {raw!r}")
    return value


def build_annotation_changes(form: PropertiesForm) -> dict[str, Any]:
    """Turn the editor's string inputs into a PATCH body.

    Empty label and group are left out of the change set so the stored
    values are kept; a non-empty compute expression also flags the field as
    computed.

    Raises:
        ValueError: If a numeric input does not parse.
    """
    changes: dict[str, Any] = {
        "field_key": form.field_key,
        "field_type": form.field_type,
        "page_number": _parse_int("Page", form.page_number),
        "sort_order": _parse_int("Order", form.sort_order),
        "x": _parse_float("X", form.x),
        "y": _parse_float("Y", form.y),
        "width": _parse_float("Width", form.width),
        "height": _parse_float("Height", form.height),
        "data_binding": form.data_binding,
        "format": {
            "font_family": form.font_family,
            "font_size": _parse_float("Size", form.font_size),
            "font_weight": form.font_weight,
            "text_align": form.text_align,
            "color": form.color,
        },
    }
    if form.label:
        changes["label"] = form.label
    if form.group_name:
        changes["group_name"] = form.group_name
    if form.compute_expression:
        changes["is_computed"] = True
        changes["compute_expression"] = form.compute_expression
    return changes
