"""
Page canvas geometry: where each field overlay sits on a scaled page.

All upstream geometry is in points. The browser draws at ``points * scale``
pixels, so every pixel value in this module is derived from the annotation
geometry and the current zoom. Pointer input travels the opposite way:
pixel deltas from a drag or a click are divided by the scale and rounded
the way the browser script rounds (halves up) before being sent upstream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from viewer.background import PageArtwork, page_artwork
from viewer.models import FieldAnnotation, FormTemplate, ResolvedFieldValue
from viewer.state import ViewerState

MIN_FONT_PX = 10
DEFAULT_FONT_SIZE = 12

# Stacking order of overlays; hover and drag are applied by the stylesheet.
Z_DEFAULT = 1
Z_HOVERED = 5
Z_SELECTED = 10
Z_DRAGGING = 100

_JUSTIFY = {"right": "flex-end", "center": "center", "left": "flex-start"}


def js_round(value: float) -> int:
    """Round half up, matching ``Math.round`` in the canvas script."""
    return math.floor(value + 0.5)


def overlay_z_index(selected: bool = False, hovered: bool = False,
                    dragging: bool = False) -> int:
    if dragging:
        return Z_DRAGGING
    if selected:
        return Z_SELECTED
    if hovered:
        return Z_HOVERED
    return Z_DEFAULT


def drag_release_position(orig_x: float, orig_y: float, delta_x: float,
                          delta_y: float, scale: float) -> tuple[int, int] | None:
    """Return the new ``(x, y)`` in points for a drag released after moving.

    ``delta_*`` are pointer offsets in screen pixels. A release without any
    movement returns None: the position never changed, so nothing is sent.
    """
    if delta_x == 0 and delta_y == 0:
        return None
    new_x = max(0, js_round(orig_x + delta_x / scale))
    new_y = max(0, js_round(orig_y + delta_y / scale))
    return new_x, new_y


def click_to_points(offset_x: float, offset_y: float,
                    scale: float) -> tuple[int, int]:
    """Convert a page-relative click in pixels to point coordinates."""
    return js_round(offset_x / scale), js_round(offset_y / scale)


@dataclass
class CharBox:
    char: str
    width: int
    height: float
    font_size: float

    @property
    def filled(self) -> bool:
        return bool(self.char)


@dataclass
class FieldOverlay:
    """One positioned field on a scaled page."""

    field: ResolvedFieldValue
    annotation: FieldAnnotation | None
    scale: float
    selected: bool
    mode: str
    left: float
    top: float
    width: float
    height: float
    font_size: float
    char_boxes: list[CharBox] = field(default_factory=list)
    char_gap: float = 0.0
    char_padding: float = 0.0

    @property
    def field_key(self) -> str:
        return self.field.field_key

    @property
    def is_computed(self) -> bool:
        return bool(self.annotation and self.annotation.is_computed)

    @property
    def has_char_boxes(self) -> bool:
        return bool(self.char_boxes)

    @property
    def has_value(self) -> bool:
        return bool(self.field.text.strip())

    @property
    def justify(self) -> str:
        if self.has_char_boxes:
            return "center"
        return _JUSTIFY.get(self.field.format.text_align, "flex-start")

    @property
    def text_align(self) -> str:
        align = self.field.format.text_align
        return align if align in _JUSTIFY else "left"

    @property
    def font_weight(self) -> int:
        return 600 if self.field.format.font_weight == "bold" else 400

    @property
    def inline_editable(self) -> bool:
        """Double-click editing: edit mode only, never char boxes or computed."""
        return self.mode == "edit" and not self.has_char_boxes and not self.is_computed

    @property
    def show_placeholder(self) -> bool:
        return not self.has_value and self.mode == "edit" and not self.is_computed

    @property
    def z_index(self) -> int:
        return overlay_z_index(selected=self.selected)

    def style(self) -> str:
        parts = [
            f"left:{self.left:g}px",
            f"top:{self.top:g}px",
            f"width:{self.width:g}px",
            f"height:{self.height:g}px",
            f"justify-content:{self.justify}",
            f"z-index:{self.z_index}",
        ]
        if self.has_char_boxes:
            parts.append(f"gap:{self.char_gap:g}px")
            parts.append(f"padding:0 {self.char_padding:g}px")
        return ";".join(parts)

    def value_style(self) -> str:
        return (f"font-size:{self.font_size:g}px;"
                f"font-weight:{self.font_weight};"
                f"text-align:{self.text_align}")


def char_box_layout(text: str, count: int, gap: float, container_width: float,
                    container_height: float, scale: float,
                    font_size: float) -> tuple[list[CharBox], float, float]:
    """Split *text* across *count* equal boxes inside the container.

    Returns ``(boxes, gap_px, padding_px)``.
    """
    gap_px = (gap or 1) * scale
    padding_px = 2 * scale
    available = container_width - padding_px * 2
    box_width = math.floor((available - (count - 1) * gap_px) / count)
    box_height = min(container_height - 2, box_width * 1.2)
    glyph = min(box_width * 0.7, font_size)
    chars = list(text)
    boxes = [
        CharBox(char=chars[i] if i < len(chars) else "",
                width=box_width, height=box_height, font_size=glyph)
        for i in range(count)
    ]
    return boxes, gap_px, padding_px


def build_overlay(field: ResolvedFieldValue, annotation: FieldAnnotation | None,
                  scale: float, selected: bool = False,
                  mode: str = "view") -> FieldOverlay:
    font_size = max(MIN_FONT_PX, (field.format.font_size or DEFAULT_FONT_SIZE) * scale)
    overlay = FieldOverlay(
        field=field,
        annotation=annotation,
        scale=scale,
        selected=selected,
        mode=mode,
        left=field.x * scale,
        top=field.y * scale,
        width=field.width * scale,
        height=field.height * scale,
        font_size=font_size,
    )
    boxes = field.char_boxes
    if boxes is not None and boxes.count > 0:
        overlay.char_boxes, overlay.char_gap, overlay.char_padding = char_box_layout(
            field.text, boxes.count, boxes.gap, overlay.width, overlay.height,
            scale, font_size,
        )
    return overlay


@dataclass
class PageCanvas:
    number: int
    width: float
    height: float
    overlays: list[FieldOverlay]
    artwork: PageArtwork | None

    def style(self) -> str:
        return f"width:{self.width:g}px;height:{self.height:g}px"


def page_overlays(page_number: int, resolved: list[ResolvedFieldValue],
                  annotations: list[FieldAnnotation],
                  state: ViewerState) -> list[FieldOverlay]:
    """Overlays for one page: resolved fields on that page, in server order."""
    by_key = {a.field_key: a for a in annotations if a.page_number == page_number}
    return [
        build_overlay(f, by_key.get(f.field_key), state.scale,
                      selected=f.field_key == state.field_key, mode=state.mode)
        for f in resolved
        if f.page_number == page_number
    ]


def build_pages(template: FormTemplate, resolved: list[ResolvedFieldValue],
                annotations: list[FieldAnnotation],
                state: ViewerState) -> list[PageCanvas]:
    return [
        PageCanvas(
            number=n,
            width=template.page_width * state.scale,
            height=template.page_height * state.scale,
            overlays=page_overlays(n, resolved, annotations, state),
            artwork=page_artwork(template.form_code, n, state.scale),
        )
        for n in template.page_numbers
    ]
