"""
Pydantic models for entities exchanged with the upstream forms API.

Everything here is a transient, non-authoritative copy of server-owned data.
Optional members default to None and nested format/validation objects fill
in defaults so partially populated responses still parse.

The ``*Form`` models at the bottom describe the HTML form posts accepted by
the viewer's own action endpoints.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FieldMode = Literal["view", "edit"]
SubmissionStatus = Literal["draft", "completed", "printed"]


class _UpstreamModel(BaseModel):
    """Base for upstream entities: unknown members are kept, not rejected."""
    model_config = ConfigDict(extra="allow")


# ── Template ──────────────────────────────────────────────────────────────────

class FormTemplate(_UpstreamModel):
    """A printable form (code + tax year) and its page geometry in points."""
    id: str = Field(..., description="Template ID")
    form_code: str = Field(..., description="Form code", examples=["1040"])
    tax_year: int = Field(..., description="Tax year", examples=[2025])
    title: str = Field("", description="Form title", examples=["U.S. Individual Income Tax Return"])
    description: str | None = None
    page_count: int = Field(1, ge=0, description="Number of pages")
    page_width: float = Field(612, description="Page width in points", examples=[612])
    page_height: float = Field(792, description="Page height in points", examples=[792])
    version: str = Field("1", description="Template version")
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def option_label(self) -> str:
        return f"{self.form_code} ({self.tax_year})"

    @property
    def page_numbers(self) -> list[int]:
        return list(range(1, self.page_count + 1))


# ── Annotation ────────────────────────────────────────────────────────────────

class FieldFormat(_UpstreamModel):
    """Typography and numeric formatting of one field."""
    font_family: str = "Arial, Helvetica, sans-serif"
    font_size: float = 12
    font_weight: Literal["normal", "bold"] = "normal"
    text_align: Literal["left", "center", "right"] = "left"
    vertical_align: Literal["top", "middle", "bottom"] = "middle"
    color: str = "#000000"
    max_length: int | None = None
    decimal_places: int | None = None
    prefix: str | None = None
    suffix: str | None = None
    date_format: str | None = None
    letter_spacing: float | None = None
    overflow: Literal["truncate", "shrink", "wrap"] = "truncate"
    text_transform: Literal["uppercase", "lowercase", "none"] = "none"
    padding_top: float = 0
    padding_right: float = 0
    padding_bottom: float = 0
    padding_left: float = 0


class CharBoxConfig(_UpstreamModel):
    """Layout for fields printed one character per box (SSN, EIN, ZIP)."""
    count: int = Field(..., ge=0)
    box_width: float = 0
    gap: float = 0


class ValidationRules(_UpstreamModel):
    required: bool = False
    min_value: float | None = None
    max_value: float | None = None
    pattern: str | None = None
    custom_message: str | None = None


class FieldAnnotation(_UpstreamModel):
    """Declarative placement and behaviour of one field on a template."""
    id: str
    form_template_id: str
    field_key: str = Field(..., description="Unique per template", examples=["line_1_wages"])
    page_number: int = 1
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    field_type: str = "text"
    data_binding: str = Field("", description="Path into taxpayer data", examples=["$.income.wages"])
    format: FieldFormat = Field(default_factory=FieldFormat)
    validation: ValidationRules = Field(default_factory=ValidationRules)
    char_boxes: CharBoxConfig | None = None
    label: str | None = None
    help_text: str | None = None
    group_name: str | None = None
    sort_order: int = 0
    is_computed: bool = False
    compute_expression: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def display_name(self) -> str:
        return self.label or self.field_key


# ── Submission ────────────────────────────────────────────────────────────────

class FormSubmission(_UpstreamModel):
    """A taxpayer's data tree for one template."""
    id: str
    form_template_id: str
    taxpayer_data: dict[str, Any] = Field(default_factory=dict)
    status: SubmissionStatus = "draft"
    created_at: str | None = None
    updated_at: str | None = None


class ResolvedFieldValue(_UpstreamModel):
    """Server-computed, display-ready value of one field for one submission."""
    field_key: str
    annotation_id: str | None = None
    raw_value: Any = None
    display_value: str | None = ""
    page_number: int = 1
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    format: FieldFormat = Field(default_factory=FieldFormat)
    char_boxes: CharBoxConfig | None = None

    @property
    def text(self) -> str:
        return self.display_value or ""


# ── Viewer action forms ───────────────────────────────────────────────────────

class MoveForm(BaseModel):
    """Drag release reported by the canvas script (pixels at the given scale)."""
    orig_x: float
    orig_y: float
    delta_x: float = 0
    delta_y: float = 0
    scale: float = Field(1.0, gt=0)


class AddFieldForm(BaseModel):
    """Page-relative click position in pixels at the given scale."""
    page_number: int = Field(..., ge=1)
    offset_x: float = Field(..., ge=0)
    offset_y: float = Field(..., ge=0)
    scale: float = Field(1.0, gt=0)


class ValueForm(BaseModel):
    field_key: str = Field(..., min_length=1)
    value: str = ""


class PropertiesForm(BaseModel):
    """Raw string values from the annotation editor's Properties tab."""
    field_key: str = Field(..., min_length=1)
    label: str = ""
    field_type: str = "text"
    group_name: str = ""
    page_number: str = "1"
    sort_order: str = "0"
    x: str = "0"
    y: str = "0"
    width: str = "0"
    height: str = "0"
    data_binding: str = ""
    font_family: str = ""
    font_size: str = "12"
    font_weight: Literal["normal", "bold"] = "normal"
    text_align: Literal["left", "center", "right"] = "left"
    color: str = "#000000"
    compute_expression: str = ""
