"""
Static page artwork drawn beneath the field overlays.

Only Form 1040 carries artwork. Page 1 has its own bands and line labels;
every later page reuses the page-two set. Coordinates are in points and are
scaled when the artwork is built for a given zoom.
"""

from __future__ import annotations

from dataclasses import dataclass

ARTWORK_FORM_CODE = "1040"

FRAME_INSET_X = 30
FRAME_INSET_Y = 20
TITLE_BAND_MAX_Y = 50


@dataclass(frozen=True)
class Section:
    y: float
    height: float
    label: str
    is_header: bool = True


@dataclass(frozen=True)
class LineLabel:
    y: float
    label: str
    label_right: str | None = None

    @property
    def is_checkbox(self) -> bool:
        return self.label.startswith("☐")


PAGE1_SECTIONS = (
    Section(30, 20, "Form 1040 — U.S. Individual Income Tax Return (2025)"),
    Section(96, 18, "FILING STATUS"),
    Section(148, 18, "YOUR INFORMATION"),
    Section(240, 18, "ADDRESS"),
    Section(330, 18, "INCOME"),
    Section(660, 18, "ADJUSTED GROSS INCOME"),
    Section(740, 18, "STANDARD DEDUCTION"),
)

PAGE1_LABELS = (
    LineLabel(108, "☐ Single"),
    LineLabel(124, "☐ Married filing jointly"),
    LineLabel(166, "First name and initial", "Your social security number"),
    LineLabel(206, "Last name"),
    LineLabel(256, "Home address (number and street)", "Apt. no."),
    LineLabel(298, "City, town or post office", "State    ZIP code"),
    LineLabel(350, "1   Wages, salaries, tips, etc. Attach Form(s) W-2"),
    LineLabel(382, "2a  Tax-exempt interest"),
    LineLabel(414, "2b  Taxable interest"),
    LineLabel(446, "3a  Qualified dividends"),
    LineLabel(478, "3b  Ordinary dividends"),
    LineLabel(510, "4a  IRA distributions"),
    LineLabel(542, "5a  Pensions and annuities"),
    LineLabel(574, "6   Social security benefits"),
    LineLabel(606, "9   Total income. Add lines 1 through 8"),
    LineLabel(680, "11  Adjusted gross income"),
    LineLabel(760, "12  Standard deduction or itemized deductions"),
    LineLabel(796, "13  Qualified business income deduction"),
    LineLabel(832, "14  Add lines 12 and 13"),
)

PAGE2_SECTIONS = (
    Section(30, 20, "Form 1040 (2025) — Page 2"),
    Section(72, 18, "TAX AND CREDITS"),
    Section(190, 18, "PAYMENTS"),
    Section(360, 18, "REFUND"),
    Section(600, 18, "SIGNATURE"),
)

PAGE2_LABELS = (
    LineLabel(90, "15  Taxable income"),
    LineLabel(122, "16  Tax"),
    LineLabel(154, "17  Amount from Schedule 2"),
    LineLabel(210, "24  Federal tax withheld"),
    LineLabel(242, "25  Estimated tax payments"),
    LineLabel(274, "26  Earned income credit (EIC)"),
    LineLabel(306, "33  Total payments"),
    LineLabel(380, "34  Overpayment"),
    LineLabel(412, "35a Amount to be refunded"),
    LineLabel(444, "37  Amount you owe"),
    LineLabel(620, "Your signature", "Date"),
    LineLabel(652, "Occupation"),
)


@dataclass
class PageArtwork:
    """Artwork for one page, with every style already scaled."""
    page_number: int
    scale: float
    sections: tuple[Section, ...]
    labels: tuple[LineLabel, ...]

    def frame_style(self) -> str:
        s = self.scale
        return (f"top:{FRAME_INSET_Y * s:g}px;left:{FRAME_INSET_X * s:g}px;"
                f"right:{FRAME_INSET_X * s:g}px;bottom:{FRAME_INSET_Y * s:g}px")

    def section_class(self, section: Section) -> str:
        if section.is_header and section.y <= TITLE_BAND_MAX_Y:
            return "bg-band bg-title"
        if section.is_header:
            return "bg-band bg-header"
        return "bg-band"

    def section_style(self, section: Section) -> str:
        s = self.scale
        font = 11 if section.y <= TITLE_BAND_MAX_Y else 9
        return (f"left:{FRAME_INSET_X * s:g}px;right:{FRAME_INSET_X * s:g}px;"
                f"top:{section.y * s:g}px;height:{section.height * s:g}px;"
                f"padding-left:{8 * s:g}px;font-size:{font * s:g}px")

    def label_style(self, label: LineLabel) -> str:
        s = self.scale
        return (f"left:{36 * s:g}px;top:{label.y * s:g}px;"
                f"font-size:{7.5 * s:g}px;height:{16 * s:g}px")

    def label_right_style(self, label: LineLabel) -> str:
        s = self.scale
        return (f"right:{40 * s:g}px;top:{label.y * s:g}px;"
                f"font-size:{7.5 * s:g}px;height:{16 * s:g}px")

    def rule_style(self, label: LineLabel) -> str:
        s = self.scale
        return f"left:{34 * s:g}px;right:{34 * s:g}px;top:{(label.y + 28) * s:g}px"

    @property
    def has_amount_header(self) -> bool:
        return self.page_number == 1

    def amount_header_style(self) -> str:
        s = self.scale
        return f"right:{34 * s:g}px;top:{288 * s:g}px;font-size:{7.5 * s:g}px"


def page_artwork(form_code: str, page_number: int,
                 scale: float) -> PageArtwork | None:
    """Return the artwork for a page, or None for forms without artwork."""
    if form_code != ARTWORK_FORM_CODE:
        return None
    if page_number == 1:
        return PageArtwork(page_number, scale, PAGE1_SECTIONS, PAGE1_LABELS)
    return PageArtwork(page_number, scale, PAGE2_SECTIONS, PAGE2_LABELS)
