"""
PDF Report Generator for Financial Resiliency Assessments

Renders a two-page report for one completed assessment: the Resiliency
Index, readiness scores, force exposure and financial snapshot on page
one; top recommendations and projected improvements on page two.

Uses fpdf2 (pure Python, no system dependencies).
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence, Tuple

from fpdf import FPDF

from .export import respondent_name

logger = logging.getLogger(__name__)

# Brand colors
NAVY = (7, 33, 64)
BLUE = (60, 143, 199)
PURPLE = (139, 92, 246)
GOLD = (252, 201, 59)
RED = (239, 68, 68)
AMBER = (245, 158, 11)
GREEN = (16, 185, 129)
LIGHT_BLUE = (240, 247, 255)
LIGHT_GRAY = (229, 231, 235)
GRAY = (107, 114, 128)
DARK = (31, 41, 55)
WHITE = (255, 255, 255)

CATEGORY_BAR_COLORS = (BLUE, PURPLE, GOLD)

DEFAULT_BRAND = "Financial Resiliency Assessment"

_LATIN1_REPLACEMENTS = {
    "\u2014": "-", "\u2013": "-", "\u2018": "'", "\u2019": "'",
    "\u201c": '"', "\u201d": '"', "\u2022": "-", "\u2026": "...",
}


def sanitize(text: Any) -> str:
    """Coerce text to Latin-1 for the core PDF fonts."""
    text = "" if text is None else str(text)
    for char, replacement in _LATIN1_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text.encode("latin-1", "replace").decode("latin-1")


def exposure_color(exposure: float) -> Tuple[int, int, int]:
    if exposure > 60:
        return RED
    if exposure > 40:
        return AMBER
    if exposure > 20:
        return BLUE
    return GREEN


def _money(value: float) -> str:
    return f"${value:,.0f}"


class ResiliencyReport(FPDF):
    """Financial resiliency assessment PDF report."""

    def __init__(self, brand: str = DEFAULT_BRAND):
        super().__init__()
        self.brand = brand
        self.set_auto_page_break(auto=True, margin=25)

    def header(self):
        self.set_fill_color(*NAVY)
        self.rect(0, 0, 210, 14, "F")
        self.set_xy(10, 3)
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(*WHITE)
        self.cell(120, 8, sanitize(self.brand), align="L")
        self.set_font("Helvetica", "", 9)
        self.cell(0, 8, f"Page {self.page_no()}", align="R", new_x="LMARGIN", new_y="NEXT")
        self.set_y(20)

    def footer(self):
        self.set_y(-18)
        self.set_draw_color(*LIGHT_GRAY)
        self.set_line_width(0.3)
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(2)
        self.set_font("Helvetica", "", 7)
        self.set_text_color(*GRAY)
        self.cell(0, 5, sanitize(f"Generated by {self.brand}  |  Financial Resiliency Assessment"), align="C")

    def section_title(self, title: str):
        self.ln(4)
        self.set_font("Helvetica", "B", 13)
        self.set_text_color(*NAVY)
        self.cell(0, 8, sanitize(title), new_x="LMARGIN", new_y="NEXT")
        self.set_draw_color(*BLUE)
        self.set_line_width(0.5)
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(3)

    def bar(self, label: str, value: Optional[float], color: Tuple[int, int, int], suffix: str = ""):
        """Labelled horizontal bar for a 0-100 value."""
        y = self.get_y()
        self.set_font("Helvetica", "", 10)
        self.set_text_color(*DARK)
        self.set_xy(15, y)
        self.cell(70, 7, sanitize(label))

        track_x, track_w = 90, 85
        self.set_fill_color(*LIGHT_GRAY)
        self.rect(track_x, y + 1.5, track_w, 4, "F")
        if value is not None:
            self.set_fill_color(*color)
            self.rect(track_x, y + 1.5, track_w * max(0, min(100, value)) / 100, 4, "F")

        self.set_xy(track_x + track_w + 3, y)
        self.set_font("Helvetica", "B", 10)
        self.cell(0, 7, "-" if value is None else f"{value:.0f}{suffix}", new_x="LMARGIN", new_y="NEXT")

    def key_value(self, label: str, value: str):
        self.set_x(15)
        self.set_font("Helvetica", "", 10)
        self.set_text_color(*GRAY)
        self.cell(90, 7, sanitize(label))
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(*DARK)
        self.cell(0, 7, sanitize(value), new_x="LMARGIN", new_y="NEXT")

    # -- Page 1 --------------------------------------------------------

    def cover(self, name: str, segment_label: str):
        self.add_page()
        self.set_font("Helvetica", "B", 22)
        self.set_text_color(*NAVY)
        self.cell(0, 12, "Financial Resiliency Report", new_x="LMARGIN", new_y="NEXT")
        self.set_font("Helvetica", "", 11)
        self.set_text_color(*GRAY)
        self.cell(0, 7, sanitize(f"Prepared for: {name}"), new_x="LMARGIN", new_y="NEXT")
        self.cell(0, 7, sanitize(f"{segment_label}  |  {datetime.now().strftime('%B %d, %Y')}"),
                  new_x="LMARGIN", new_y="NEXT")
        self.ln(4)

    def resiliency_hero(self, resiliency):
        box_y = self.get_y()
        self.set_fill_color(*NAVY)
        self.rect(10, box_y, 190, 34, "F")

        self.set_xy(18, box_y + 4)
        self.set_font("Helvetica", "", 10)
        self.set_text_color(*WHITE)
        self.cell(0, 6, "RESILIENCY INDEX")

        self.set_xy(18, box_y + 11)
        self.set_font("Helvetica", "B", 30)
        self.set_text_color(*BLUE)
        self.cell(40, 16, f"{resiliency.index}")

        self.set_xy(60, box_y + 14)
        self.set_font("Helvetica", "B", 13)
        self.set_text_color(*WHITE)
        self.cell(0, 10, sanitize(f"Resiliency Index - {resiliency.level}"))
        self.set_y(box_y + 38)

    def readiness_box(self, overall: int, level_label: str):
        box_y = self.get_y()
        self.set_fill_color(*LIGHT_BLUE)
        self.rect(10, box_y, 190, 18, "F")
        self.set_xy(18, box_y + 5)
        self.set_font("Helvetica", "", 10)
        self.set_text_color(*GRAY)
        self.cell(60, 8, "Payment Readiness Score")
        self.set_font("Helvetica", "B", 14)
        self.set_text_color(*NAVY)
        self.cell(30, 8, f"{overall}/100")
        self.set_font("Helvetica", "", 11)
        self.cell(0, 8, sanitize(level_label))
        self.set_y(box_y + 22)

    def category_scores(self, names: Sequence[str], categories: Sequence[int]):
        self.section_title("Category Scores")
        for index, score in enumerate(categories):
            name = names[index] if index < len(names) else f"Category {index + 1}"
            self.bar(name, score, CATEGORY_BAR_COLORS[index % len(CATEGORY_BAR_COLORS)])

    def force_breakdown(self, resiliency):
        self.section_title("Resiliency Force Breakdown")
        for force in resiliency.forces:
            exposure = force.amplified_exposure
            self.bar(f"{force.name} ({force.level})", exposure, exposure_color(exposure), suffix="%")
        self.ln(2)
        self.set_x(15)
        self.set_font("Helvetica", "I", 10)
        self.set_text_color(*GRAY)
        self.cell(0, 7, sanitize(
            f"Projected index with recommended changes: {resiliency.projected_index} "
            f"(+{resiliency.projected_improvement})"
        ), new_x="LMARGIN", new_y="NEXT")

    def financial_snapshot(self, insights):
        self.section_title("Financial Snapshot")
        self.key_value("Annual Patient Billing", _money(insights.annual_billing))
        self.key_value("Current AR Days", f"{insights.ar_days:.0f} days")
        self.key_value("Cash Stuck in AR", _money(insights.cash_in_ar))
        self.key_value("Annual Bad Debt", _money(insights.current_bad_debt))
        self.key_value("Total Annual Opportunity", _money(insights.total_financial_opportunity))

    # -- Page 2 --------------------------------------------------------

    def recommendations(self, recommendations: Sequence[Any], limit: int = 5):
        self.add_page()
        self.section_title("Top Recommendations")
        if not recommendations:
            self.set_font("Helvetica", "", 10)
            self.set_text_color(*GRAY)
            self.multi_cell(0, 6, "No recommendations were triggered by these answers.")
            return
        for number, rec in enumerate(recommendations[:limit], start=1):
            self.set_font("Helvetica", "B", 11)
            self.set_text_color(*NAVY)
            self.multi_cell(0, 7, sanitize(f"{number}. {rec.title}"), new_x="LMARGIN", new_y="NEXT")
            self.set_font("Helvetica", "", 9)
            self.set_text_color(*GRAY)
            self.multi_cell(0, 5, sanitize(f"{rec.category}  |  {rec.impact} impact"),
                            new_x="LMARGIN", new_y="NEXT")
            self.set_font("Helvetica", "", 10)
            self.set_text_color(*DARK)
            self.multi_cell(0, 5, sanitize(rec.description), new_x="LMARGIN", new_y="NEXT")
            self.ln(3)

    def projection(self, projection):
        self.section_title("Projected Improvement")
        self.key_value("Current Score", f"{projection.current_overall}/100")
        self.key_value("Projected Score", f"{projection.projected_overall}/100 (+{projection.overall_improvement})")
        self.ln(2)
        for category in projection.category_improvements:
            self.key_value(
                category.name,
                f"{category.current} -> {category.projected} (+{category.improvement})"
            )
        if projection.top_improvements:
            self.ln(2)
            self.set_font("Helvetica", "B", 10)
            self.set_text_color(*NAVY)
            self.cell(0, 7, "Biggest score movers", new_x="LMARGIN", new_y="NEXT")
            for improvement in projection.top_improvements:
                self.set_x(15)
                self.set_font("Helvetica", "", 10)
                self.set_text_color(*DARK)
                self.multi_cell(0, 6, sanitize(
                    f"{improvement.description}: {improvement.current_score} -> "
                    f"{improvement.projected_score} (+{improvement.overall_impact} overall)"
                ), new_x="LMARGIN", new_y="NEXT")


def generate_pdf_report(
    form_data: Mapping[str, Any],
    result,
    brand: str = DEFAULT_BRAND,
    category_names: Sequence[str] = ()
) -> bytes:
    """
    Render a completed AssessmentResult as PDF bytes.

    Args:
        form_data: Contact form fields (name, first_name, last_name, organization)
        result: AssessmentResult from AssessmentEngine.assess
        brand: Text shown in the header bar and footer
        category_names: Display names for the category bars
    """
    if not category_names:
        category_names = [c.name for c in result.projection.category_improvements]

    pdf = ResiliencyReport(brand)
    pdf.cover(respondent_name(form_data, default="Practice"), result.segment_label)
    pdf.resiliency_hero(result.resiliency)
    pdf.readiness_box(result.scores.overall, result.score_level.label)
    pdf.category_scores(category_names, result.scores.categories)
    pdf.force_breakdown(result.resiliency)
    pdf.financial_snapshot(result.insights)
    pdf.recommendations(result.recommendations)
    pdf.projection(result.projection)

    logger.info(f"Generated PDF report for assessment {result.assessment_id}")
    return bytes(pdf.output())
