"""
Assessment Export

Builds the flat export record sent to the webhook, renders it as CSV, and
reads score columns back from CSV so exported scores round-trip exactly.
"""

import csv
import io
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.assessment.catalog import QuestionCatalog, get_default_catalog
from src.assessment.scoring import ScoreResult

logger = logging.getLogger(__name__)

EXPORT_VERSION = "2.0"

CSV_HEADERS = [
    "Timestamp", "Name", "Email", "Organization", "Practice Type",
    "Overall Score", "Revenue Cycle", "Patient Experience", "Competitive Position",
    "Annual Billing", "AR Days", "Cash in AR", "Total Opportunity", "Bad Debt Rate",
]

# CSV columns holding the category scores, in category order
CATEGORY_COLUMNS = ["Revenue Cycle", "Patient Experience", "Competitive Position"]


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def respondent_name(form_data: Mapping[str, Any], default: str = "Unknown") -> str:
    name = form_data.get("name")
    if name:
        return name
    full_name = f"{form_data.get('first_name') or ''} {form_data.get('last_name') or ''}".strip()
    return full_name or default


def prepare_export_data(
    form_data: Mapping[str, Any],
    result,
    catalog: Optional[QuestionCatalog] = None
) -> Dict[str, Any]:
    """
    Flatten an AssessmentResult and the respondent's contact form into
    the export record.
    """
    catalog = catalog or get_default_catalog()
    answers = result.answers
    scores = result.scores
    insights = result.insights
    resiliency = result.resiliency

    categories = {
        _slug(name): scores.category_score(index)
        for index, name in enumerate(catalog.category_names)
    }

    return {
        "timestamp": _timestamp(),
        "respondent": {
            "name": respondent_name(form_data),
            "email": form_data.get("email") or "",
            "organization": form_data.get("organization") or form_data.get("facility_name") or "",
            "practice_type": answers.get("practice_type") or ""
        },
        "scores": {
            "overall": scores.overall,
            "categories": categories
        },
        "answers": dict(answers),
        "insights": {
            "annual_billing": insights.annual_billing,
            "ar_days": insights.ar_days,
            "cash_in_ar": insights.cash_in_ar,
            "total_financial_opportunity": insights.total_financial_opportunity,
            "bad_debt_rate": insights.bad_debt_rate,
            "current_bad_debt": insights.current_bad_debt
        },
        "resiliency_index": {
            "index": resiliency.index,
            "level": resiliency.level,
            "projected_index": resiliency.projected_index,
            "projected_improvement": resiliency.projected_improvement,
            "forces": [
                {"id": f.id, "name": f.name, "exposure": f.amplified_exposure, "level": f.level}
                for f in resiliency.forces
            ]
        },
        "version": EXPORT_VERSION
    }


def _csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def generate_csv(export_data: Mapping[str, Any]) -> str:
    """Header row plus one fully quoted value row."""
    respondent = export_data["respondent"]
    scores = export_data["scores"]
    category_values = list(scores["categories"].values())
    category_values += [None] * (len(CATEGORY_COLUMNS) - len(category_values))
    insights = export_data["insights"]

    values = [
        export_data["timestamp"], respondent["name"], respondent["email"],
        respondent["organization"], respondent["practice_type"],
        scores["overall"], *category_values[:len(CATEGORY_COLUMNS)],
        insights["annual_billing"], insights["ar_days"], insights["cash_in_ar"],
        insights["total_financial_opportunity"], insights["bad_debt_rate"],
    ]

    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="").writerow([_csv_value(v) for v in values])
    return buffer.getvalue()


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Rows of an exported CSV keyed by header."""
    return list(csv.DictReader(io.StringIO(text)))


def score_record(scores: ScoreResult) -> Dict[str, Any]:
    """Score columns of the CSV export for one ScoreResult."""
    record: Dict[str, Any] = {"Practice Type": scores.segment, "Overall Score": scores.overall}
    for index, column in enumerate(CATEGORY_COLUMNS):
        record[column] = scores.category_score(index)
    return record


def scores_from_record(
    record: Mapping[str, Any],
    catalog: Optional[QuestionCatalog] = None
) -> ScoreResult:
    """Rebuild a ScoreResult from exported score columns."""
    catalog = catalog or get_default_catalog()
    config = catalog.segment_config(record.get("Practice Type") or None)

    categories = []
    for column in CATEGORY_COLUMNS[:len(config.active_categories)]:
        value = record.get(column)
        if value in (None, ""):
            break
        categories.append(int(value))

    return ScoreResult(
        overall=int(record["Overall Score"]),
        categories=tuple(categories),
        segment=config.id,
        weights=config.category_weights,
        use_two_categories=config.use_two_categories
    )


def _money(value: float) -> str:
    return f"${value:,.0f}"


def generate_results_summary(
    scores: ScoreResult,
    insights,
    recommendations: Sequence[Any],
    resiliency=None,
    level: str = ""
) -> Dict[str, Any]:
    """Headline, level, summary sentence and top three recommendation titles."""
    annual = _money(insights.annual_billing)
    opportunity = _money(insights.total_financial_opportunity)

    if resiliency is not None:
        headline = f"Your Resiliency Index: {resiliency.index}/100"
        most_vulnerable = resiliency.most_vulnerable.name.lower() if resiliency.most_vulnerable else "none"
        summary = (
            f"Your practice's Resiliency Index is {resiliency.index}/100 ({resiliency.level}). "
            f"Your payment readiness score is {scores.overall}/100. "
            f"With {annual} in annual patient billing, there's an estimated {opportunity} "
            f"annual opportunity to improve. Your biggest vulnerability: {most_vulnerable}."
        )
    else:
        headline = f"Your Financial Resiliency Score: {scores.overall}/100"
        summary = (
            f"Your practice scored {scores.overall} out of 100 on the Financial Resiliency Assessment, "
            f"placing you in the \"{level}\" category. With {annual} in annual patient billing, "
            f"there's an estimated {opportunity} annual opportunity to improve."
        )

    return {
        "headline": headline,
        "resiliency_index": resiliency.index if resiliency is not None else None,
        "resiliency_level": resiliency.level if resiliency is not None else None,
        "level": level,
        "summary": summary,
        "top_recommendations": [r.title for r in recommendations[:3]]
    }
