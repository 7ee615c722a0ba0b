"""
Reporting for Practice Financial Resiliency

Provides:
- Export records, CSV rendering and score round-trip
- Results summaries
- PDF reports (fpdf2)
"""

from .export import (
    CSV_HEADERS,
    generate_csv,
    generate_results_summary,
    parse_csv,
    prepare_export_data,
    score_record,
    scores_from_record
)
from .pdf_report import ResiliencyReport, generate_pdf_report

__all__ = [
    'CSV_HEADERS',
    'generate_csv',
    'generate_results_summary',
    'parse_csv',
    'prepare_export_data',
    'score_record',
    'scores_from_record',
    'ResiliencyReport',
    'generate_pdf_report'
]
