"""Expose component submodules for convenience."""

from .forms import strategy_form, WIDGET_KEYS
from .charts import balance_chart, interest_chart, tax_breakdown_chart, projection_charts
from .tables import yearly_frame, breakdown_frame, format_currency, format_percent
from .report import build_pdf, export_json

__all__ = [
    "strategy_form",
    "WIDGET_KEYS",
    "balance_chart",
    "interest_chart",
    "tax_breakdown_chart",
    "projection_charts",
    "yearly_frame",
    "breakdown_frame",
    "format_currency",
    "format_percent",
    "build_pdf",
    "export_json",
]
