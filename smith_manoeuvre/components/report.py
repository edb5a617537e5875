"""JSON and PDF exports of a projected strategy."""

import io
import json
from typing import Dict, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..orchestrator import StrategyOutcome
from .tables import format_currency, format_percent, yearly_frame

_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#E6ECE9")),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ]
)


def export_json(outcome: StrategyOutcome) -> str:
    return json.dumps(outcome.to_dict(), indent=2)


def _summary_rows(outcome: StrategyOutcome) -> list:
    s = outcome.projection.summary
    return [
        ["Metric", "Value"],
        ["Marginal tax rate", f"{outcome.tax.marginal_rate * 100:.2f}%"],
        ["Expected annual return", f"{outcome.expected_return * 100:.2f}%"],
        ["Projected net worth", format_currency(s.final_net_worth)],
        ["Total net gain", format_currency(s.total_net_gain)],
        ["Return on capital", format_percent(s.return_on_capital)],
        ["Investment value", format_currency(s.final_investment_value)],
        ["Final HELOC balance", format_currency(s.final_loan_balance)],
        ["Total tax refunds", format_currency(s.total_tax_refunds)],
        ["Total interest paid", format_currency(s.total_interest_paid)],
        ["Total out of pocket", format_currency(s.total_out_of_pocket)],
    ]


def build_pdf(outcome: StrategyOutcome, charts: Optional[Dict] = None) -> bytes:
    """Create a PDF report showing inputs, summary, yearly table and charts.

    ``charts`` maps titles to Plotly figures; rendering them needs kaleido.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, leftMargin=36, rightMargin=36)
    styles = getSampleStyleSheet()
    story = [Paragraph("Smith Manoeuvre Projection", styles["Title"]), Spacer(1, 12)]

    # ---- Input data ----
    story.append(Paragraph("Inputs", styles["Heading2"]))
    rows = [["Field", "Value"]] + [[k, str(v)] for k, v in outcome.inputs.items()]
    table = Table(rows, hAlign="LEFT")
    table.setStyle(_TABLE_STYLE)
    story.extend([table, Spacer(1, 12)])

    # ---- Summary ----
    story.append(Paragraph("Summary", styles["Heading2"]))
    table = Table(_summary_rows(outcome), hAlign="LEFT")
    table.setStyle(_TABLE_STYLE)
    story.extend([table, Spacer(1, 12)])

    # ---- Yearly projection ----
    story.append(Paragraph("Yearly Projection", styles["Heading2"]))
    df = yearly_frame(outcome.projection, include_out_of_pocket=not outcome.config.capitalize_interest)
    body = [
        [str(int(v)) if col == "Year" else format_currency(v) for col, v in row.items()]
        for _, row in df.iterrows()
    ]
    table = Table([list(df.columns)] + body, hAlign="LEFT", repeatRows=1)
    table.setStyle(_TABLE_STYLE)
    story.append(table)

    # ---- Charts ----
    for title, fig in (charts or {}).items():
        story.extend([PageBreak(), Paragraph(title, styles["Heading2"])])
        img = fig.to_image(format="png", scale=2)
        story.append(Image(io.BytesIO(img), width=480, height=300))
        story.append(Spacer(1, 12))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
