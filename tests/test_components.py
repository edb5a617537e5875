"""Tests for the table, chart and report helpers."""

import json

import pytest

from smith_manoeuvre.components import charts, report, tables
from smith_manoeuvre.orchestrator import run_strategy


def _outcome(**inputs):
    base = {"years": 4, "periodic_contribution": 100.0}
    base.update(inputs)
    return run_strategy(base)


def test_yearly_frame_columns():
    outcome = _outcome()
    df = tables.yearly_frame(outcome.projection)
    assert list(df.columns) == list(tables.YEARLY_COLUMNS.values())
    assert df["Year"].tolist() == [1, 2, 3, 4]

    df = tables.yearly_frame(outcome.projection, include_out_of_pocket=False)
    assert "Out of Pocket" not in df.columns

    df = tables.yearly_frame(outcome.projection, labels=False)
    assert "net_worth" in df.columns


def test_breakdown_frame():
    outcome = _outcome(income=500000)
    df = tables.breakdown_frame(outcome.tax)
    assert len(df) == len(outcome.tax.breakdown)
    assert "and above" in df["Bracket"].tolist()
    assert df["Tax"].sum() == pytest.approx(outcome.tax.total_tax)


def test_formatters():
    assert tables.format_currency(1234.4) == "$1,234"
    assert tables.format_currency(-1234.6) == "-$1,235"
    assert tables.format_percent(12.5) == "12.50%"


def test_projection_charts():
    outcome = _outcome(capitalize_interest=True)
    figs = charts.projection_charts(outcome.projection)
    assert list(figs) == ["HELOC vs Investment", "Interest and Tax Refunds"]
    assert len(figs["HELOC vs Investment"].data) == 3
    # capitalized: no out-of-pocket bars
    assert len(figs["Interest and Tax Refunds"].data) == 2


def test_interest_chart_shows_out_of_pocket_when_paid_in_cash():
    outcome = _outcome(capitalize_interest=False)
    fig = charts.projection_charts(outcome.projection)["Interest and Tax Refunds"]
    assert len(fig.data) == 3


def test_balance_chart_handles_short_sequences():
    fig = charts.balance_chart([1, 2, 3], [1, 2], [1, 2, 3], [0])
    for trace in fig.data:
        assert len(trace.y) == 3


def test_tax_breakdown_chart():
    outcome = _outcome()
    fig = charts.tax_breakdown_chart(outcome.tax)
    assert [t.name for t in fig.data] == ["Federal", "Provincial"]


def test_pdf_report_without_charts():
    pdf = report.build_pdf(_outcome())
    assert pdf.startswith(b"%PDF")


def test_json_export():
    data = json.loads(report.export_json(_outcome()))
    assert data["summary"]["total_periodic_contributions"] == 4800.0
