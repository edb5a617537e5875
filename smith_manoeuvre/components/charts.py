# components/charts.py
# Plotly chart helpers used across the app.
# All functions return a Plotly Figure that Streamlit can display with st.plotly_chart(...).

from typing import Sequence

import plotly.graph_objects as go
import plotly.io as pio

from ..calculators.projection import ProjectionResult
from ..calculators.taxes import FEDERAL, PROVINCIAL, TaxResult

pio.templates.default = "plotly_white"

_LAYOUT = dict(
    template="plotly_white",
    height=380,
    margin=dict(l=10, r=10, t=40, b=10),
    legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
)


def _fit(series, n):
    arr = list(series)
    if len(arr) < n: arr += [0.0] * (n - len(arr))
    return arr[:n]


# ---------- Loan vs investment ----------
def balance_chart(years: Sequence[int],
                  loan: Sequence[float],
                  investment: Sequence[float],
                  net_worth: Sequence[float],
                  title: str = "HELOC vs Investment") -> go.Figure:
    """Investment value and HELOC balance as lines, net worth as a filled area."""
    n = len(years)
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=years, y=_fit(net_worth, n), mode="lines", name="Net worth",
        fill="tozeroy", line=dict(width=1),
        hovertemplate="Year %{x}<br>$%{y:,.0f}<extra></extra>"
    ))
    fig.add_trace(go.Scatter(
        x=years, y=_fit(investment, n), mode="lines+markers", name="Investment value",
        hovertemplate="Year %{x}<br>$%{y:,.0f}<extra></extra>"
    ))
    fig.add_trace(go.Scatter(
        x=years, y=_fit(loan, n), mode="lines+markers", name="HELOC balance",
        hovertemplate="Year %{x}<br>$%{y:,.0f}<extra></extra>"
    ))
    fig.update_layout(title=title, xaxis_title="Year", yaxis_title="Dollars (nominal)", **_LAYOUT)
    return fig


# ---------- Interest vs refund (grouped bars) ----------
def interest_chart(years: Sequence[int],
                   interest: Sequence[float],
                   refund: Sequence[float],
                   out_of_pocket: Sequence[float] = (),
                   title: str = "Interest and Tax Refunds") -> go.Figure:
    """
    Grouped bars of interest accrued and tax refunds per year.
    Out-of-pocket bars are only drawn when any value is non-zero.
    """
    n = len(years)
    fig = go.Figure()
    fig.add_bar(x=years, y=_fit(interest, n), name="Interest")
    fig.add_bar(x=years, y=_fit(refund, n), name="Tax refund")
    oop = _fit(out_of_pocket, n)
    if any(v != 0 for v in oop):
        fig.add_bar(x=years, y=oop, name="Out of pocket")

    fig.update_layout(barmode="group", title=title, xaxis_title="Year", yaxis_title="Dollars", **_LAYOUT)
    return fig


# ---------- Tax by bracket ----------
def tax_breakdown_chart(tax: TaxResult, title: str = "Tax by Bracket") -> go.Figure:
    fig = go.Figure()
    for level in (FEDERAL, PROVINCIAL):
        rows = [r for r in tax.breakdown if r.level == level]
        fig.add_bar(
            x=[f"{r.rate * 100:.2f}%" for r in rows],
            y=[r.tax for r in rows],
            name=level,
            hovertemplate="%{x}<br>$%{y:,.0f}<extra></extra>",
        )
    fig.update_layout(barmode="group", title=title, xaxis_title="Bracket rate", yaxis_title="Tax", **_LAYOUT)
    return fig


def projection_charts(result: ProjectionResult) -> dict:
    """Build the standard figures for a projection, keyed by title."""
    rows = result.yearly_data
    years = [r.year for r in rows]
    return {
        "HELOC vs Investment": balance_chart(
            years,
            [r.loan_balance for r in rows],
            [r.investment_value for r in rows],
            [r.net_worth for r in rows],
        ),
        "Interest and Tax Refunds": interest_chart(
            years,
            [r.interest_accrued for r in rows],
            [r.tax_refund for r in rows],
            [r.out_of_pocket_interest for r in rows],
        ),
    }
