"""Tabular views of results for display and CSV export."""

from typing import Dict

import pandas as pd

from ..calculators.projection import ProjectionResult
from ..calculators.taxes import TaxResult

YEARLY_COLUMNS: Dict[str, str] = {
    "year": "Year",
    "loan_balance": "HELOC Balance",
    "investment_value": "Investment Value",
    "interest_accrued": "Interest Paid",
    "tax_refund": "Tax Refund",
    "out_of_pocket_interest": "Out of Pocket",
    "net_worth": "Net Worth",
}


def format_currency(value: float) -> str:
    """Whole-dollar CAD formatting, e.g. ``-$1,235``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def format_percent(value: float) -> str:
    """``value`` is already a percentage (12.5 -> ``12.50%``)."""
    return f"{value:.2f}%"


def yearly_frame(result: ProjectionResult, include_out_of_pocket: bool = True, labels: bool = True) -> pd.DataFrame:
    """One row per projected year.

    The out-of-pocket column is meaningless when interest is capitalized, so
    callers can drop it with ``include_out_of_pocket=False``.
    """
    df = pd.DataFrame(
        [{k: getattr(r, k) for k in YEARLY_COLUMNS} for r in result.yearly_data],
        columns=list(YEARLY_COLUMNS),
    )
    if not include_out_of_pocket:
        df = df.drop(columns=["out_of_pocket_interest"])
    if labels:
        df = df.rename(columns=YEARLY_COLUMNS)
    return df


def breakdown_frame(tax: TaxResult) -> pd.DataFrame:
    rows = [
        {
            "Level": r.level,
            "Bracket": "and above" if r.bracket_ceiling == float("inf") else f"up to {format_currency(r.bracket_ceiling)}",
            "Taxable": r.taxable_amount,
            "Rate": r.rate,
            "Tax": r.tax,
        }
        for r in tax.breakdown
    ]
    return pd.DataFrame(rows, columns=["Level", "Bracket", "Taxable", "Rate", "Tax"])
