# orchestrator.py
"""Wire raw form inputs through the tax calculator and the projection engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .calculators import projection, taxes
from .logging_config import get_logger
from .market_data import DEFAULT_ETFS, EtfOption, fallback_return

logger = get_logger(__name__)

# Form defaults, also used when a key is missing from the inputs
DEFAULT_INPUTS: Dict[str, Any] = {
    "name": "Investor",
    "province": "ON",
    "income": 120000.0,
    "heloc_amount": 100000.0,
    "heloc_rate": 0.065,
    "etf_symbol": "XEQT.TO",
    "years": 15,
    "capitalize_interest": True,
    "apply_refund_to_loan": True,
    "periodic_contribution": 0.0,
    "contribution_frequency": "Monthly",
}


@dataclass(frozen=True)
class StrategyOutcome:
    inputs: Mapping[str, Any]
    tax: taxes.TaxResult
    expected_return: float
    config: projection.StrategyConfig
    projection: projection.ProjectionResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputs": dict(self.inputs),
            "tax": self.tax.to_dict(),
            "expected_return": self.expected_return,
            "config": self.config.to_dict(),
            **self.projection.to_dict(),
        }


def build_config(inputs: Mapping[str, Any], marginal_rate: float, expected_return: float) -> projection.StrategyConfig:
    return projection.StrategyConfig.from_dict({
        "initial_loan_principal": inputs["heloc_amount"],
        "loan_annual_rate": inputs["heloc_rate"],
        "marginal_tax_rate": marginal_rate,
        "expected_annual_return": expected_return,
        "horizon_years": inputs["years"],
        "capitalize_interest": inputs["capitalize_interest"],
        "periodic_contribution_amount": inputs["periodic_contribution"],
        "contribution_frequency": inputs["contribution_frequency"],
        "apply_refund_to_loan": inputs["apply_refund_to_loan"],
    })


def run_strategy(
    inputs: Mapping[str, Any],
    catalogue: Iterable[EtfOption] = DEFAULT_ETFS,
    tax_tables: Optional[taxes.TaxTables] = None,
    expected_return: Optional[float] = None,
) -> StrategyOutcome:
    """Income + province -> marginal rate -> projection.

    ``expected_return`` overrides the catalogue return of the selected ETF,
    e.g. with a value fetched live.

    Raises ``InvalidStrategyConfig`` when the strategy inputs are invalid.
    """
    merged = {**DEFAULT_INPUTS, **dict(inputs)}

    tax = taxes.compute_tax(merged["income"], merged["province"], tax_tables)
    if expected_return is None:
        expected_return = fallback_return(merged["etf_symbol"], catalogue)

    config = build_config(merged, tax.marginal_rate, expected_return)
    result = projection.project(config)
    logger.info(
        "strategy_projected",
        province=merged["province"],
        marginal_rate=round(tax.marginal_rate, 4),
        etf_symbol=merged["etf_symbol"],
        expected_return=expected_return,
        horizon_years=config.horizon_years,
    )
    return StrategyOutcome(
        inputs=merged,
        tax=tax,
        expected_return=expected_return,
        config=config,
        projection=result,
    )
