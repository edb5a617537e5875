"""Year-by-year projection of a Smith Manoeuvre strategy.

The whole initial HELOC draw is assumed to be invested on day one, so the
loan and the portfolio start at the same value and net worth starts at zero.
Each simulated year then:

1. accrues interest on the loan balance carried in from the previous year;
2. realizes a tax refund of ``interest * marginal_tax_rate``;
3. either capitalizes the interest (borrowing it, and by default using the
   refund to pay the loan down) or records the after-refund interest as cash
   paid out of pocket;
4. grows the portfolio by the expected annual return;
5. records a :class:`YearRecord` snapshot;
6. draws the year's periodic contribution from the HELOC and invests it, so
   it only starts to accrue interest and growth the following year.

Example
-------

>>> cfg = StrategyConfig(
...     initial_loan_principal=100000, loan_annual_rate=0.065,
...     marginal_tax_rate=0.3716, expected_annual_return=0.08, horizon_years=1,
... )
>>> row = project(cfg).yearly_data[0]
>>> round(row.loan_balance, 2), round(row.net_worth, 2)
(104084.6, 3915.4)
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from enum import Enum
from numbers import Real
from typing import Any, Dict, List, Mapping, Tuple, Union

from ..logging_config import get_logger

logger = get_logger(__name__)


class InvalidStrategyConfig(ValueError):
    """Raised when a strategy configuration cannot be simulated."""


class ContributionFrequency(str, Enum):
    MONTHLY = "Monthly"
    ANNUAL = "Annual"

    @classmethod
    def parse(cls, value: Any) -> "ContributionFrequency":
        """Accept enum members or case-insensitive names ("annually" included)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "monthly":
            return cls.MONTHLY
        if key in ("annual", "annually", "yearly"):
            return cls.ANNUAL
        raise InvalidStrategyConfig(f"Unknown contribution frequency: {value!r}")

    @property
    def periods_per_year(self) -> int:
        return 12 if self is ContributionFrequency.MONTHLY else 1


_NON_NEGATIVE_FIELDS = (
    "initial_loan_principal",
    "loan_annual_rate",
    "marginal_tax_rate",
    "expected_annual_return",
    "periodic_contribution_amount",
)

_FLAG_STRINGS = {"true": True, "false": False}


def _parse_flag(data: Mapping[str, Any], name: str, default: bool = True) -> bool:
    """Read a policy flag: a real bool, or "true"/"false" in any case."""
    value = data.get(name, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _FLAG_STRINGS:
        return _FLAG_STRINGS[value.strip().lower()]
    raise InvalidStrategyConfig(f"{name} must be true or false, got {value!r}")


@dataclass(frozen=True)
class StrategyConfig:
    """Inputs of a projection.

    Rates are fractions (``0.065`` for 6.5 %).  ``apply_refund_to_loan`` only
    matters when interest is capitalized: when ``True`` the yearly refund pays
    the HELOC down, when ``False`` the refund is kept as outside cash and the
    loan carries the full capitalized interest.
    """

    initial_loan_principal: float
    loan_annual_rate: float
    marginal_tax_rate: float
    expected_annual_return: float
    horizon_years: int
    capitalize_interest: bool = True
    periodic_contribution_amount: float = 0.0
    contribution_frequency: ContributionFrequency = ContributionFrequency.ANNUAL
    apply_refund_to_loan: bool = True

    def __post_init__(self) -> None:
        for name in _NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Real):
                raise InvalidStrategyConfig(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise InvalidStrategyConfig(f"{name} must be a finite, non-negative number, got {value!r}")

        years = self.horizon_years
        if isinstance(years, bool) or not isinstance(years, int):
            raise InvalidStrategyConfig(f"horizon_years must be an integer, got {years!r}")
        if years < 1:
            raise InvalidStrategyConfig(f"horizon_years must be at least 1, got {years}")

        for name in ("capitalize_interest", "apply_refund_to_loan"):
            if not isinstance(getattr(self, name), bool):
                raise InvalidStrategyConfig(f"{name} must be a bool, got {getattr(self, name)!r}")

        object.__setattr__(
            self, "contribution_frequency", ContributionFrequency.parse(self.contribution_frequency)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StrategyConfig":
        """Build a config from a plain mapping, filling documented defaults."""
        try:
            years = float(data["horizon_years"])
            if not years.is_integer():
                raise InvalidStrategyConfig(f"horizon_years must be a whole number, got {years}")
            return cls(
                initial_loan_principal=float(data["initial_loan_principal"]),
                loan_annual_rate=float(data["loan_annual_rate"]),
                marginal_tax_rate=float(data["marginal_tax_rate"]),
                expected_annual_return=float(data["expected_annual_return"]),
                horizon_years=int(years),
                capitalize_interest=_parse_flag(data, "capitalize_interest"),
                periodic_contribution_amount=float(data.get("periodic_contribution_amount") or 0.0),
                contribution_frequency=ContributionFrequency.parse(
                    data.get("contribution_frequency") or ContributionFrequency.ANNUAL
                ),
                apply_refund_to_loan=_parse_flag(data, "apply_refund_to_loan"),
            )
        except InvalidStrategyConfig:
            raise
        except KeyError as exc:
            raise InvalidStrategyConfig(f"Missing required field: {exc.args[0]}") from exc
        except (TypeError, ValueError) as exc:
            raise InvalidStrategyConfig(str(exc)) from exc

    @property
    def annual_contribution(self) -> float:
        return self.periodic_contribution_amount * self.contribution_frequency.periods_per_year

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["contribution_frequency"] = self.contribution_frequency.value
        return data


@dataclass(frozen=True)
class YearRecord:
    year: int
    loan_balance: float
    investment_value: float
    interest_accrued: float
    tax_refund: float
    out_of_pocket_interest: float
    net_worth: float


@dataclass(frozen=True)
class ProjectionSummary:
    final_investment_value: float
    final_loan_balance: float
    final_net_worth: float
    total_interest_paid: float
    total_tax_refunds: float
    total_out_of_pocket: float
    total_periodic_contributions: float
    total_net_gain: float
    true_financial_gain: float
    return_on_capital: float


@dataclass(frozen=True)
class ProjectionResult:
    yearly_data: Tuple[YearRecord, ...]
    summary: ProjectionSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "yearly_data": [asdict(row) for row in self.yearly_data],
            "summary": asdict(self.summary),
        }


def _summarize(
    config: StrategyConfig,
    rows: List[YearRecord],
    investment: float,
    loan: float,
    total_interest: float,
    total_refunds: float,
) -> ProjectionSummary:
    final_net_worth = investment - loan
    total_net_gain = final_net_worth + total_refunds - total_interest

    total_contributions = config.annual_contribution * config.horizon_years
    out_of_pocket = 0.0
    if not config.capitalize_interest:
        out_of_pocket = sum(r.out_of_pocket_interest for r in rows)
    out_of_pocket += total_contributions

    true_gain = final_net_worth - total_contributions

    if out_of_pocket > 0:
        roc = true_gain / out_of_pocket * 100.0
    elif config.initial_loan_principal > 0:
        # nothing left the investor's pocket; measure against the initial draw
        roc = final_net_worth / config.initial_loan_principal * 100.0
    else:
        roc = 0.0

    return ProjectionSummary(
        final_investment_value=investment,
        final_loan_balance=loan,
        final_net_worth=final_net_worth,
        total_interest_paid=total_interest,
        total_tax_refunds=total_refunds,
        total_out_of_pocket=out_of_pocket,
        total_periodic_contributions=total_contributions,
        total_net_gain=total_net_gain,
        true_financial_gain=true_gain,
        return_on_capital=roc,
    )


def project(config: Union[StrategyConfig, Mapping[str, Any]]) -> ProjectionResult:
    """Simulate ``config.horizon_years`` years of the strategy.

    Parameters
    ----------
    config : StrategyConfig or mapping
        A validated config, or a mapping accepted by
        :meth:`StrategyConfig.from_dict`.

    Returns
    -------
    ProjectionResult
        One :class:`YearRecord` per year (year 1 first) and the horizon
        :class:`ProjectionSummary`.

    Raises
    ------
    InvalidStrategyConfig
        If a mapping is given and fails validation.
    """
    if not isinstance(config, StrategyConfig):
        config = StrategyConfig.from_dict(config)

    loan = config.initial_loan_principal
    investment = config.initial_loan_principal
    contribution = config.annual_contribution

    total_interest = 0.0
    total_refunds = 0.0
    rows: List[YearRecord] = []

    for year in range(1, config.horizon_years + 1):
        interest = loan * config.loan_annual_rate
        total_interest += interest

        refund = interest * config.marginal_tax_rate
        total_refunds += refund

        if config.capitalize_interest:
            loan += interest
            if config.apply_refund_to_loan:
                loan -= refund
            out_of_pocket = 0.0
        else:
            out_of_pocket = interest - refund

        investment += investment * config.expected_annual_return

        rows.append(YearRecord(
            year=year,
            loan_balance=loan,
            investment_value=investment,
            interest_accrued=interest,
            tax_refund=refund,
            out_of_pocket_interest=out_of_pocket,
            net_worth=investment - loan,
        ))

        # new draw is invested at year end and compounds from next year
        loan += contribution
        investment += contribution

    summary = _summarize(config, rows, investment, loan, total_interest, total_refunds)
    logger.debug(
        "projection_completed",
        horizon_years=config.horizon_years,
        capitalize_interest=config.capitalize_interest,
        final_net_worth=round(summary.final_net_worth, 2),
        return_on_capital=round(summary.return_on_capital, 4),
    )
    return ProjectionResult(yearly_data=tuple(rows), summary=summary)


__all__ = [
    "ContributionFrequency",
    "InvalidStrategyConfig",
    "ProjectionResult",
    "ProjectionSummary",
    "StrategyConfig",
    "YearRecord",
    "project",
]
