"""Tests for the projection engine."""

import json
import math

import pytest

from smith_manoeuvre.calculators import projection
from smith_manoeuvre.calculators.projection import ContributionFrequency, StrategyConfig


def _config(**overrides) -> StrategyConfig:
    base = dict(
        initial_loan_principal=100000.0,
        loan_annual_rate=0.065,
        marginal_tax_rate=0.3716,
        expected_annual_return=0.08,
        horizon_years=1,
        capitalize_interest=True,
        periodic_contribution_amount=0.0,
    )
    base.update(overrides)
    return StrategyConfig(**base)


def test_single_year_capitalized_example():
    res = projection.project(_config())
    row = res.yearly_data[0]
    assert row.year == 1
    assert row.interest_accrued == pytest.approx(6500.0)
    assert row.tax_refund == pytest.approx(2415.4)
    assert row.loan_balance == pytest.approx(104084.6)
    assert row.investment_value == pytest.approx(108000.0)
    assert row.net_worth == pytest.approx(3915.4)
    assert row.out_of_pocket_interest == 0.0

    s = res.summary
    assert s.final_net_worth == pytest.approx(3915.4)
    assert s.total_net_gain == pytest.approx(3915.4 + 2415.4 - 6500.0)
    assert s.total_out_of_pocket == 0.0
    # nothing paid out of pocket: ROC measured against the initial draw
    assert s.return_on_capital == pytest.approx(3.9154)


@pytest.mark.parametrize("years", [1, 2, 3])
def test_closed_form_when_return_equals_loan_rate(years):
    """Paying interest in cash keeps the loan flat; the portfolio compounds."""
    cfg = _config(
        loan_annual_rate=0.05, expected_annual_return=0.05, marginal_tax_rate=0.30,
        horizon_years=years, capitalize_interest=False,
    )
    res = projection.project(cfg)
    for row in res.yearly_data:
        assert row.loan_balance == pytest.approx(100000.0)
        assert row.net_worth == pytest.approx(100000.0 * ((1.05) ** row.year - 1))
        assert row.out_of_pocket_interest == pytest.approx(5000.0 * 0.70)

    s = res.summary
    assert s.total_out_of_pocket == pytest.approx(3500.0 * years)
    assert s.true_financial_gain == pytest.approx(100000.0 * ((1.05) ** years - 1))
    assert s.return_on_capital == pytest.approx(s.true_financial_gain / s.total_out_of_pocket * 100)


def test_hand_computed_three_year_cash_flow():
    res = projection.project(_config(
        loan_annual_rate=0.05, expected_annual_return=0.05, marginal_tax_rate=0.30,
        horizon_years=3, capitalize_interest=False,
    ))
    assert [round(r.net_worth, 2) for r in res.yearly_data] == [5000.0, 10250.0, 15762.5]
    assert res.summary.return_on_capital == pytest.approx(15762.5 / 10500.0 * 100)


def test_contribution_recorded_after_snapshot():
    """A year's contribution shows up in the next year's interest, not this row."""
    cfg = _config(
        initial_loan_principal=10000.0, loan_annual_rate=0.10, marginal_tax_rate=0.0,
        expected_annual_return=0.10, horizon_years=2,
        periodic_contribution_amount=100.0, contribution_frequency="monthly",
    )
    res = projection.project(cfg)
    first, second = res.yearly_data
    assert first.loan_balance == pytest.approx(11000.0)
    assert first.investment_value == pytest.approx(11000.0)
    assert second.interest_accrued == pytest.approx(1220.0)
    assert second.loan_balance == pytest.approx(13420.0)

    s = res.summary
    assert s.final_loan_balance == pytest.approx(14620.0)
    assert s.final_investment_value == pytest.approx(14620.0)
    assert s.total_periodic_contributions == pytest.approx(2400.0)
    assert s.total_out_of_pocket == pytest.approx(2400.0)
    assert s.true_financial_gain == pytest.approx(-2400.0)
    assert s.return_on_capital == pytest.approx(-100.0)
    assert s.total_net_gain == pytest.approx(-2220.0)


def test_monthly_and_annual_frequency_agree_on_yearly_totals():
    monthly = projection.project(_config(horizon_years=5, periodic_contribution_amount=500.0,
                                         contribution_frequency=ContributionFrequency.MONTHLY))
    annual = projection.project(_config(horizon_years=5, periodic_contribution_amount=6000.0,
                                        contribution_frequency=ContributionFrequency.ANNUAL))
    assert monthly == annual


def test_refund_kept_as_cash_when_not_applied_to_loan():
    res = projection.project(_config(apply_refund_to_loan=False))
    row = res.yearly_data[0]
    assert row.loan_balance == pytest.approx(106500.0)
    assert row.net_worth == pytest.approx(1500.0)
    assert res.summary.total_tax_refunds == pytest.approx(2415.4)


def test_cash_paid_interest_leaves_loan_unchanged():
    res = projection.project(_config(horizon_years=10, capitalize_interest=False))
    assert all(r.loan_balance == pytest.approx(100000.0) for r in res.yearly_data)
    assert res.summary.total_out_of_pocket == pytest.approx(
        sum(r.out_of_pocket_interest for r in res.yearly_data)
    )


def test_year_ordering_and_length():
    res = projection.project(_config(horizon_years=25))
    assert len(res.yearly_data) == 25
    assert [r.year for r in res.yearly_data] == list(range(1, 26))


def test_projection_is_deterministic():
    cfg = _config(horizon_years=15, periodic_contribution_amount=250.0, contribution_frequency="Monthly")
    first = projection.project(cfg)
    second = projection.project(cfg)
    assert first == second
    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())


@pytest.mark.parametrize("overrides", [
    dict(capitalize_interest=False, expected_annual_return=0.09, loan_annual_rate=0.05, horizon_years=10),
    dict(capitalize_interest=False, expected_annual_return=0.0, loan_annual_rate=0.08, horizon_years=10),
    dict(expected_annual_return=0.01, loan_annual_rate=0.08, horizon_years=10, periodic_contribution_amount=1000.0),
    dict(expected_annual_return=0.12, loan_annual_rate=0.04, horizon_years=20, periodic_contribution_amount=200.0,
         contribution_frequency="Monthly"),
])
def test_return_on_capital_sign_matches_gain(overrides):
    s = projection.project(_config(**overrides)).summary
    assert s.total_out_of_pocket > 0
    assert math.copysign(1, s.return_on_capital) == math.copysign(1, s.true_financial_gain)


def test_zero_principal_and_contribution_has_zero_roc():
    s = projection.project(_config(initial_loan_principal=0.0, horizon_years=3)).summary
    assert s.final_net_worth == 0.0
    assert s.return_on_capital == 0.0


def test_project_accepts_mapping():
    res = projection.project({
        "initial_loan_principal": 100000,
        "loan_annual_rate": 0.065,
        "marginal_tax_rate": 0.3716,
        "expected_annual_return": 0.08,
        "horizon_years": 1,
    })
    assert res.yearly_data[0].net_worth == pytest.approx(3915.4)


def test_to_dict_shape():
    data = projection.project(_config(horizon_years=2)).to_dict()
    assert set(data) == {"yearly_data", "summary"}
    assert set(data["yearly_data"][0]) == {
        "year", "loan_balance", "investment_value", "interest_accrued",
        "tax_refund", "out_of_pocket_interest", "net_worth",
    }
    assert "return_on_capital" in data["summary"]
