"""Validation and parsing of strategy configurations."""

import pytest

from smith_manoeuvre.calculators.projection import (
    ContributionFrequency,
    InvalidStrategyConfig,
    StrategyConfig,
)


def _fields(**overrides):
    base = {
        "initial_loan_principal": 100000.0,
        "loan_annual_rate": 0.065,
        "marginal_tax_rate": 0.3716,
        "expected_annual_return": 0.08,
        "horizon_years": 15,
    }
    base.update(overrides)
    return base


def test_defaults_from_dict():
    cfg = StrategyConfig.from_dict(_fields())
    assert cfg.capitalize_interest is True
    assert cfg.apply_refund_to_loan is True
    assert cfg.periodic_contribution_amount == 0.0
    assert cfg.contribution_frequency is ContributionFrequency.ANNUAL
    assert cfg.annual_contribution == 0.0


def test_missing_contribution_treated_as_zero():
    cfg = StrategyConfig.from_dict(_fields(periodic_contribution_amount=None))
    assert cfg.periodic_contribution_amount == 0.0


def test_monthly_contribution_annualized():
    cfg = StrategyConfig.from_dict(_fields(periodic_contribution_amount=250, contribution_frequency="Monthly"))
    assert cfg.annual_contribution == pytest.approx(3000.0)


@pytest.mark.parametrize("raw,expected", [
    ("Monthly", ContributionFrequency.MONTHLY),
    ("MONTHLY", ContributionFrequency.MONTHLY),
    ("Annual", ContributionFrequency.ANNUAL),
    ("annually", ContributionFrequency.ANNUAL),
    (ContributionFrequency.MONTHLY, ContributionFrequency.MONTHLY),
])
def test_frequency_parsing(raw, expected):
    assert ContributionFrequency.parse(raw) is expected


def test_frequency_string_coerced_on_construction():
    cfg = StrategyConfig(**_fields(contribution_frequency="monthly"))
    assert cfg.contribution_frequency is ContributionFrequency.MONTHLY
    assert cfg.to_dict()["contribution_frequency"] == "Monthly"


@pytest.mark.parametrize("overrides", [
    {"horizon_years": 0},
    {"horizon_years": -3},
    {"horizon_years": 2.5},
    {"initial_loan_principal": -1},
    {"loan_annual_rate": -0.01},
    {"marginal_tax_rate": -0.2},
    {"expected_annual_return": float("nan")},
    {"periodic_contribution_amount": -100},
    {"contribution_frequency": "weekly"},
    {"loan_annual_rate": "six percent"},
    {"capitalize_interest": "maybe"},
    {"capitalize_interest": "0"},
    {"apply_refund_to_loan": 1},
    {"apply_refund_to_loan": None},
])
def test_invalid_configs_rejected(overrides):
    with pytest.raises(InvalidStrategyConfig):
        StrategyConfig.from_dict(_fields(**overrides))


@pytest.mark.parametrize("raw,expected", [
    ("false", False),
    ("FALSE", False),
    (" True ", True),
    (False, False),
])
def test_policy_flags_parse_strictly(raw, expected):
    cfg = StrategyConfig.from_dict(_fields(capitalize_interest=raw, apply_refund_to_loan=raw))
    assert cfg.capitalize_interest is expected
    assert cfg.apply_refund_to_loan is expected


def test_missing_required_field():
    data = _fields()
    del data["loan_annual_rate"]
    with pytest.raises(InvalidStrategyConfig, match="loan_annual_rate"):
        StrategyConfig.from_dict(data)


def test_direct_construction_validates():
    with pytest.raises(InvalidStrategyConfig):
        StrategyConfig(**_fields(horizon_years=True))
    with pytest.raises(InvalidStrategyConfig):
        StrategyConfig(**_fields(horizon_years=10.0))
    with pytest.raises(InvalidStrategyConfig):
        StrategyConfig(**_fields(capitalize_interest="false"))


def test_invalid_config_is_a_value_error():
    assert issubclass(InvalidStrategyConfig, ValueError)
