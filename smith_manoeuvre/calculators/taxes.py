"""Progressive Canadian income tax calculations.

The calculator combines the federal bracket set with the bracket set of one of
the ten provinces.  Each level is taxed independently and the two results are
added together; the marginal rate reported is the federal rate plus the
provincial rate of the highest bracket each level actually reached, i.e. the
combined rate that applies to the next dollar earned.

Bracket tables are static configuration stored in ``data/tax_tables.json``
(estimated 2024 brackets).  They are parsed once into an immutable
:class:`TaxTables` instance which can also be built from a custom mapping and
passed to :func:`compute_tax` explicitly.

Income that is zero, negative or not a number, and provinces outside the
supported set, yield a zero result rather than an exception.

Example
-------

>>> result = compute_tax(120000, "ON")
>>> round(result.marginal_rate, 4)
0.3716
>>> round(result.total_tax, 2)
31196.54
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..logging_config import get_logger

logger = get_logger(__name__)

_DEFAULT_TAX_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "tax_tables.json"

FEDERAL = "Federal"
PROVINCIAL = "Provincial"


@dataclass(frozen=True)
class Bracket:
    upper_bound: float
    rate: float


@dataclass(frozen=True)
class BracketContribution:
    """Portion of income taxed inside a single bracket."""

    level: str
    bracket_ceiling: float
    taxable_amount: float
    rate: float
    tax: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # JSON has no infinity; the open-ended top bracket is reported as None
        if math.isinf(self.bracket_ceiling):
            data["bracket_ceiling"] = None
        return data


@dataclass(frozen=True)
class TaxResult:
    total_tax: float
    marginal_rate: float
    breakdown: Tuple[BracketContribution, ...] = ()
    income: float = 0.0
    federal_tax: float = 0.0
    provincial_tax: float = 0.0
    federal_marginal_rate: float = 0.0
    provincial_marginal_rate: float = 0.0

    @classmethod
    def zero(cls) -> "TaxResult":
        return cls(total_tax=0.0, marginal_rate=0.0)

    @property
    def average_rate(self) -> float:
        """Total tax as a fraction of income (0 when there is no income)."""
        if self.income <= 0:
            return 0.0
        return self.total_tax / self.income

    def to_dict(self) -> Dict[str, Any]:
        return {
            "income": self.income,
            "total_tax": self.total_tax,
            "marginal_rate": self.marginal_rate,
            "average_rate": self.average_rate,
            "federal_tax": self.federal_tax,
            "provincial_tax": self.provincial_tax,
            "federal_marginal_rate": self.federal_marginal_rate,
            "provincial_marginal_rate": self.provincial_marginal_rate,
            "breakdown": [row.to_dict() for row in self.breakdown],
        }


@dataclass(frozen=True)
class TaxTables:
    """Immutable federal and provincial bracket sets."""

    federal: Tuple[Bracket, ...]
    provincial: Mapping[str, Tuple[Bracket, ...]]
    names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    year: Optional[int] = None

    def brackets_for(self, jurisdiction: Any) -> Optional[Tuple[Bracket, ...]]:
        return self.provincial.get(normalize_jurisdiction(jurisdiction))

    @property
    def jurisdictions(self) -> Tuple[str, ...]:
        return tuple(self.provincial)


def normalize_jurisdiction(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def _parse_brackets(raw: Any, label: str) -> Tuple[Bracket, ...]:
    """Validate and convert a list of ``{"up_to", "rate"}`` entries.

    Ceilings must be strictly ascending, the last one open ended (``null``)
    and every rate within [0, 1].  Anything else raises ``ValueError``.
    """
    if not raw:
        raise ValueError(f"{label}: bracket list is empty")

    brackets: List[Bracket] = []
    previous = 0.0
    for i, entry in enumerate(raw):
        up_to = entry.get("up_to")
        ceiling = float("inf") if up_to is None else float(up_to)
        rate = float(entry["rate"])
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"{label}: rate {rate} of bracket {i} is outside [0, 1]")
        if ceiling <= previous:
            raise ValueError(f"{label}: bracket ceilings must be strictly ascending")
        if math.isinf(ceiling) and i != len(raw) - 1:
            raise ValueError(f"{label}: only the last bracket may be open ended")
        brackets.append(Bracket(upper_bound=ceiling, rate=rate))
        previous = ceiling

    if not math.isinf(brackets[-1].upper_bound):
        raise ValueError(f"{label}: last bracket must be open ended")
    return tuple(brackets)


def tables_from_dict(data: Mapping[str, Any]) -> TaxTables:
    """Build :class:`TaxTables` from the schema used by ``tax_tables.json``."""
    federal = _parse_brackets(data["federal"]["brackets"], FEDERAL)
    provincial: Dict[str, Tuple[Bracket, ...]] = {}
    names: Dict[str, str] = {}
    for code, info in data.get("provincial", {}).items():
        key = normalize_jurisdiction(code)
        provincial[key] = _parse_brackets(info["brackets"], key)
        names[key] = info.get("name", key)
    return TaxTables(
        federal=federal,
        provincial=MappingProxyType(provincial),
        names=MappingProxyType(names),
        year=data.get("year"),
    )


def _load_tax_tables(path: Optional[Path] = None) -> TaxTables:
    """Load tax tables from JSON.

    Parameters
    ----------
    path : Path, optional
        Path to a JSON file containing the tables.  Defaults to the file
        shipped with the package.
    """
    p = path or _DEFAULT_TAX_TABLE_PATH
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return tables_from_dict(raw)


@lru_cache(maxsize=1)
def default_tax_tables() -> TaxTables:
    return _load_tax_tables()


def province_options(tax_tables: Optional[TaxTables] = None) -> Dict[str, str]:
    """Mapping of province code to display name, in table order."""
    tables = tax_tables or default_tax_tables()
    return {code: tables.names.get(code, code) for code in tables.jurisdictions}


def is_supported_jurisdiction(code: Any, tax_tables: Optional[TaxTables] = None) -> bool:
    tables = tax_tables or default_tax_tables()
    return tables.brackets_for(code) is not None


def _apply_brackets(
    income: float, brackets: Tuple[Bracket, ...], level: str
) -> Tuple[float, float, List[BracketContribution]]:
    tax = 0.0
    marginal = 0.0
    rows: List[BracketContribution] = []
    previous_ceiling = 0.0
    for bracket in brackets:
        taxable = max(0.0, min(income, bracket.upper_bound) - previous_ceiling)
        if taxable > 0:
            amount = taxable * bracket.rate
            tax += amount
            marginal = bracket.rate
            rows.append(BracketContribution(
                level=level,
                bracket_ceiling=bracket.upper_bound,
                taxable_amount=taxable,
                rate=bracket.rate,
                tax=amount,
            ))
        previous_ceiling = bracket.upper_bound
    return tax, marginal, rows


def compute_tax(
    income: Any,
    jurisdiction: Any,
    tax_tables: Optional[TaxTables] = None,
) -> TaxResult:
    """Compute combined federal and provincial tax on ``income``.

    Parameters
    ----------
    income : float
        Annual taxable income.  Values that are not numbers, not finite or
        not positive return :meth:`TaxResult.zero`.
    jurisdiction : str
        Two-letter province code (case-insensitive).  Unknown codes return
        :meth:`TaxResult.zero` and are logged.
    tax_tables : TaxTables, optional
        Bracket configuration; the packaged 2024 tables are used otherwise.

    Returns
    -------
    TaxResult
        Total tax, combined marginal rate and a per-bracket breakdown listing
        federal brackets first.
    """
    tables = tax_tables or default_tax_tables()

    if isinstance(income, bool):
        return TaxResult.zero()
    try:
        amount = float(income)
    except (TypeError, ValueError):
        return TaxResult.zero()
    if not math.isfinite(amount) or amount <= 0:
        return TaxResult.zero()

    provincial = tables.brackets_for(jurisdiction)
    if provincial is None:
        logger.warning("unknown_jurisdiction", jurisdiction=jurisdiction)
        return TaxResult.zero()

    fed_tax, fed_marginal, fed_rows = _apply_brackets(amount, tables.federal, FEDERAL)
    prov_tax, prov_marginal, prov_rows = _apply_brackets(amount, provincial, PROVINCIAL)

    return TaxResult(
        total_tax=fed_tax + prov_tax,
        marginal_rate=fed_marginal + prov_marginal,
        breakdown=tuple(fed_rows + prov_rows),
        income=amount,
        federal_tax=fed_tax,
        provincial_tax=prov_tax,
        federal_marginal_rate=fed_marginal,
        provincial_marginal_rate=prov_marginal,
    )


__all__ = [
    "Bracket",
    "BracketContribution",
    "TaxResult",
    "TaxTables",
    "FEDERAL",
    "PROVINCIAL",
    "compute_tax",
    "default_tax_tables",
    "tables_from_dict",
    "province_options",
    "is_supported_jurisdiction",
    "normalize_jurisdiction",
]
