"""Expected-return estimates for the ETFs offered in the calculator.

A small static catalogue provides long-run default returns.  For any symbol,
including ones a user adds, :func:`fetch_etf_return` tries to annualize five
years of monthly closing prices from Yahoo Finance.  Network, parsing and
data-quality problems never escape this module: they are logged and replaced
by the catalogue default, or by a conservative flat 5 % when the symbol is
unknown.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import pandas as pd
import yfinance as yf

from .logging_config import get_logger

logger = get_logger(__name__)

CONSERVATIVE_DEFAULT_RETURN = 0.05
MIN_MONTHS = 12
HISTORY_PERIOD = "5y"
HISTORY_INTERVAL = "1mo"


class InsufficientHistoryError(ValueError):
    """Price history is too short or unusable to annualize."""


@dataclass(frozen=True)
class EtfOption:
    symbol: str
    name: str
    default_return: float
    description: str = ""

    @property
    def label(self) -> str:
        return f"{self.symbol} - {self.name}"


DEFAULT_ETFS: Sequence[EtfOption] = (
    EtfOption("XEQT.TO", "iShares Core Equity ETF Portfolio", 0.08, "100% Equity"),
    EtfOption("VEQT.TO", "Vanguard All-Equity ETF Portfolio", 0.08, "100% Equity"),
    EtfOption("VFV.TO", "Vanguard S&P 500 Index ETF", 0.10, "US Large Cap"),
    EtfOption("VDY.TO", "Vanguard FTSE Canadian High Dividend Yield Index ETF", 0.07, "Canadian Dividend"),
    EtfOption("XIU.TO", "iShares S&P/TSX 60 Index ETF", 0.065, "Canadian Large Cap"),
)


def normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").strip().upper()


def find_etf(symbol: Optional[str], catalogue: Iterable[EtfOption] = DEFAULT_ETFS) -> Optional[EtfOption]:
    key = normalize_symbol(symbol)
    for etf in catalogue:
        if etf.symbol == key:
            return etf
    return None


def fallback_return(symbol: Optional[str], catalogue: Iterable[EtfOption] = DEFAULT_ETFS) -> float:
    """Catalogue default for ``symbol``, else :data:`CONSERVATIVE_DEFAULT_RETURN`."""
    etf = find_etf(symbol, catalogue)
    return etf.default_return if etf else CONSERVATIVE_DEFAULT_RETURN


def custom_etf(symbol: str, expected_return: float) -> EtfOption:
    key = normalize_symbol(symbol)
    return EtfOption(key, f"Custom ETF ({key})", float(expected_return), "User Added")


def annualized_return(closes: Iterable[Optional[float]]) -> float:
    """Annualize a series of monthly closing prices.

    Missing values are dropped.  At least :data:`MIN_MONTHS` points are
    required; the number of remaining points divided by 12 is taken as the
    holding period in years.

    >>> round(annualized_return([100.0] * 11 + [110.0]), 4)
    0.1
    """
    series = pd.Series(list(closes), dtype="float64").dropna()
    if len(series) < MIN_MONTHS:
        raise InsufficientHistoryError(
            f"Need at least {MIN_MONTHS} monthly prices, got {len(series)}"
        )
    start = float(series.iloc[0])
    end = float(series.iloc[-1])
    if start <= 0:
        raise InsufficientHistoryError(f"Starting price must be positive, got {start}")
    if end <= 0:
        raise InsufficientHistoryError(f"Ending price must be positive, got {end}")

    years = len(series) / 12.0
    total_return = (end - start) / start
    return (1.0 + total_return) ** (1.0 / years) - 1.0


def _download_closes(symbol: str, timeout: float) -> pd.Series:
    hist = yf.Ticker(symbol).history(
        period=HISTORY_PERIOD,
        interval=HISTORY_INTERVAL,
        auto_adjust=True,
        timeout=timeout,
    )
    if hist is None or hist.empty or "Close" not in hist.columns:
        raise InsufficientHistoryError(f"No price history returned for {symbol}")
    return hist["Close"]


def fetch_etf_return(
    symbol: str,
    timeout: float = 10.0,
    catalogue: Iterable[EtfOption] = DEFAULT_ETFS,
) -> float:
    """Live annualized return for ``symbol``; never raises.

    Any failure while downloading or annualizing falls back to
    :func:`fallback_return`.
    """
    key = normalize_symbol(symbol)
    catalogue = tuple(catalogue)
    if not key:
        return CONSERVATIVE_DEFAULT_RETURN

    try:
        closes = _download_closes(key, timeout)
        value = annualized_return(closes)
        if not math.isfinite(value):
            raise InsufficientHistoryError(f"Non-finite return computed for {key}")
    except Exception as exc:
        fallback = fallback_return(key, catalogue)
        logger.warning("etf_return_fallback", symbol=key, error=str(exc), fallback=fallback)
        return fallback

    logger.info("etf_return_fetched", symbol=key, annualized_return=round(value, 6))
    return value


def resolve_expected_return(
    symbol: Optional[str],
    live: bool = False,
    timeout: float = 10.0,
    catalogue: Iterable[EtfOption] = DEFAULT_ETFS,
) -> float:
    """Return estimate fed to the projection engine as a plain fraction."""
    if live:
        return fetch_etf_return(symbol or "", timeout=timeout, catalogue=catalogue)
    return fallback_return(symbol, catalogue)


__all__ = [
    "CONSERVATIVE_DEFAULT_RETURN",
    "DEFAULT_ETFS",
    "EtfOption",
    "InsufficientHistoryError",
    "annualized_return",
    "custom_etf",
    "fallback_return",
    "fetch_etf_return",
    "find_etf",
    "normalize_symbol",
    "resolve_expected_return",
]
