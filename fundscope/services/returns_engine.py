"""
Return and volatility calculations over MFAPI NAV series.

Series are handled newest-first, the order MFAPI publishes them in.
Nothing in here raises on sparse or malformed history: callers get
zeros back instead, and decide upstream whether a scheme is usable.
"""

import math
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from fundscope.models.mutual_fund import DerivedMetrics, NavPoint

logger = logging.getLogger(__name__)

MFAPI_DATE_FORMAT = "%d-%m-%Y"
TRADING_DAYS_PER_YEAR = 252
CAGR_HORIZONS = (1, 3, 5)


def parse_nav_date(value: str) -> date:
    """Parse an MFAPI date string (DD-MM-YYYY, day first)."""
    return datetime.strptime(value, MFAPI_DATE_FORMAT).date()


def normalize_nav_series(rows: Optional[Iterable[Dict[str, Any]]]) -> List[NavPoint]:
    """
    Turn raw MFAPI ``data`` rows into a clean, newest-first NAV series.

    Rows with unparsable dates, non-numeric or non-positive NAVs are dropped,
    and only the first row seen for a given date is kept.

    Args:
        rows: Iterable of ``{"date": "DD-MM-YYYY", "nav": "123.45"}`` dicts

    Returns:
        List of NavPoint sorted by date, newest first
    """
    records = [row for row in (rows or []) if isinstance(row, dict)]
    if not records:
        return []

    df = pd.DataFrame(records, columns=["date", "nav"])
    df["date"] = pd.to_datetime(df["date"], format=MFAPI_DATE_FORMAT, errors="coerce")
    df["nav"] = pd.to_numeric(df["nav"], errors="coerce")

    df = df.dropna(subset=["date", "nav"])
    df = df[np.isfinite(df["nav"]) & (df["nav"] > 0)]
    df = df.drop_duplicates(subset="date", keep="first")
    df = df.sort_values("date", ascending=False, kind="mergesort")

    dropped = len(records) - len(df)
    if dropped:
        logger.debug(f"Dropped {dropped} malformed or duplicate NAV rows")

    return [
        NavPoint.model_construct(nav_date=nav_date, nav=float(nav))
        for nav_date, nav in zip(df["date"].dt.date, df["nav"])
    ]


def find_nav_on_or_before(nav_series: Sequence[NavPoint], target_date: date) -> Optional[float]:
    """First NAV (scanning newest-first) dated on or before target_date."""
    for point in nav_series:
        if point.nav_date <= target_date:
            return point.nav
    return None


def horizon_cagr(latest_nav: float, past_nav: Optional[float], years: int) -> float:
    """
    Compound annual growth rate in percent.

    1Y is the plain trailing return; longer horizons are annualized:
    ((latest / past) ** (1 / years) - 1) * 100
    """
    if not past_nav or past_nav <= 0 or latest_nav <= 0:
        return 0.0
    if years == 1:
        return (latest_nav / past_nav - 1) * 100
    return (math.pow(latest_nav / past_nav, 1 / years) - 1) * 100


def daily_returns(nav_series: Sequence[NavPoint], window: int = TRADING_DAYS_PER_YEAR) -> np.ndarray:
    """Simple day-over-day returns over the most recent ``window`` points."""
    recent = nav_series[:min(window, len(nav_series))]
    returns = []
    for i in range(len(recent) - 1):
        current_nav = recent[i].nav
        prev_nav = recent[i + 1].nav
        if prev_nav > 0:
            returns.append((current_nav - prev_nav) / prev_nav)
    return np.array(returns, dtype=float)


def annualized_volatility(nav_series: Sequence[NavPoint]) -> float:
    """
    Annualized volatility in percent.

    Formula: σ = std(returns, ddof=0) × √252 × 100
    """
    returns = daily_returns(nav_series)
    if len(returns) < 2:
        return 0.0
    return float(np.std(returns) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100)


def compute_returns(nav_series: Sequence[NavPoint]) -> DerivedMetrics:
    """
    Trailing 1/3/5-year CAGR and annualized volatility for a newest-first series.

    Fewer than two points yields all-zero metrics. A horizon reaching past
    the start of the series yields 0 for that horizon.
    """
    if len(nav_series) < 2:
        return DerivedMetrics()

    latest = nav_series[0]
    cagr = {}
    for years in CAGR_HORIZONS:
        target_date = latest.nav_date - relativedelta(years=years)
        past_nav = find_nav_on_or_before(nav_series, target_date)
        cagr[years] = horizon_cagr(latest.nav, past_nav, years)

    return DerivedMetrics(
        cagr_1y=cagr[1],
        cagr_3y=cagr[3],
        cagr_5y=cagr[5],
        volatility=annualized_volatility(nav_series),
    )
