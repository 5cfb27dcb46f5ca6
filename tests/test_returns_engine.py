"""
Tests for the return/volatility engine.
Synthetic NAV series where the expected growth and dispersion are known.
"""

import math
import statistics
from datetime import date

import pytest
from dateutil.relativedelta import relativedelta

from fundscope.models.mutual_fund import DerivedMetrics, NavPoint
from fundscope.services.returns_engine import (
    annualized_volatility,
    compute_returns,
    daily_returns,
    find_nav_on_or_before,
    horizon_cagr,
    normalize_nav_series,
    parse_nav_date,
)

from conftest import LATEST_DATE, build_nav_series, build_trading_year_series


class TestParseNavDate:
    """MFAPI dates are day-first."""

    def test_day_month_year(self):
        assert parse_nav_date("01-02-2024") == date(2024, 2, 1)

    def test_rejects_iso_format(self):
        with pytest.raises(ValueError):
            parse_nav_date("2024-02-01")


class TestNormalizeNavSeries:
    """Defensive cleanup of raw MFAPI rows."""

    def test_sorts_newest_first(self):
        rows = [
            {"date": "01-01-2024", "nav": "10.0"},
            {"date": "03-01-2024", "nav": "10.2"},
            {"date": "02-01-2024", "nav": "10.1"},
        ]

        series = normalize_nav_series(rows)

        assert [p.nav_date for p in series] == [date(2024, 1, 3), date(2024, 1, 2), date(2024, 1, 1)]
        assert [p.nav for p in series] == [10.2, 10.1, 10.0]

    def test_drops_malformed_rows(self):
        rows = [
            {"date": "05-01-2024", "nav": "11.5"},
            {"date": "2024-01-04", "nav": "11.4"},   # wrong date format
            {"date": "03-01-2024", "nav": "N.A."},   # non-numeric
            {"date": "02-01-2024", "nav": "0"},      # non-positive
            {"date": "01-01-2024", "nav": "-3.2"},
            {"nav": "11.0"},                         # missing date
            "not-a-row",
        ]

        series = normalize_nav_series(rows)

        assert len(series) == 1
        assert series[0].nav_date == date(2024, 1, 5)
        assert series[0].nav == 11.5

    def test_keeps_first_duplicate_date(self):
        rows = [
            {"date": "02-01-2024", "nav": "20.0"},
            {"date": "02-01-2024", "nav": "99.0"},
            {"date": "01-01-2024", "nav": "19.0"},
        ]

        series = normalize_nav_series(rows)

        assert len(series) == 2
        assert series[0].nav == 20.0

    def test_empty_and_none_input(self):
        assert normalize_nav_series([]) == []
        assert normalize_nav_series(None) == []


class TestHorizonCagr:
    """CAGR formula per horizon."""

    def test_one_year_is_simple_return(self):
        assert horizon_cagr(110.0, 100.0, 1) == pytest.approx(10.0)

    def test_multi_year_is_compounded(self):
        # 100 -> 133.1 over 3 years is 10% a year, not 11.03%
        assert horizon_cagr(133.1, 100.0, 3) == pytest.approx(10.0)

    def test_missing_past_nav(self):
        assert horizon_cagr(110.0, None, 5) == 0.0
        assert horizon_cagr(110.0, 0.0, 5) == 0.0


class TestComputeReturns:
    """Tests for compute_returns."""

    @pytest.mark.parametrize("length", [0, 1])
    def test_short_series_returns_zeros(self, length):
        series = build_nav_series(length, daily_growth=0.01)

        metrics = compute_returns(series)

        assert metrics == DerivedMetrics()
        assert metrics.cagr_1y == 0.0
        assert metrics.volatility == 0.0

    def test_constant_growth_matches_closed_form(self):
        """0.1%/day over 252-point trading years => (1.001^252 - 1) * 100 per year."""
        growth = 0.001
        series = build_trading_year_series(years=5, daily_growth=growth)

        metrics = compute_returns(series)

        expected_annual = ((1 + growth) ** 252 - 1) * 100
        assert metrics.cagr_1y == pytest.approx(expected_annual, rel=1e-9)
        assert metrics.cagr_3y == pytest.approx(expected_annual, rel=1e-9)
        assert metrics.cagr_5y == pytest.approx(expected_annual, rel=1e-9)

    def test_calendar_daily_growth(self):
        """Daily calendar points: annualized growth follows the actual day count."""
        growth = 0.0003
        series = build_nav_series(6 * 366, daily_growth=growth)

        metrics = compute_returns(series)

        for years, value in ((1, metrics.cagr_1y), (3, metrics.cagr_3y), (5, metrics.cagr_5y)):
            days = (LATEST_DATE - (LATEST_DATE - relativedelta(years=years))).days
            total = (1 + growth) ** days
            expected = (total - 1) * 100 if years == 1 else (total ** (1 / years) - 1) * 100
            assert value == pytest.approx(expected, rel=1e-9)

    def test_horizon_beyond_history_is_zero(self):
        series = build_nav_series(500, daily_growth=0.0005)

        metrics = compute_returns(series)

        assert metrics.cagr_1y > 0
        assert metrics.cagr_3y == 0.0
        assert metrics.cagr_5y == 0.0

    def test_gap_in_history_uses_first_point_on_or_before_target(self):
        series = [
            NavPoint(date=date(2024, 6, 28), nav=120.0),
            NavPoint(date=date(2023, 7, 15), nav=110.0),
            NavPoint(date=date(2023, 6, 20), nav=100.0),
            NavPoint(date=date(2023, 1, 2), nav=90.0),
        ]

        metrics = compute_returns(series)

        # Target is 28-06-2023; 15-07-2023 is too recent
        assert metrics.cagr_1y == pytest.approx(20.0)

    def test_find_nav_on_or_before(self):
        series = build_nav_series(10)
        assert find_nav_on_or_before(series, LATEST_DATE) == series[0].nav
        assert find_nav_on_or_before(series, date(2000, 1, 1)) is None


class TestVolatility:
    """Annualized volatility from simple daily returns."""

    def test_constant_nav_has_zero_volatility(self):
        series = build_nav_series(300, daily_growth=0.0)

        assert annualized_volatility(series) == 0.0
        assert compute_returns(series).volatility == 0.0

    def test_population_standard_deviation(self):
        navs = [100.0, 110.0, 100.0, 110.0, 100.0]
        series = [NavPoint(date=date(2024, 1, 10 - i), nav=nav) for i, nav in enumerate(navs)]

        returns = [(navs[i] - navs[i + 1]) / navs[i + 1] for i in range(len(navs) - 1)]
        expected = statistics.pstdev(returns) * math.sqrt(252) * 100

        assert annualized_volatility(series) == pytest.approx(expected, rel=1e-12)
        assert annualized_volatility(series) != pytest.approx(statistics.stdev(returns) * math.sqrt(252) * 100)

    def test_only_most_recent_252_points_count(self):
        recent = build_nav_series(252, daily_growth=0.0)
        older = build_nav_series(100, daily_growth=0.0, wobble=0.05,
                                 end_date=recent[-1].nav_date - relativedelta(days=1))

        assert annualized_volatility(recent + older) == 0.0

    def test_daily_returns_length(self):
        series = build_nav_series(400, daily_growth=0.001)
        assert len(daily_returns(series)) == 251

    def test_two_points_give_zero_volatility(self):
        series = build_nav_series(2, daily_growth=0.01)
        assert annualized_volatility(series) == 0.0
