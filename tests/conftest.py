"""
Shared fixtures: synthetic NAV series, a fake MFAPI provider and fund factories.
No test in this suite touches the network.
"""

import asyncio
import random
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

import pytest
from dateutil.relativedelta import relativedelta

from fundscope.core.config import Settings
from fundscope.core.exceptions import ProviderError
from fundscope.models.mutual_fund import (
    FundCategory,
    FundRecord,
    NavPoint,
    RawSchemeDetail,
    RiskLevel,
    SchemeMeta,
    SchemeSummary,
    StrengthBadge,
)

LATEST_DATE = date(2024, 6, 28)


def build_nav_series(days: int, daily_growth: float = 0.0, start_nav: float = 100.0,
                     end_date: date = LATEST_DATE, wobble: float = 0.0) -> List[NavPoint]:
    """One point per calendar day, newest first, oldest point = start_nav."""
    series = []
    for i in range(days):
        age = days - 1 - i
        nav = start_nav * (1 + daily_growth) ** age
        if wobble:
            nav *= 1 + wobble * (-1) ** i
        series.append(NavPoint(date=end_date - timedelta(days=i), nav=nav))
    return series


def build_trading_year_series(years: int, daily_growth: float, end_date: date = LATEST_DATE) -> List[NavPoint]:
    """
    Exactly 252 points per year, newest first. Point 252 * k falls on the
    k-th anniversary before end_date.
    """
    points_per_year = 252
    total = points_per_year * years + 1
    series = []
    for i in range(total):
        year, k = divmod(i, points_per_year)
        anniversary = end_date - relativedelta(years=year)
        if k == 0:
            point_date = anniversary
        else:
            previous = end_date - relativedelta(years=year + 1)
            span = (anniversary - previous).days
            point_date = anniversary - timedelta(days=(span * k) // points_per_year)
        nav = 100.0 * (1 + daily_growth) ** (total - 1 - i)
        series.append(NavPoint(date=point_date, nav=nav))
    return series


def to_mfapi_rows(series: Iterable[NavPoint]) -> List[Dict[str, str]]:
    return [{"date": p.nav_date.strftime("%d-%m-%Y"), "nav": str(p.nav)} for p in series]


def make_detail(code: int, name: str, category: str = "Equity Scheme - Flexi Cap Fund",
                days: int = 400, daily_growth: float = 0.0005, wobble: float = 0.002,
                fund_house: str = "Sample Mutual Fund") -> RawSchemeDetail:
    return RawSchemeDetail(
        meta=SchemeMeta(
            fund_house=fund_house,
            scheme_type="Open Ended Schemes",
            scheme_category=category,
            scheme_code=code,
            scheme_name=name,
            isin="INF000000001",
        ),
        nav_series=build_nav_series(days, daily_growth=daily_growth, wobble=wobble),
    )


class FakeProvider:
    """In-memory stand-in for MfapiClient."""

    def __init__(self, schemes: List[SchemeSummary], details: Dict[int, RawSchemeDetail],
                 failures: Iterable[int] = (), slow: Iterable[int] = (),
                 listing_error: Optional[Exception] = None):
        self.schemes = schemes
        self.details = details
        self.failures = set(failures)
        self.slow = set(slow)
        self.listing_error = listing_error
        self.fetched: List[int] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_list = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    async def list_schemes(self) -> List[SchemeSummary]:
        if self.on_list is not None:
            self.on_list()
        if self.listing_error is not None:
            raise self.listing_error
        return list(self.schemes)

    async def search(self, query: str) -> List[SchemeSummary]:
        q = query.lower()
        return [s for s in self.schemes if q in s.scheme_name.lower()]

    async def fetch_scheme(self, scheme_code: int) -> RawSchemeDetail:
        self.fetched.append(scheme_code)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if scheme_code in self.slow:
                await asyncio.sleep(5)
            if scheme_code in self.failures:
                raise ProviderError(f"GET /mf/{scheme_code} failed: 500")
            if scheme_code not in self.details:
                raise ProviderError(f"GET /mf/{scheme_code} failed: 404")
            return self.details[scheme_code]
        finally:
            self.in_flight -= 1


def make_fund(fund_id: str = "100", name: str = "Test Fund - Direct Plan - Growth",
              category: FundCategory = FundCategory.EQUITY, **overrides) -> FundRecord:
    fields = dict(
        id=fund_id,
        name=name,
        category=category,
        amc="Test AMC",
        nav=100.0,
        aum=12000.0,
        expense_ratio=1.5,
        cagr_1y=15.0,
        cagr_3y=12.0,
        cagr_5y=11.0,
        volatility=10.0,
        sharpe_ratio=0.9,
        beta=0.95,
        alpha=1.5,
        rank=1,
        risk_level=RiskLevel.MODERATE,
        strength_badge=StrengthBadge.BALANCED,
        min_investment=500,
        exit_load="1% if redeemed within 1 year",
        benchmark="Category Average",
    )
    fields.update(overrides)
    return FundRecord(**fields)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        INGESTION_BATCH_SIZE=3,
        MAX_FUNDS_TO_INGEST=500,
        MIN_NAV_POINTS=30,
        SCHEME_FETCH_TIMEOUT=0.5,
        BETA_JITTER=False,
        OPENAI_API_KEY=None,
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def sample_universe_provider() -> FakeProvider:
    """Ten direct-growth schemes with distinct risk/return profiles."""
    schemes = []
    details = {}
    for i in range(10):
        code = 100000 + i
        name = f"Fund {i} - Direct Plan - Growth"
        schemes.append(SchemeSummary(scheme_code=code, scheme_name=name))
        details[code] = make_detail(code, name, daily_growth=0.0002 * (i + 1), wobble=0.001 + 0.0005 * i)
    return FakeProvider(schemes, details)
