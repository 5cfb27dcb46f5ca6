# fundscope/services/fund_universe.py

import asyncio
import logging
import random
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Tuple

from fundscope.core.config import Settings, get_settings
from fundscope.core.exceptions import IngestionError
from fundscope.data.sample_funds import get_sample_funds
from fundscope.models.mutual_fund import (
    FundCategory,
    FundDetail,
    FundRecommendation,
    FundRecord,
    FundSectorData,
    RecommendationResponse,
    RefreshResult,
    RiskLevel,
    RiskProfile,
    SchemeSummary,
)
from fundscope.services import insight_service
from fundscope.services.mf_engine import ingestion_service
from fundscope.services.mf_engine.mfapi_client import MfapiClient
from fundscope.services.sector_synthesizer import SectorDataCache

logger = logging.getLogger(__name__)


class FundUniverse:
    """
    Process-wide session state: the last ingested fund universe and the
    sector allocation cache that belongs to it.
    """

    # sort key -> (attribute, descending)
    SORT_OPTIONS: Dict[str, Tuple[str, bool]] = {
        "rank": ("rank", False),
        "cagr1Y": ("cagr_1y", True),
        "sharpeRatio": ("sharpe_ratio", True),
        "volatility": ("volatility", False),
        "expenseRatio": ("expense_ratio", False),
        "aum": ("aum", True),
    }

    def __init__(self, provider_factory: Optional[Callable] = None, settings: Optional[Settings] = None,
                 rng: Optional[random.Random] = None):
        self.settings = settings or get_settings()
        self._provider_factory = provider_factory or (lambda: MfapiClient(self.settings))
        self._rng = rng or random.Random()
        self._funds: List[FundRecord] = []
        self._by_id: Dict[str, FundRecord] = {}
        self._is_live_data = False
        self._loaded = False
        self._lock = asyncio.Lock()
        self.sector_cache = SectorDataCache()

    @property
    def funds(self) -> List[FundRecord]:
        return list(self._funds)

    @property
    def is_live_data(self) -> bool:
        return self._is_live_data

    @property
    def loaded(self) -> bool:
        return self._loaded

    def _replace_funds(self, funds: List[FundRecord], is_live_data: bool) -> None:
        self._funds = funds
        self._by_id = {fund.id: fund for fund in funds}
        self._is_live_data = is_live_data
        self._loaded = True

    async def refresh(self) -> RefreshResult:
        """
        Re-ingest the universe. Falls back to the built-in sample when
        live ingestion fails, so the rest of the system stays usable.
        """
        async with self._lock:
            return await self._refresh_locked()

    async def _refresh_locked(self) -> RefreshResult:
        # Old allocations must never outlive the universe they were built for
        self.sector_cache.clear()

        try:
            async with self._provider_factory() as provider:
                funds = await ingestion_service.ingest_all(provider, self.settings, self._rng)
        except IngestionError as e:
            logger.error(f"❌ Live ingestion failed, using sample funds: {e}")
            self._replace_funds(get_sample_funds(), is_live_data=False)
            return RefreshResult(funds=self.funds, is_live_data=False, error=str(e))

        self._replace_funds(funds, is_live_data=True)
        logger.info(f"✅ Loaded {len(funds)} funds from MFAPI")
        return RefreshResult(funds=self.funds, is_live_data=True)

    async def ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock:
            # Another request may have loaded the universe while we waited
            if not self._loaded:
                await self._refresh_locked()

    def get_fund(self, fund_id: str) -> Optional[FundRecord]:
        return self._by_id.get(fund_id)

    def sector_data(self, fund_id: str) -> Optional[FundSectorData]:
        fund = self.get_fund(fund_id)
        if fund is None:
            return None
        return self.sector_cache.get_or_compute(fund)

    def browse(self, query: Optional[str] = None, category: Optional[FundCategory] = None,
               sort_by: str = "rank") -> List[FundRecord]:
        """Search by name or AMC, filter by category, then sort."""
        result = list(self._funds)

        if query:
            q = query.lower()
            result = [f for f in result if q in f.name.lower() or q in f.amc.lower()]

        if category is not None:
            result = [f for f in result if f.category == category]

        attribute, descending = self.SORT_OPTIONS.get(sort_by, self.SORT_OPTIONS["rank"])
        return sorted(result, key=lambda f: getattr(f, attribute), reverse=descending)

    def shortlist(self, risk_profile: RiskProfile, limit: Optional[int] = None) -> List[FundRecord]:
        limit = limit or self.settings.RECOMMENDATION_LIMIT

        if risk_profile == RiskProfile.CONSERVATIVE:
            matches = [f for f in self._funds if f.risk_level == RiskLevel.LOW]
        elif risk_profile == RiskProfile.AGGRESSIVE:
            matches = [
                f for f in self._funds
                if f.risk_level == RiskLevel.HIGH
                or (f.risk_level == RiskLevel.MODERATE and f.category == FundCategory.EQUITY)
            ]
        else:
            matches = list(self._funds)

        return sorted(matches, key=lambda f: f.sharpe_ratio, reverse=True)[:limit]

    async def recommend(self, risk_profile: RiskProfile) -> RecommendationResponse:
        shortlist = self.shortlist(risk_profile)
        if not shortlist:
            logger.info(f"No funds match the {risk_profile.value} profile")
            return RecommendationResponse(risk_profile=risk_profile)

        batch = await insight_service.decorate(shortlist, risk_profile)
        recommendations = [
            FundRecommendation(fund=fund, insight=insight, match_score=100 - idx * 10)
            for idx, (fund, insight) in enumerate(zip(shortlist, batch.insights))
        ]
        return RecommendationResponse(
            risk_profile=risk_profile,
            recommendations=recommendations,
            insight_error=batch.error_kind,
        )

    async def scheme_detail(self, scheme_code: int) -> FundDetail:
        async with self._provider_factory() as provider:
            return await ingestion_service.fetch_fund_detail(provider, scheme_code, self.settings, self._rng)

    async def search(self, query: str) -> List[SchemeSummary]:
        async with self._provider_factory() as provider:
            return await ingestion_service.search_schemes(provider, query)


@lru_cache()
def get_fund_universe() -> FundUniverse:
    return FundUniverse()
