# fundscope/services/mf_engine/ingestion_service.py

import asyncio
import logging
import random
from typing import List, Optional, Sequence

from fundscope.core.config import Settings, get_settings
from fundscope.core.exceptions import IngestionError, ProviderError
from fundscope.models.mutual_fund import FundDetail, FundRecord, RawSchemeDetail, SchemeSummary
from fundscope.services.fund_heuristics import FundHeuristics
from fundscope.services.returns_engine import compute_returns
from fundscope.services.risk_scorer import score, strength_badge
from fundscope.services.scheme_classifier import classify, refine_risk_level

logger = logging.getLogger(__name__)

NAV_HISTORY_POINTS = 30


def is_direct_growth(scheme_name: str) -> bool:
    """
    Direct plan, growth option. A "growth" name passes even if it also
    mentions dividend; only non-growth names are screened for IDCW/dividend.
    """
    name = scheme_name.lower()
    return "direct" in name and ("growth" in name or ("idcw" not in name and "dividend" not in name))


def filter_direct_growth(schemes: Sequence[SchemeSummary]) -> List[SchemeSummary]:
    return [s for s in schemes if is_direct_growth(s.scheme_name)]


def build_fund_record(detail: RawSchemeDetail, settings: Optional[Settings] = None,
                      rng: Optional[random.Random] = None) -> FundRecord:
    """Assemble the analytics record for one scheme. Rank is assigned later."""
    settings = settings or get_settings()
    rng = rng or random.Random()

    meta = detail.meta
    metrics = compute_returns(detail.nav_series)
    category, _ = classify(meta.scheme_category)
    risk_level = refine_risk_level(category, metrics.volatility)
    sharpe_ratio = score(metrics.cagr_1y, metrics.volatility, settings.RISK_FREE_RATE)

    return FundRecord(
        id=str(meta.scheme_code),
        name=meta.scheme_name,
        category=category,
        amc=meta.fund_house,
        nav=detail.nav_series[0].nav if detail.nav_series else 0.0,
        aum=FundHeuristics.placeholder_aum(rng, settings.AUM_PLACEHOLDER_MIN, settings.AUM_PLACEHOLDER_MAX),
        expense_ratio=FundHeuristics.expense_ratio(category),
        cagr_1y=metrics.cagr_1y,
        cagr_3y=metrics.cagr_3y,
        cagr_5y=metrics.cagr_5y,
        volatility=metrics.volatility,
        sharpe_ratio=round(sharpe_ratio, 2),
        beta=FundHeuristics.beta(category, rng, jitter=settings.BETA_JITTER),
        alpha=FundHeuristics.alpha(metrics.cagr_1y, settings.ALPHA_FRACTION),
        rank=0,
        risk_level=risk_level,
        strength_badge=strength_badge(sharpe_ratio),
        min_investment=FundHeuristics.MIN_INVESTMENT,
        exit_load=FundHeuristics.exit_load(category),
        benchmark=FundHeuristics.benchmark(category),
    )


async def fetch_fund_record(provider, scheme: SchemeSummary, settings: Settings,
                            rng: random.Random) -> Optional[FundRecord]:
    """
    Fetch and score one scheme. Any failure (HTTP, timeout, parse, thin history)
    returns None so the surrounding batch carries on.
    """
    try:
        detail = await asyncio.wait_for(
            provider.fetch_scheme(scheme.scheme_code),
            timeout=settings.SCHEME_FETCH_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning(f"⏱️ Timed out fetching scheme {scheme.scheme_code}")
        return None
    except Exception as e:
        logger.warning(f"❌ Failed to fetch scheme {scheme.scheme_code}: {e}")
        return None

    if len(detail.nav_series) < settings.MIN_NAV_POINTS:
        logger.info(f"Skipping {scheme.scheme_code}: only {len(detail.nav_series)} NAV points")
        return None

    try:
        return build_fund_record(detail, settings, rng)
    except Exception as e:
        logger.warning(f"❌ Failed to score scheme {scheme.scheme_code}: {e}")
        return None


def rank_funds(funds: List[FundRecord]) -> List[FundRecord]:
    """Sort by Sharpe ratio (descending, stable) and assign dense 1-based ranks."""
    ranked = sorted(funds, key=lambda f: f.sharpe_ratio, reverse=True)
    for idx, fund in enumerate(ranked):
        fund.rank = idx + 1
    return ranked


async def ingest_all(provider, settings: Optional[Settings] = None,
                     rng: Optional[random.Random] = None) -> List[FundRecord]:
    """
    Build the ranked fund universe from the provider.

    Raises:
        IngestionError: if the scheme listing fails or no scheme survives
    """
    settings = settings or get_settings()
    rng = rng or random.Random()

    try:
        all_schemes = await provider.list_schemes()
    except Exception as e:
        logger.error(f"❌ Failed to fetch scheme listing: {e}")
        raise IngestionError(f"Failed to fetch schemes list: {e}") from e

    logger.info(f"Found {len(all_schemes)} total schemes, processing up to {settings.MAX_FUNDS_TO_INGEST}...")

    schemes = filter_direct_growth(all_schemes)[:settings.MAX_FUNDS_TO_INGEST]
    logger.info(f"Filtered to {len(schemes)} Direct Plan Growth schemes")

    batch_size = settings.INGESTION_BATCH_SIZE
    total_batches = (len(schemes) + batch_size - 1) // batch_size
    all_funds: List[FundRecord] = []

    for start in range(0, len(schemes), batch_size):
        batch = schemes[start:start + batch_size]
        logger.info(f"Processing batch {start // batch_size + 1}/{total_batches}")

        batch_results = await asyncio.gather(
            *(fetch_fund_record(provider, scheme, settings, rng) for scheme in batch)
        )
        valid_funds = [fund for fund in batch_results if fund is not None]
        dropped = len(batch) - len(valid_funds)
        if dropped:
            logger.warning(f"--- Dropped {dropped}/{len(batch)} schemes in this batch ---")
        all_funds.extend(valid_funds)

    if not all_funds:
        raise IngestionError("No funds could be ingested")

    ranked = rank_funds(all_funds)
    logger.info(f"✅ Successfully ingested {len(ranked)} funds")
    return ranked


async def fetch_fund_detail(provider, scheme_code: int, settings: Optional[Settings] = None,
                            rng: Optional[random.Random] = None) -> FundDetail:
    """
    Score a single scheme on demand, with its recent NAV history attached.

    Raises:
        ProviderError: if the provider call fails or the scheme has no NAV data
    """
    settings = settings or get_settings()
    detail = await provider.fetch_scheme(scheme_code)
    if not detail.nav_series:
        raise ProviderError(f"Scheme {scheme_code} has no NAV data")

    record = build_fund_record(detail, settings, rng)
    return FundDetail(
        **record.model_dump(),
        scheme_type=detail.meta.scheme_type,
        isin=detail.meta.isin,
        nav_history=detail.nav_series[:NAV_HISTORY_POINTS],
    )


async def search_schemes(provider, query: str) -> List[SchemeSummary]:
    query = (query or "").strip()
    if not query:
        return []
    return await provider.search(query)


async def _run_once() -> List[FundRecord]:
    from fundscope.services.mf_engine.mfapi_client import MfapiClient

    async with MfapiClient() as client:
        return await ingest_all(client)


if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    funds = asyncio.run(_run_once())
    for fund in funds[:10]:
        print(f"[{fund.rank}] {fund.name} | Sharpe {fund.sharpe_ratio} | 1Y {fund.cagr_1y:.1f}% | {fund.strength_badge.value}")
