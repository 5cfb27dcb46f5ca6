from fastapi import APIRouter, Depends, HTTPException, Query
import logging
from typing import List, Optional
from fundscope.core.exceptions import ProviderError
from fundscope.models.mutual_fund import (
    FundCategory,
    FundDetail,
    FundListResponse,
    FundRecord,
    FundSectorData,
    RefreshResult,
    SchemeSummary,
)
from fundscope.services.fund_universe import FundUniverse, get_fund_universe

router = APIRouter()
logger = logging.getLogger(__name__)


# 🔹 Re-ingest the fund universe (falls back to the sample on failure)
@router.post("/refresh", response_model=RefreshResult)
async def refresh_funds(universe: FundUniverse = Depends(get_fund_universe)):
    return await universe.refresh()


@router.get("", response_model=FundListResponse)
async def list_funds(
    q: Optional[str] = Query(None, description="Search by fund name or AMC"),
    category: Optional[FundCategory] = None,
    sort_by: str = Query("rank", description="rank, cagr1Y, sharpeRatio, volatility, expenseRatio or aum"),
    universe: FundUniverse = Depends(get_fund_universe),
):
    await universe.ensure_loaded()
    return FundListResponse(
        funds=universe.browse(query=q, category=category, sort_by=sort_by),
        is_live_data=universe.is_live_data,
    )


@router.get("/search", response_model=List[SchemeSummary])
async def search_schemes(
    q: str = Query(..., min_length=1),
    universe: FundUniverse = Depends(get_fund_universe),
):
    try:
        return await universe.search(q)
    except ProviderError as e:
        logger.error(f"❌ Scheme search failed: {e}")
        raise HTTPException(status_code=502, detail=f"Search failed: {e}")


@router.get("/schemes/{scheme_code}", response_model=FundDetail)
async def get_scheme_detail(scheme_code: int, universe: FundUniverse = Depends(get_fund_universe)):
    try:
        return await universe.scheme_detail(scheme_code)
    except ProviderError as e:
        logger.error(f"❌ Scheme fetch failed for {scheme_code}: {e}")
        raise HTTPException(status_code=502, detail=f"Scheme fetch failed: {e}")


@router.get("/{fund_id}", response_model=FundRecord)
async def get_fund(fund_id: str, universe: FundUniverse = Depends(get_fund_universe)):
    await universe.ensure_loaded()
    fund = universe.get_fund(fund_id)
    if fund is None:
        raise HTTPException(status_code=404, detail=f"Fund {fund_id} not found")
    return fund


@router.get("/{fund_id}/sectors", response_model=FundSectorData)
async def get_fund_sectors(fund_id: str, universe: FundUniverse = Depends(get_fund_universe)):
    await universe.ensure_loaded()
    sector_data = universe.sector_data(fund_id)
    if sector_data is None:
        raise HTTPException(status_code=404, detail=f"Fund {fund_id} not found")
    return sector_data
