from fastapi import APIRouter, Depends
import logging
from fundscope.models.mutual_fund import RecommendationRequest, RecommendationResponse
from fundscope.services.fund_universe import FundUniverse, get_fund_universe

router = APIRouter()
logger = logging.getLogger(__name__)


# 🔹 Fund Recommendation Endpoint
@router.post("/recommend", response_model=RecommendationResponse)
async def get_recommendation(request: RecommendationRequest, universe: FundUniverse = Depends(get_fund_universe)):
    logger.info(f"🔍 Building recommendations for {request.risk_profile.value} profile...")
    await universe.ensure_loaded()

    response = await universe.recommend(request.risk_profile)
    if response.insight_error is not None:
        logger.warning(f"⚠️ Served templated insights ({response.insight_error.value})")
    return response
