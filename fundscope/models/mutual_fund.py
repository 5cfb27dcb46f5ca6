from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import date
from enum import Enum


class FundCategory(str, Enum):
    EQUITY = "Equity"
    DEBT = "Debt"
    HYBRID = "Hybrid"
    INDEX = "Index"
    LIQUID = "Liquid"

class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"

class StrengthBadge(str, Enum):
    STRONG = "Strong"
    BALANCED = "Balanced"
    RISKY = "Risky"

class RiskProfile(str, Enum):
    CONSERVATIVE = "Conservative"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"

class InsightErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    PAYMENT_REQUIRED = "payment_required"
    UNPARSABLE = "unparsable"
    SERVICE_ERROR = "service_error"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Provider-side entities
# ---------------------------------------------------------------------------

class NavPoint(CamelModel):
    nav_date: date = Field(..., alias="date")
    nav: float = Field(..., gt=0, description="Net asset value per unit")

class SchemeSummary(CamelModel):
    scheme_code: int
    scheme_name: str

class SchemeMeta(CamelModel):
    fund_house: str = ""
    scheme_type: Optional[str] = None
    scheme_category: str = ""
    scheme_code: int
    scheme_name: str = ""
    isin: Optional[str] = None

class RawSchemeDetail(CamelModel):
    meta: SchemeMeta
    nav_series: List[NavPoint] = Field(default_factory=list, description="Newest first")


# ---------------------------------------------------------------------------
# Derived entities
# ---------------------------------------------------------------------------

class DerivedMetrics(CamelModel):
    cagr_1y: float = Field(0.0, alias="cagr1Y")
    cagr_3y: float = Field(0.0, alias="cagr3Y")
    cagr_5y: float = Field(0.0, alias="cagr5Y")
    volatility: float = Field(0.0, ge=0)

class FundRecord(CamelModel):
    id: str
    name: str
    category: FundCategory
    amc: str
    nav: float
    aum: float = Field(..., description="Placeholder AUM in crores")
    expense_ratio: float
    cagr_1y: float = Field(0.0, alias="cagr1Y")
    cagr_3y: float = Field(0.0, alias="cagr3Y")
    cagr_5y: float = Field(0.0, alias="cagr5Y")
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    beta: float
    alpha: float
    rank: int = 0
    risk_level: RiskLevel
    strength_badge: StrengthBadge
    min_investment: float = 500
    exit_load: str
    benchmark: str

class FundDetail(FundRecord):
    scheme_type: Optional[str] = None
    isin: Optional[str] = None
    nav_history: List[NavPoint] = Field(default_factory=list, description="Most recent points, newest first")

class SectorAllocation(CamelModel):
    sector: str
    percentage: float = Field(..., ge=0, le=100)
    color: str

class FundSectorData(CamelModel):
    fund_id: str
    fund_name: str
    sectors: List[SectorAllocation] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Insights & recommendations
# ---------------------------------------------------------------------------

class AIInsight(CamelModel):
    fund_id: str
    insight: str
    rationale: str

class InsightBatch(CamelModel):
    insights: List[AIInsight] = Field(default_factory=list)
    error_kind: Optional[InsightErrorKind] = None
    is_fallback: bool = False

class FundRecommendation(CamelModel):
    fund: FundRecord
    insight: AIInsight
    match_score: int

class RecommendationRequest(CamelModel):
    risk_profile: RiskProfile = RiskProfile.MODERATE

class RecommendationResponse(CamelModel):
    risk_profile: RiskProfile
    recommendations: List[FundRecommendation] = Field(default_factory=list)
    insight_error: Optional[InsightErrorKind] = None

class RefreshResult(CamelModel):
    funds: List[FundRecord] = Field(default_factory=list)
    is_live_data: bool = False
    error: Optional[str] = None

class FundListResponse(CamelModel):
    funds: List[FundRecord] = Field(default_factory=list)
    is_live_data: bool = False
