# fundscope/services/scheme_classifier.py

from typing import List, Optional, Tuple
from fundscope.models.mutual_fund import FundCategory, RiskLevel

# Checked in order, first match wins
CATEGORY_KEYWORDS: List[Tuple[FundCategory, Tuple[str, ...]]] = [
    (FundCategory.LIQUID, ("liquid", "money market")),
    (FundCategory.DEBT, ("debt", "bond", "gilt", "income")),
    (FundCategory.HYBRID, ("hybrid", "balanced", "multi asset")),
    (FundCategory.INDEX, ("index", "etf")),
]

BASE_RISK_HINT = {
    FundCategory.LIQUID: RiskLevel.LOW,
    FundCategory.DEBT: RiskLevel.LOW,
    FundCategory.HYBRID: RiskLevel.MODERATE,
    FundCategory.INDEX: RiskLevel.MODERATE,
    FundCategory.EQUITY: RiskLevel.MODERATE,
}

HIGH_RISK_VOLATILITY = 20.0


def categorize_scheme(scheme_category: Optional[str]) -> FundCategory:
    lower_cat = (scheme_category or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lower_cat for keyword in keywords):
            return category
    return FundCategory.EQUITY


def classify(scheme_category: Optional[str]) -> Tuple[FundCategory, RiskLevel]:
    """
    Map a free-text MFAPI scheme category to a fund category and a coarse risk hint.
    The hint is refined by refine_risk_level once volatility is known.
    """
    category = categorize_scheme(scheme_category)
    return category, BASE_RISK_HINT[category]


def refine_risk_level(category: FundCategory, volatility: float) -> RiskLevel:
    """Equity funds move to High when annualized volatility exceeds 20%"""
    if category == FundCategory.EQUITY and volatility > HIGH_RISK_VOLATILITY:
        return RiskLevel.HIGH
    return BASE_RISK_HINT[category]
