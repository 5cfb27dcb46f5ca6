# fundscope/services/risk_scorer.py

from fundscope.models.mutual_fund import StrengthBadge

DEFAULT_RISK_FREE_RATE = 6.0  # % p.a., India

# Checked top-down, strict comparisons
STRENGTH_THRESHOLDS = [
    (1.3, StrengthBadge.STRONG),
    (0.8, StrengthBadge.BALANCED),
]


def score(cagr_1y: float, volatility: float, risk_free_rate: float = DEFAULT_RISK_FREE_RATE) -> float:
    """Sharpe-like ratio: excess 1Y return per unit of annualized volatility."""
    if volatility > 0:
        return (cagr_1y - risk_free_rate) / volatility
    return 0.0


def strength_badge(sharpe_ratio: float) -> StrengthBadge:
    for threshold, badge in STRENGTH_THRESHOLDS:
        if sharpe_ratio > threshold:
            return badge
    return StrengthBadge.RISKY
