# fundscope/services/insight_service.py

import json
import logging
import math
import re
from typing import Any, Dict, List, Sequence, Tuple

from openai import APIStatusError, OpenAIError, RateLimitError

from fundscope.core.exceptions import (
    InsightParseError,
    InsightPaymentRequiredError,
    InsightRateLimitError,
    InsightServiceError,
)
from fundscope.models.mutual_fund import (
    AIInsight,
    FundRecord,
    InsightBatch,
    InsightErrorKind,
    RiskProfile,
)
from fundscope.services.llm_wrapper import call_chat_completion

logger = logging.getLogger(__name__)

JSON_ARRAY_PATTERN = re.compile(r"\[[\s\S]*\]")

PROFILE_GUIDANCE = {
    RiskProfile.CONSERVATIVE: (
        "- Prioritize: High consistency, high downside protection, low volatility, debt/liquid funds\n"
        "- Acceptable: Lower returns for stability\n"
        "- Avoid: High beta, declining momentum funds"
    ),
    RiskProfile.MODERATE: (
        "- Prioritize: Balanced Sharpe ratio, good consistency, moderate beta (0.8-1.2)\n"
        "- Acceptable: Hybrid funds, diversified equity, large caps\n"
        "- Seek: Good value score (alpha vs expense)"
    ),
    RiskProfile.AGGRESSIVE: (
        "- Prioritize: High alpha, strong momentum, growth potential\n"
        "- Acceptable: Higher volatility for better returns\n"
        "- Focus: Small/mid caps, sector funds with upward momentum"
    ),
}


def build_fund_factors(fund: FundRecord) -> Dict[str, Any]:
    """
    Derived factors fed to the model alongside the raw metrics.
    """
    avg_return = (fund.cagr_1y + fund.cagr_3y + fund.cagr_5y) / 3
    return_dispersion = math.sqrt(
        ((fund.cagr_1y - avg_return) ** 2 + (fund.cagr_3y - avg_return) ** 2 + (fund.cagr_5y - avg_return) ** 2) / 3
    )
    consistency_score = max(0.0, 100 - return_dispersion * 5) if avg_return > 0 else 0.0

    # Lower beta and volatility mean better protection
    downside_protection = max(0.0, 100 - (fund.beta * 50 + fund.volatility * 2))

    value_score = (fund.alpha / fund.expense_ratio) * 10 if fund.expense_ratio > 0 else 0.0

    if fund.aum > 20000:
        size_stability = "Large"
    elif fund.aum > 5000:
        size_stability = "Medium"
    else:
        size_stability = "Small"

    momentum = fund.cagr_1y - fund.cagr_5y
    if momentum > 5:
        momentum_trend = "Strong upward"
    elif momentum > 0:
        momentum_trend = "Positive"
    elif momentum > -5:
        momentum_trend = "Stable"
    else:
        momentum_trend = "Declining"

    return {
        "consistency_score": consistency_score,
        "downside_protection": downside_protection,
        "value_score": value_score,
        "size_stability": size_stability,
        "momentum_trend": momentum_trend,
    }


def describe_fund(fund: FundRecord) -> str:
    factors = build_fund_factors(fund)
    return (
        f"{fund.name} (ID: {fund.id}, {fund.category.value}, AMC: {fund.amc}):\n"
        f"- Returns: 1Y {fund.cagr_1y:.1f}%, 3Y {fund.cagr_3y:.1f}%, 5Y {fund.cagr_5y:.1f}%\n"
        f"- Risk Metrics: Volatility {fund.volatility:.1f}%, Sharpe {fund.sharpe_ratio}, "
        f"Beta {fund.beta:.2f}, Alpha {fund.alpha:.2f}\n"
        f"- Cost: Expense Ratio {fund.expense_ratio}%\n"
        f"- Derived Factors: Consistency {factors['consistency_score']:.0f}/100, "
        f"Downside Protection {factors['downside_protection']:.0f}/100, Value Score {factors['value_score']:.1f}\n"
        f"- Fund Size: {factors['size_stability']} (₹{fund.aum:.0f} Cr), Momentum: {factors['momentum_trend']}\n"
        f"- Overall Rating: {fund.strength_badge.value}"
    )


def build_insight_prompt(funds: Sequence[FundRecord], risk_profile: RiskProfile) -> Tuple[str, str]:
    """Returns (system_prompt, user_prompt)"""
    system_prompt = f"""You are an expert Indian mutual fund analyst providing personalized investment recommendations.

Analyze funds using these 8 key factors:
1. **Risk-Adjusted Returns (Sharpe Ratio)**: Higher is better, indicates return per unit of risk
2. **Consistency Score**: How stable returns are across 1Y, 3Y, 5Y periods (100 = very consistent)
3. **Alpha**: Excess returns over benchmark - positive alpha = outperformance
4. **Beta**: Market sensitivity - <1 means less volatile than market, >1 means more volatile
5. **Downside Protection**: Combined score from beta and volatility (higher = better protection)
6. **Value Score**: Alpha generated per unit of expense ratio (cost efficiency)
7. **Momentum Trend**: Recent vs long-term performance trajectory
8. **Fund Size Stability**: Larger AUM generally means more liquidity and stability

For {risk_profile.value} investors:
{PROFILE_GUIDANCE[risk_profile]}

Keep insights actionable and specific to each fund's metrics."""

    funds_description = "\n\n".join(describe_fund(f) for f in funds)
    user_prompt = f"""Generate personalized investment insights for a {risk_profile.value} investor analyzing these funds:

{funds_description}

Return a JSON array with objects containing:
- "fundId": string (the fund's ID)
- "insight": string (one compelling sentence about why this fund suits this investor)
- "rationale": string (2-3 key metrics that justify the recommendation)
- "suitabilityScore": number (1-10 rating for how well this fund fits the {risk_profile.value} profile)

Only return the JSON array, no other text."""

    return system_prompt, user_prompt


def parse_insights(content: str) -> List[AIInsight]:
    """
    Pull the JSON array out of a model reply, tolerating prose around it.

    Raises:
        InsightParseError: if no array can be decoded or it holds no usable entries
    """
    match = JSON_ARRAY_PATTERN.search(content or "")
    raw = match.group(0) if match else content
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise InsightParseError(f"Failed to parse model response: {e}") from e

    if not isinstance(parsed, list):
        raise InsightParseError("Model response is not a JSON array")

    insights = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        fund_id = entry.get("fundId", entry.get("fund_id"))
        if fund_id is None or not entry.get("insight"):
            continue
        insights.append(AIInsight(
            fund_id=str(fund_id),
            insight=str(entry["insight"]),
            rationale=str(entry.get("rationale") or ""),
        ))

    if not insights:
        raise InsightParseError("Model response held no usable insights")
    return insights


def template_insight(fund: FundRecord) -> AIInsight:
    """Insight built only from the fund's own fields."""
    return AIInsight(
        fund_id=fund.id,
        insight=(
            f"{fund.name} is a {fund.risk_level.value.lower()} risk {fund.category.value} fund "
            f"with {fund.cagr_1y:.1f}% returns over the last year."
        ),
        rationale=(
            f"Risk level: {fund.risk_level.value}, Sharpe: {fund.sharpe_ratio}, "
            f"Volatility: {fund.volatility:.1f}%"
        ),
    )


async def request_insights(funds: Sequence[FundRecord], risk_profile: RiskProfile) -> List[AIInsight]:
    """
    Ask the chat model for per-fund insights.

    Raises:
        InsightRateLimitError: HTTP 429
        InsightPaymentRequiredError: HTTP 402
        InsightParseError: reply holds no usable JSON array
        InsightServiceError: anything else
    """
    logger.info(f"Generating insights for {len(funds)} funds with {risk_profile.value} profile")
    system_prompt, user_prompt = build_insight_prompt(funds, risk_profile)

    try:
        content = await call_chat_completion(system_prompt=system_prompt, user_prompt=user_prompt)
    except RateLimitError as e:
        raise InsightRateLimitError("Rate limits exceeded, please try again later.") from e
    except APIStatusError as e:
        if e.status_code == 402:
            raise InsightPaymentRequiredError("Payment required, please add funds to your workspace.") from e
        raise InsightServiceError(f"Insight gateway error: {e.status_code}") from e
    except OpenAIError as e:
        raise InsightServiceError(f"Insight gateway error: {e}") from e

    logger.debug(f"Model response: {content}")
    return parse_insights(content)


async def decorate(shortlist: Sequence[FundRecord], risk_profile: RiskProfile) -> InsightBatch:
    """
    One insight per shortlisted fund, in shortlist order. Never raises:
    failures fall back to templated insights and are reported via error_kind.
    """
    if not shortlist:
        return InsightBatch()

    error_kind = None
    insights: List[AIInsight] = []
    try:
        insights = await request_insights(shortlist, risk_profile)
    except InsightRateLimitError as e:
        logger.warning(f"⚠️ Insight service rate limited: {e}")
        error_kind = InsightErrorKind.RATE_LIMITED
    except InsightPaymentRequiredError as e:
        logger.warning(f"⚠️ Insight service needs payment: {e}")
        error_kind = InsightErrorKind.PAYMENT_REQUIRED
    except InsightParseError as e:
        logger.warning(f"⚠️ {e}")
        error_kind = InsightErrorKind.UNPARSABLE
    except InsightServiceError as e:
        logger.warning(f"⚠️ Insight generation failed: {e}")
        error_kind = InsightErrorKind.SERVICE_ERROR
    except Exception as e:
        logger.error(f"❌ Unexpected insight failure: {e}")
        error_kind = InsightErrorKind.SERVICE_ERROR

    by_fund = {}
    for insight in insights:
        by_fund.setdefault(insight.fund_id, insight)

    matched = [by_fund.get(fund.id) for fund in shortlist]
    result = [insight or template_insight(fund) for fund, insight in zip(shortlist, matched)]

    if error_kind is None:
        logger.info("✅ AI insights generated successfully.")
    return InsightBatch(
        insights=result,
        error_kind=error_kind,
        is_fallback=any(insight is None for insight in matched),
    )
