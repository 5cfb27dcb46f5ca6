# fundscope/data/sample_funds.py
#
# Static fund sample served when live ingestion is unavailable.

from typing import List
from fundscope.core.config import get_settings
from fundscope.models.mutual_fund import FundCategory, FundRecord
from fundscope.services.fund_heuristics import FundHeuristics
from fundscope.services.mf_engine.ingestion_service import rank_funds
from fundscope.services.risk_scorer import score, strength_badge
from fundscope.services.scheme_classifier import refine_risk_level

# id, name, category, amc, nav, aum (Cr), cagr 1Y/3Y/5Y, volatility, beta
SAMPLE_FUND_ROWS = [
    ("122639", "Parag Parikh Flexi Cap Fund - Direct Plan - Growth", FundCategory.EQUITY,
     "PPFAS Mutual Fund", 86.12, 72000, 24.5, 19.8, 24.1, 11.2, 0.82),
    ("118989", "HDFC Mid-Cap Opportunities Fund - Direct Plan - Growth", FundCategory.EQUITY,
     "HDFC Mutual Fund", 198.40, 65000, 32.1, 27.5, 28.9, 16.4, 0.95),
    ("125354", "Axis Small Cap Fund - Direct Plan - Growth", FundCategory.EQUITY,
     "Axis Mutual Fund", 112.30, 21000, 27.8, 22.4, 28.2, 21.5, 1.02),
    ("120505", "Axis Bluechip Fund - Direct Plan - Growth", FundCategory.EQUITY,
     "Axis Mutual Fund", 62.40, 33000, 11.2, 9.4, 14.3, 12.6, 0.90),
    ("120716", "UTI Nifty 50 Index Fund - Direct Plan - Growth", FundCategory.INDEX,
     "UTI Mutual Fund", 162.35, 18000, 14.2, 13.1, 15.6, 13.8, 1.00),
    ("120251", "ICICI Prudential Equity & Debt Fund - Direct Plan - Growth", FundCategory.HYBRID,
     "ICICI Prudential Mutual Fund", 402.60, 38000, 21.3, 20.9, 22.5, 10.1, 0.45),
    ("118825", "ICICI Prudential Corporate Bond Fund - Direct Plan - Growth", FundCategory.DEBT,
     "ICICI Prudential Mutual Fund", 29.41, 28000, 8.1, 6.9, 7.6, 1.4, 0.30),
    ("119551", "Aditya Birla Sun Life Liquid Fund - Direct Plan - Growth", FundCategory.LIQUID,
     "Aditya Birla Sun Life Mutual Fund", 412.77, 40000, 7.3, 6.4, 5.3, 0.3, 0.25),
]


def get_sample_funds() -> List[FundRecord]:
    """Fresh, ranked copies of the built-in sample."""
    settings = get_settings()
    funds = []
    for (fund_id, name, category, amc, nav, aum, cagr_1y, cagr_3y, cagr_5y, volatility, beta) in SAMPLE_FUND_ROWS:
        sharpe_ratio = score(cagr_1y, volatility, settings.RISK_FREE_RATE)
        funds.append(FundRecord(
            id=fund_id,
            name=name,
            category=category,
            amc=amc,
            nav=nav,
            aum=aum,
            expense_ratio=FundHeuristics.expense_ratio(category),
            cagr_1y=cagr_1y,
            cagr_3y=cagr_3y,
            cagr_5y=cagr_5y,
            volatility=volatility,
            sharpe_ratio=round(sharpe_ratio, 2),
            beta=beta,
            alpha=FundHeuristics.alpha(cagr_1y, settings.ALPHA_FRACTION),
            risk_level=refine_risk_level(category, volatility),
            strength_badge=strength_badge(sharpe_ratio),
            min_investment=FundHeuristics.MIN_INVESTMENT,
            exit_load=FundHeuristics.exit_load(category),
            benchmark=FundHeuristics.benchmark(category),
        ))
    return rank_funds(funds)
