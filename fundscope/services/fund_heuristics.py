# fundscope/services/fund_heuristics.py

import random
from typing import Dict, Tuple
from fundscope.models.mutual_fund import FundCategory


class FundHeuristics:
    """
    Category-based placeholder figures for fields MFAPI does not publish.
    These are stand-ins, not sourced data.
    """

    EXPENSE_RATIOS: Dict[FundCategory, float] = {
        FundCategory.LIQUID: 0.15,
        FundCategory.DEBT: 0.4,
        FundCategory.INDEX: 0.2,
    }
    DEFAULT_EXPENSE_RATIO = 1.5

    # (base, jitter span)
    BETA_RANGES: Dict[FundCategory, Tuple[float, float]] = {
        FundCategory.INDEX: (1.0, 0.0),
        FundCategory.EQUITY: (0.9, 0.2),
    }
    DEFAULT_BETA_RANGE = (0.2, 0.3)

    MIN_INVESTMENT = 500
    LIQUID_EXIT_LOAD = "Graded exit load for 7 days"
    DEFAULT_EXIT_LOAD = "1% if redeemed within 1 year"
    INDEX_BENCHMARK = "Nifty 50 TRI"
    DEFAULT_BENCHMARK = "Category Average"

    @classmethod
    def expense_ratio(cls, category: FundCategory) -> float:
        return cls.EXPENSE_RATIOS.get(category, cls.DEFAULT_EXPENSE_RATIO)

    @classmethod
    def beta(cls, category: FundCategory, rng: random.Random, jitter: bool = True) -> float:
        base, span = cls.BETA_RANGES.get(category, cls.DEFAULT_BETA_RANGE)
        if not span:
            return base
        offset = rng.random() * span if jitter else span / 2
        return round(base + offset, 2)

    @staticmethod
    def alpha(cagr_1y: float, fraction: float = 0.1) -> float:
        return round(cagr_1y * fraction, 2) if cagr_1y > 0 else 0.0

    @classmethod
    def exit_load(cls, category: FundCategory) -> str:
        return cls.LIQUID_EXIT_LOAD if category == FundCategory.LIQUID else cls.DEFAULT_EXIT_LOAD

    @classmethod
    def benchmark(cls, category: FundCategory) -> str:
        return cls.INDEX_BENCHMARK if category == FundCategory.INDEX else cls.DEFAULT_BENCHMARK

    @staticmethod
    def placeholder_aum(rng: random.Random, low: int = 5000, high: int = 55000) -> float:
        # MFAPI has no AUM; crores
        return float(rng.randrange(low, high))
