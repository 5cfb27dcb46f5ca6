# fundscope/services/sector_synthesizer.py

import hashlib
import logging
import random
from typing import Dict, List, Tuple
from fundscope.models.mutual_fund import FundCategory, FundRecord, FundSectorData, SectorAllocation

logger = logging.getLogger(__name__)

EQUITY_SECTORS = [
    "Financial Services",
    "Information Technology",
    "BFSI",
    "Pharma & Healthcare",
    "Consumer Goods",
    "Automobile",
    "Oil & Gas",
    "Capital Goods",
    "Metals & Mining",
    "Chemicals",
    "Infrastructure",
    "FMCG",
    "Energy",
    "Telecom",
    "Real Estate",
    "Cement & Construction",
    "Textiles",
    "Media & Entertainment",
]

DEBT_SECTORS = [
    "Government Securities",
    "Corporate Bonds",
    "AAA Rated",
    "AA+ Rated",
    "AA Rated",
    "PSU Bonds",
    "State Development Loans",
    "Treasury Bills",
    "Commercial Paper",
    "Certificate of Deposits",
]

HYBRID_SECTORS = [
    "Equity Holdings",
    "Debt Holdings",
    "Cash & Equivalents",
    "Government Securities",
    "Corporate Bonds",
    "Gold",
    "REITs & InvITs",
    "Arbitrage",
    "Money Market",
]

SECTOR_COLORS = [
    "hsl(217, 91%, 60%)",
    "hsl(142, 71%, 45%)",
    "hsl(38, 92%, 50%)",
    "hsl(265, 83%, 67%)",
    "hsl(173, 80%, 40%)",
    "hsl(340, 82%, 52%)",
    "hsl(45, 93%, 47%)",
    "hsl(200, 98%, 39%)",
    "hsl(291, 64%, 42%)",
    "hsl(16, 100%, 66%)",
]

# category -> (pool, min sectors, max sectors)
SECTOR_PROFILES: Dict[FundCategory, Tuple[List[str], int, int]] = {
    FundCategory.DEBT: (DEBT_SECTORS, 4, 7),
    FundCategory.LIQUID: (DEBT_SECTORS, 4, 7),
    FundCategory.HYBRID: (HYBRID_SECTORS, 4, 8),
    FundCategory.INDEX: (EQUITY_SECTORS, 6, 11),
    FundCategory.EQUITY: (EQUITY_SECTORS, 6, 11),
}

MAX_SECTOR_TENTHS = 350  # 35%
MIN_SECTOR_TENTHS = 50   # 5%
RESERVE_TENTHS = 20      # kept back for each sector still to be allocated


def seeded_random(seed: str) -> random.Random:
    """Generator whose sequence depends only on the seed string."""
    digest = hashlib.md5(seed.encode("utf-8")).hexdigest()
    return random.Random(int(digest, 16))


def shuffle_pool(pool: List[str], rng: random.Random) -> List[str]:
    """Fisher-Yates shuffle on a copy of the pool."""
    shuffled = list(pool)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def allocate_percentages(sector_count: int, rng: random.Random) -> List[float]:
    """
    Greedy descending split of 100% across sector_count entries.

    Works in tenths of a percent so the total is exactly 100.0; the final
    entry absorbs whatever remains.
    """
    if sector_count <= 0:
        return []

    tenths = []
    remaining = 1000
    for i in range(sector_count - 1):
        entries_left = sector_count - i - 1
        cap = min(remaining - entries_left * RESERVE_TENTHS, MAX_SECTOR_TENTHS)
        floor = min(MIN_SECTOR_TENTHS, cap)
        allocation = floor + int(round(rng.random() * (cap - floor)))
        tenths.append(allocation)
        remaining -= allocation
    tenths.append(remaining)

    return [t / 10 for t in sorted(tenths, reverse=True)]


def synthesize(fund: FundRecord) -> FundSectorData:
    """
    Plausible sector breakdown for a fund without holdings data.
    Deterministic for a given (fund.id, fund.name).
    """
    rng = seeded_random(f"{fund.id}{fund.name}")
    pool, low, high = SECTOR_PROFILES.get(fund.category, SECTOR_PROFILES[FundCategory.EQUITY])

    sector_count = min(low + int(rng.random() * (high - low + 1)), len(pool))
    selected = shuffle_pool(pool, rng)[:sector_count]
    percentages = allocate_percentages(len(selected), rng)

    sectors = [
        SectorAllocation(
            sector=sector,
            percentage=percentage,
            color=SECTOR_COLORS[index % len(SECTOR_COLORS)],
        )
        for index, (sector, percentage) in enumerate(zip(selected, percentages))
    ]
    return FundSectorData(fund_id=fund.id, fund_name=fund.name, sectors=sectors)


class SectorDataCache:
    """
    Memoized sector allocations keyed by fund id.
    Cleared wholesale whenever the fund universe is refreshed.
    """

    def __init__(self):
        self._entries: Dict[str, FundSectorData] = {}

    def get_or_compute(self, fund: FundRecord) -> FundSectorData:
        cached = self._entries.get(fund.id)
        if cached is None:
            cached = synthesize(fund)
            self._entries[fund.id] = cached
        return cached

    def clear(self) -> None:
        if self._entries:
            logger.info(f"🧹 Clearing {len(self._entries)} cached sector allocations")
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fund_id: str) -> bool:
        return fund_id in self._entries
