"""Portfolio performance analytics derived from priced holdings."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence

from trading.events.models import HoldingView, round_money

TOP_HOLDINGS = 5


@dataclass(frozen=True)
class Performer:
    symbol: str
    return_pct: Decimal
    return_amount: Decimal


@dataclass(frozen=True)
class TopHolding:
    symbol: str
    current_value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class SectorShare:
    value: Decimal
    percentage: Decimal


@dataclass
class PortfolioPerformance:
    total_return: Decimal = Decimal("0")
    total_return_pct: Decimal = Decimal("0")
    best_performer: Optional[Performer] = None
    worst_performer: Optional[Performer] = None
    top_holdings: List[TopHolding] = field(default_factory=list)
    sector_allocation: Dict[str, SectorShare] = field(default_factory=dict)
    diversification_score: int = 0


def _share(part: Decimal, total: Decimal) -> Decimal:
    return round_money(part / total * 100) if total > 0 else Decimal("0")


def sector_allocation(
    views: Sequence[HoldingView], sectors: Mapping[str, str]
) -> Dict[str, SectorShare]:
    """Current value and percentage per sector; unmapped symbols go to 'Others'."""
    values: Dict[str, Decimal] = {}
    for view in views:
        sector = sectors.get(view.symbol, "Others")
        values[sector] = values.get(sector, Decimal("0")) + view.current_value

    total = sum(values.values(), Decimal("0"))
    return {
        sector: SectorShare(value=round_money(value), percentage=_share(value, total))
        for sector, value in values.items()
    }


def diversification_score(views: Sequence[HoldingView]) -> int:
    """
    Score from 0 to 100.

    Up to 50 points for holding count (10 per holding) plus up to 50 points
    for how little of the portfolio the largest position represents.
    """
    if not views:
        return 0
    total = sum((v.current_value for v in views), Decimal("0"))
    if total == 0:
        return 0

    max_concentration = max(v.current_value / total for v in views)
    holdings_score = min(len(views) * 10, 50)
    concentration_score = (1 - max_concentration) * 50
    return int(round(holdings_score + float(concentration_score)))


def performance(
    views: Sequence[HoldingView], sectors: Mapping[str, str]
) -> PortfolioPerformance:
    """Best/worst performers, top holdings, sector mix and diversification."""
    if not views:
        return PortfolioPerformance()

    total_investment = sum((v.total_investment for v in views), Decimal("0"))
    total_value = sum((v.current_value for v in views), Decimal("0"))
    total_return = total_value - total_investment

    by_return = sorted(views, key=lambda v: v.total_return_pct, reverse=True)
    best, worst = by_return[0], by_return[-1]

    top = sorted(views, key=lambda v: v.current_value, reverse=True)[:TOP_HOLDINGS]

    return PortfolioPerformance(
        total_return=round_money(total_return),
        total_return_pct=_share(total_return, total_investment),
        best_performer=Performer(best.symbol, best.total_return_pct, round_money(best.total_return)),
        worst_performer=Performer(worst.symbol, worst.total_return_pct, round_money(worst.total_return)),
        top_holdings=[
            TopHolding(v.symbol, round_money(v.current_value), _share(v.current_value, total_value))
            for v in top
        ],
        sector_allocation=sector_allocation(views, sectors),
        diversification_score=diversification_score(views),
    )
