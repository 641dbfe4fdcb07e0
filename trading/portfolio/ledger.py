"""
Portfolio ledger.

Maintains per-(user, symbol) holdings from executed fills:
- BUY adds to quantity and cost basis; average price = cost / quantity
- SELL reduces quantity and leaves average price untouched
- A holding that reaches zero quantity resets cost basis and average price

Current value and returns are never stored; they are derived against the
instrument registry each time holdings are read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from trading.engine.store import TradingStore
from trading.events.errors import InsufficientHoldingsError
from trading.events.models import Holding, HoldingView, OrderSide, round_money
from trading.market.instruments import InstrumentRegistry
from trading.portfolio.analytics import PortfolioPerformance, performance

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregate figures folded over a set of holding views."""
    total_holdings: int
    total_investment: Decimal
    total_current_value: Decimal
    total_return: Decimal
    total_return_pct: Decimal
    profitable_holdings: int
    loss_holdings: int

    def to_dict(self) -> dict:
        return {
            "totalHoldings": self.total_holdings,
            "totalInvestment": float(self.total_investment),
            "totalCurrentValue": float(self.total_current_value),
            "totalReturn": float(self.total_return),
            "totalReturnPercentage": float(self.total_return_pct),
            "profitableHoldings": self.profitable_holdings,
            "lossHoldings": self.loss_holdings,
        }


def summarize(views: Iterable[HoldingView]) -> PortfolioSummary:
    """Fold holding views into a portfolio summary."""
    views = list(views)
    total_investment = sum((v.total_investment for v in views), ZERO)
    total_value = sum((v.current_value for v in views), ZERO)
    total_return = total_value - total_investment
    return_pct = total_return / total_investment * 100 if total_investment > 0 else ZERO

    return PortfolioSummary(
        total_holdings=len(views),
        total_investment=round_money(total_investment),
        total_current_value=round_money(total_value),
        total_return=round_money(total_return),
        total_return_pct=round_money(return_pct),
        profitable_holdings=sum(1 for v in views if v.current_value > v.total_investment),
        loss_holdings=sum(1 for v in views if v.current_value < v.total_investment),
    )


class PortfolioLedger:
    """Owns holdings and applies fills to them."""

    def __init__(self, store: TradingStore, registry: InstrumentRegistry):
        self.store = store
        self.registry = registry

    def get_holding(self, user_id: str, symbol: str) -> Optional[Holding]:
        return self.store.holdings.get((user_id, symbol))

    def held_quantity(self, user_id: str, symbol: str) -> int:
        holding = self.get_holding(user_id, symbol)
        return holding.quantity if holding else 0

    def ensure_can_sell(self, user_id: str, symbol: str, quantity: int) -> None:
        """Raise InsufficientHoldingsError unless quantity shares are held."""
        available = self.held_quantity(user_id, symbol)
        if available < quantity:
            raise InsufficientHoldingsError(symbol, available, quantity)

    def apply_fill(
        self,
        user_id: str,
        symbol: str,
        quantity: int,
        price: Decimal,
        side: OrderSide,
    ) -> Holding:
        """
        Update the user's holding for an executed fill.

        Args:
            user_id: Holding owner
            symbol: Instrument symbol
            quantity: Shares filled
            price: Fill price
            side: BUY or SELL

        Returns:
            The updated Holding

        Raises:
            InsufficientHoldingsError: If a SELL exceeds the held quantity
        """
        if side == OrderSide.SELL:
            # Checked before any mutation so a rejected SELL changes nothing
            self.ensure_can_sell(user_id, symbol, quantity)

        key = (user_id, symbol)
        holding = self.store.holdings.get(key)
        if holding is None:
            holding = Holding(user_id=user_id, symbol=symbol)

        if side == OrderSide.BUY:
            holding.total_investment += price * quantity
            holding.quantity += quantity
            holding.average_price = holding.total_investment / holding.quantity
        else:
            holding.quantity -= quantity
            if holding.quantity == 0:
                holding.total_investment = ZERO
                holding.average_price = ZERO

        holding.updated_at = datetime.now()
        self.store.holdings[key] = holding

        logger.info(
            "Portfolio updated: %s %d shares of %s at %s",
            side.value, quantity, symbol, price,
        )
        return holding

    def _view(self, holding: Holding) -> HoldingView:
        current_price = self.registry.get_price(holding.symbol)
        current_value = current_price * holding.quantity
        total_return = current_value - holding.total_investment
        return_pct = (
            total_return / holding.total_investment * 100
            if holding.total_investment > 0 else ZERO
        )
        return HoldingView(
            user_id=holding.user_id,
            symbol=holding.symbol,
            quantity=holding.quantity,
            average_price=holding.average_price,
            total_investment=holding.total_investment,
            current_price=current_price,
            current_value=current_value,
            total_return=total_return,
            total_return_pct=round_money(return_pct),
            updated_at=holding.updated_at,
        )

    def get_holdings(self, user_id: str) -> List[HoldingView]:
        """Visible holdings (quantity > 0) priced at the current market."""
        return [
            self._view(h)
            for h in self.store.holdings.values()
            if h.user_id == user_id and h.quantity > 0
        ]

    def get_holding_view(self, user_id: str, symbol: str) -> Optional[HoldingView]:
        for view in self.get_holdings(user_id):
            if view.symbol.lower() == symbol.lower():
                return view
        return None

    def get_summary(self, user_id: str) -> PortfolioSummary:
        return summarize(self.get_holdings(user_id))

    def get_performance(self, user_id: str) -> PortfolioPerformance:
        return performance(self.get_holdings(user_id), self.registry.sectors())
