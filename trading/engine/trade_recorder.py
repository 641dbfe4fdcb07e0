"""
Trade recording and trade history queries.

Every executed order produces exactly one immutable Trade. Trades are
append-only; discard exists solely to undo a trade whose surrounding
execution failed.
"""

import logging
import random
import string
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from trading.engine.store import TradingStore
from trading.events.errors import NotFoundError
from trading.events.models import Order, OrderSide, Trade, round_money
from trading.reports.stats import Page, TradeStats, paginate, trade_stats

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_trade_reference(rng: Optional[random.Random] = None) -> str:
    """Human-readable reference: TXN + base36 millis + 6 random chars."""
    rng = rng or random.Random()
    suffix = "".join(rng.choice(_BASE36) for _ in range(6))
    return f"TXN{_to_base36(int(time.time() * 1000))}{suffix}"


class TradeRecorder:
    """Creates trades from executed orders and answers trade queries."""

    def __init__(self, store: TradingStore, rng: Optional[random.Random] = None):
        self.store = store
        self.rng = rng or random.Random()

    def record(self, order: Order, execution_price: Decimal) -> Trade:
        """
        Create and store the trade for an executed order.

        Args:
            order: Order being filled
            execution_price: Fill price

        Returns:
            The new Trade
        """
        price = round_money(execution_price)
        trade = Trade(
            trade_id=str(uuid.uuid4()),
            order_id=order.order_id,
            user_id=order.user_id,
            symbol=order.symbol,
            side=order.side,
            quantity=order.quantity,
            price=price,
            total_amount=round_money(price * order.quantity),
            reference=generate_trade_reference(self.rng),
            executed_at=datetime.now(),
        )
        self.store.trades[trade.trade_id] = trade
        logger.info(
            "Trade created: %s - %s %d %s @ %s",
            trade.reference, trade.side.value, trade.quantity, trade.symbol, trade.price,
        )
        return trade

    def discard(self, trade_id: str) -> None:
        """Remove a trade recorded by an execution that was rolled back."""
        self.store.trades.pop(trade_id, None)

    def _user_trades(self, user_id: str) -> List[Trade]:
        return [t for t in self.store.trades.values() if t.user_id == user_id]

    def get_trade(self, trade_id: str, user_id: str) -> Trade:
        trade = self.store.trades.get(trade_id)
        if trade is None or trade.user_id != user_id:
            raise NotFoundError("Trade not found")
        return trade

    def list_trades(
        self,
        user_id: str,
        symbol: Optional[str] = None,
        side: Optional[OrderSide] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        min_amount=None,
        max_amount=None,
    ) -> List[Trade]:
        """User's trades matching the filters, newest first."""
        trades = self._user_trades(user_id)

        if symbol:
            trades = [t for t in trades if t.symbol.lower() == symbol.lower()]
        if side is not None:
            trades = [t for t in trades if t.side == side]
        if from_date is not None:
            trades = [t for t in trades if t.executed_at >= from_date]
        if to_date is not None:
            trades = [t for t in trades if t.executed_at <= to_date]
        if min_amount is not None:
            trades = [t for t in trades if t.total_amount >= Decimal(str(min_amount))]
        if max_amount is not None:
            trades = [t for t in trades if t.total_amount <= Decimal(str(max_amount))]

        return list(reversed(sorted(trades, key=lambda t: t.executed_at)))

    def trades_for_order(self, order_id: str, user_id: str) -> List[Trade]:
        return [t for t in self._user_trades(user_id) if t.order_id == order_id]

    def trades_for_symbol(self, symbol: str, user_id: str) -> List[Trade]:
        return self.list_trades(user_id, symbol=symbol)

    def list_trades_page(self, user_id: str, page: int = 1, limit: int = 10, **filters) -> Page[Trade]:
        """One page of list_trades; filters are passed through unchanged."""
        return paginate(self.list_trades(user_id, **filters), page=page, limit=limit)

    def get_trade_stats(self, user_id: str, now: Optional[datetime] = None) -> TradeStats:
        return trade_stats(self._user_trades(user_id), now=now)
